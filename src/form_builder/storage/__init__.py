"""Persistence of form schemas."""

from form_builder.storage.backends import FileBackend, KeyValueBackend, MemoryBackend
from form_builder.storage.form_store import ALL_FORMS_KEY, FORM_PREVIEW_KEY, FormStore

__all__ = [
    "ALL_FORMS_KEY",
    "FORM_PREVIEW_KEY",
    "FileBackend",
    "FormStore",
    "KeyValueBackend",
    "MemoryBackend",
]
