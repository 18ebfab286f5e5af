"""Schema editing."""

from form_builder.builder.editor import (
    DEFAULT_FORM_NAME,
    FormEditor,
    new_form_schema,
    parse_options,
)

__all__ = [
    "DEFAULT_FORM_NAME",
    "FormEditor",
    "new_form_schema",
    "parse_options",
]
