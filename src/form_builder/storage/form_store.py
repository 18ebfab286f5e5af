"""Form persistence.

Two keys are used: one holding the list of all saved forms and one holding
the form currently opened for preview. Read failures degrade to an empty
result and write failures to a False return; both are logged rather than
raised, so a broken store never takes down the caller. Saves and deletes
are refused while the stored form list is unreadable, so it is never
overwritten.
"""

import json
import logging
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from form_builder.exceptions import DerivedFieldCycleError, FormStorageError
from form_builder.runtime.dependency_graph import find_derived_cycles
from form_builder.schemas.form_schema import FormSchema, dump_schema
from form_builder.storage.backends import KeyValueBackend

logger = logging.getLogger(__name__)

ALL_FORMS_KEY = "all_forms"
FORM_PREVIEW_KEY = "current_form_preview"

_FORM_LIST_ADAPTER = TypeAdapter(List[FormSchema])


class FormStore:
    """Saved forms plus the current preview form, on a key-value backend."""

    def __init__(self, backend: KeyValueBackend, reject_cycles: bool = True):
        """
        Initialize the store.

        Args:
            backend: Key-value backend holding the documents
            reject_cycles: Refuse to save forms whose derived fields form a cycle
        """
        self.backend = backend
        self.reject_cycles = reject_cycles

    def _check_cycles(self, form: FormSchema) -> None:
        if not self.reject_cycles:
            return
        cycles = find_derived_cycles(form)
        if cycles:
            raise DerivedFieldCycleError(cycles)

    def _write(self, key: str, text: str) -> bool:
        try:
            self.backend.set(key, text)
        except FormStorageError as e:
            logger.error(f"Failed to store '{key}': {e}")
            return False
        return True

    # -------------------------------------------------------------------------
    # Saved forms
    # -------------------------------------------------------------------------

    def _load_forms(self) -> Optional[List[FormSchema]]:
        """Saved forms; [] when nothing is stored, None when unreadable."""
        try:
            text = self.backend.get(ALL_FORMS_KEY)
        except FormStorageError as e:
            logger.error(f"Failed to read forms: {e}")
            return None

        if not text:
            return []

        try:
            return _FORM_LIST_ADAPTER.validate_json(text)
        except ValidationError as e:
            logger.error(f"Failed to parse stored forms: {e}")
            return None

    def get_all_forms(self) -> List[FormSchema]:
        """
        Load every saved form.

        Returns:
            Saved forms in save order, or [] if nothing is stored or the
            stored data cannot be read
        """
        forms = self._load_forms()
        return forms if forms is not None else []

    def _write_all(self, forms: List[FormSchema]) -> bool:
        payload = json.dumps([dump_schema(form) for form in forms], ensure_ascii=False)
        return self._write(ALL_FORMS_KEY, payload)

    def save_form(self, form: FormSchema) -> bool:
        """
        Insert a form, or replace the saved form with the same id.

        Returns:
            True if stored, False if the stored forms are unreadable or
            the backend write failed

        Raises:
            DerivedFieldCycleError: If cycles are rejected and the form has one
        """
        self._check_cycles(form)

        forms = self._load_forms()
        if forms is None:
            logger.error(f"Not saving form '{form.id}': stored forms are unreadable")
            return False

        for index, existing in enumerate(forms):
            if existing.id == form.id:
                forms[index] = form
                break
        else:
            forms.append(form)

        saved = self._write_all(forms)
        if saved:
            logger.info(f"Saved form '{form.id}' ({len(form.fields)} fields)")
        return saved

    def get_form_by_id(self, form_id: str) -> Optional[FormSchema]:
        """Look up a saved form; None when not found."""
        for form in self.get_all_forms():
            if form.id == form_id:
                return form
        return None

    def delete_form_by_id(self, form_id: str) -> bool:
        """
        Delete a saved form.

        Returns:
            True if a form was removed and the change stored
        """
        forms = self._load_forms()
        if forms is None:
            logger.error(f"Not deleting form '{form_id}': stored forms are unreadable")
            return False

        remaining = [form for form in forms if form.id != form_id]
        if len(remaining) == len(forms):
            logger.debug(f"No saved form '{form_id}' to delete")
            return False
        return self._write_all(remaining)

    # -------------------------------------------------------------------------
    # Preview
    # -------------------------------------------------------------------------

    def save_form_for_preview(self, form: FormSchema) -> bool:
        """Store the form opened for preview (cycles are not checked)."""
        return self._write(FORM_PREVIEW_KEY, json.dumps(dump_schema(form), ensure_ascii=False))

    def get_form_for_preview(self) -> Optional[FormSchema]:
        """Load the preview form; None when absent or unreadable."""
        try:
            text = self.backend.get(FORM_PREVIEW_KEY)
        except FormStorageError as e:
            logger.error(f"Failed to read preview form: {e}")
            return None

        if not text:
            return None

        try:
            return FormSchema.model_validate_json(text)
        except ValidationError as e:
            logger.error(f"Failed to parse preview form: {e}")
            return None
