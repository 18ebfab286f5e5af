"""
Form-fill session.

Owns the runtime value map for one fill of a form: seeds it from field
defaults, applies user edits, keeps derived fields at their fixed point
and tracks per-field validation errors. The engine functions it calls are
stateless; everything mutable lives here.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from form_builder.config.settings import FormBuilderSettings
from form_builder.runtime.derived import SettleResult, settle_derived_fields
from form_builder.runtime.validation import validate_field, validate_values
from form_builder.schemas.form_schema import FieldType, FieldValue, FormSchema

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    """Outcome of submitting a filled form."""

    is_valid: bool
    errors: Dict[str, str]
    values: Dict[str, FieldValue]


def seed_values(schema: FormSchema) -> Dict[str, FieldValue]:
    """
    Build the initial value map for a schema.

    Fields start at their default value (or ""); checkbox fields start
    as a boolean, checked only when the default is the string "true".
    """
    values: Dict[str, FieldValue] = {}
    for field in schema.fields:
        if field.type == FieldType.CHECKBOX:
            values[field.id] = field.default_value == "true"
        else:
            values[field.id] = field.default_value or ""
    return values


class FormSession:
    """
    A single fill of a form.

    Edits go through ``set_value``, which re-derives dependent fields and
    validates the edited field. ``submit`` validates every field.
    """

    def __init__(
        self,
        schema: FormSchema,
        settings: Optional[FormBuilderSettings] = None,
        today: Optional[date] = None,
    ):
        """
        Initialize the session.

        Args:
            schema: Form being filled
            settings: Engine settings (defaults when not provided)
            today: Reference date for AGE_FROM_DOB (defaults to the current date)
        """
        self.schema = schema
        self.settings = settings or FormBuilderSettings()
        self.today = today
        self._errors: Dict[str, Optional[str]] = {}
        self._values = self._settle(seed_values(schema)).values

    @property
    def values(self) -> Dict[str, FieldValue]:
        return dict(self._values)

    @property
    def errors(self) -> Dict[str, str]:
        """Current errors, only for fields that have one."""
        return {field_id: error for field_id, error in self._errors.items() if error}

    def get_value(self, field_id: str) -> FieldValue:
        return self._values.get(field_id)

    def _settle(self, values: Dict[str, Any]) -> SettleResult:
        result = settle_derived_fields(
            self.schema,
            values,
            max_passes=self.settings.max_derived_passes,
            strict=self.settings.strict_derived_cycles,
            today=self.today,
        )
        if not result.converged:
            logger.warning(
                f"Form '{self.schema.id}' derived fields unresolved: "
                f"{', '.join(result.unstable_field_ids)}"
            )
        return result

    def set_value(self, field_id: str, value: Any) -> Optional[str]:
        """
        Record a user edit.

        Unknown field ids are ignored.

        Args:
            field_id: Field being edited
            value: New raw value

        Returns:
            The edited field's validation error, or None
        """
        field = self.schema.get_field(field_id)
        if field is None:
            logger.debug(f"Ignoring edit of unknown field '{field_id}'")
            return None

        values = dict(self._values)
        values[field_id] = value
        self._values = self._settle(values).values

        error = validate_field(field, value)
        self._errors[field_id] = error
        return error

    def validate_all(self) -> Dict[str, str]:
        """Validate every field and replace the tracked errors."""
        self._errors = validate_values(self.schema, self._values)
        return self.errors

    def submit(self) -> SubmissionResult:
        """
        Validate the whole form for submission.

        Returns:
            SubmissionResult with validity, failing fields and a value snapshot
        """
        errors = self.validate_all()
        is_valid = not errors
        if is_valid:
            logger.info(f"Form '{self.schema.id}' submitted with {len(self._values)} values")
        else:
            logger.info(f"Form '{self.schema.id}' has {len(errors)} invalid field(s)")
        return SubmissionResult(is_valid=is_valid, errors=errors, values=self.values)
