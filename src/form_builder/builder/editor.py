"""Schema editor state.

``FormEditor`` owns the form being edited. Its methods are the only
mutators; each one replaces ``editor.form`` with a new ``FormSchema`` and
leaves the previous object untouched, so callers can keep snapshots.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from form_builder.config.settings import FormBuilderSettings
from form_builder.exceptions import SchemaError
from form_builder.schemas.form_schema import (
    OPTION_FIELD_TYPES,
    DerivedFieldConfig,
    FieldType,
    FormField,
    FormSchema,
    ValidationRule,
    ValidationRuleType,
)

logger = logging.getLogger(__name__)

DEFAULT_FORM_NAME = "Untitled Form"

# Bounds used when a length rule is first switched on
DEFAULT_RULE_VALUES = {
    ValidationRuleType.MIN_LENGTH: 8,
    ValidationRuleType.MAX_LENGTH: 100,
}


def generate_form_id() -> str:
    return f"form_{uuid.uuid4().hex}"


def generate_field_id() -> str:
    return f"field_{uuid.uuid4().hex[:12]}"


def new_form_schema(name: str = DEFAULT_FORM_NAME) -> FormSchema:
    """Create an empty form with a fresh id and the current UTC time."""
    return FormSchema(
        id=generate_form_id(),
        name=name,
        created_at=datetime.now(timezone.utc),
        fields=[],
    )


def parse_options(text: str) -> List[str]:
    """Split comma-separated option text, trimming and dropping empties."""
    return [opt.strip() for opt in text.split(",") if opt.strip()]


class FormEditor:
    """Editing state for one form schema."""

    def __init__(
        self,
        form: Optional[FormSchema] = None,
        settings: Optional[FormBuilderSettings] = None,
    ):
        """
        Initialize the editor.

        Args:
            form: Schema to edit (a new empty form when not provided)
            settings: Settings for default names and options
        """
        self.settings = settings or FormBuilderSettings()
        self.form = form or new_form_schema(self.settings.default_form_name)

    # -------------------------------------------------------------------------
    # Schema operations
    # -------------------------------------------------------------------------

    def _replace_fields(self, fields: List[FormField]) -> None:
        self.form = self.form.model_copy(update={"fields": fields})

    def add_field(self, field_type: FieldType) -> FormField:
        """
        Append a new field of the given type.

        The field gets a generated id, a label derived from the type and,
        for select/radio, the default options.

        Returns:
            The new field
        """
        field_type = FieldType(field_type)
        existing = set(self.form.field_ids())
        field_id = generate_field_id()
        while field_id in existing:
            field_id = generate_field_id()

        options = list(self.settings.default_options) if field_type in OPTION_FIELD_TYPES else None
        field = FormField(
            id=field_id,
            type=field_type,
            label=f"New {field_type.display_name} Field",
            required=False,
            options=options,
            validation_rules=[],
            is_derived=False,
        )
        self._replace_fields(self.form.fields + [field])
        logger.debug(f"Added {field_type.value} field '{field_id}' to form '{self.form.id}'")
        return field

    def update_field(self, field: FormField) -> None:
        """Replace the field with the same id; unknown ids are ignored."""
        if self.form.get_field(field.id) is None:
            logger.debug(f"update_field: no field '{field.id}' in form '{self.form.id}'")
            return
        self._replace_fields([field if f.id == field.id else f for f in self.form.fields])

    def delete_field(self, field_id: str) -> None:
        """Remove the field with the given id; unknown ids are ignored."""
        if self.form.get_field(field_id) is None:
            logger.debug(f"delete_field: no field '{field_id}' in form '{self.form.id}'")
            return
        self._replace_fields([f for f in self.form.fields if f.id != field_id])

    def reorder_fields(self, start_index: int, end_index: int) -> None:
        """
        Move a field with splice semantics.

        The field at ``start_index`` is removed, then inserted at
        ``end_index`` of the shortened list: ``[A, B, C]`` with (0, 2)
        becomes ``[B, C, A]``. An out-of-range start is ignored; the
        destination is clamped to the list bounds.
        """
        fields = list(self.form.fields)
        if not 0 <= start_index < len(fields):
            logger.debug(f"reorder_fields: start index {start_index} out of range")
            return
        moved = fields.pop(start_index)
        fields.insert(end_index, moved)
        self._replace_fields(fields)

    def load_form(self, form: FormSchema) -> None:
        """Replace the whole schema under edit."""
        self.form = form

    def reset_form(self) -> None:
        """Start over with a new empty, untitled form."""
        self.form = new_form_schema(self.settings.default_form_name)

    def rename(self, name: str) -> None:
        self.form = self.form.model_copy(update={"name": name})

    def finalize(self) -> FormSchema:
        """Schema as it should be saved or previewed (blank names replaced)."""
        name = self.form.name.strip() or self.settings.default_form_name
        return self.form.model_copy(update={"name": name})

    # -------------------------------------------------------------------------
    # Field property helpers
    # -------------------------------------------------------------------------

    def _revise_field(self, field_id: str, **changes: Any) -> Optional[FormField]:
        """Rebuild a field with changes applied, re-checking its invariants.

        Returns:
            The revised field, or None if the id is unknown

        Raises:
            SchemaError: If the change would break a field invariant
        """
        field = self.form.get_field(field_id)
        if field is None:
            logger.debug(f"No field '{field_id}' in form '{self.form.id}'")
            return None

        data = field.model_dump()
        data.update(changes)
        try:
            revised = FormField.model_validate(data)
        except ValidationError as e:
            raise SchemaError(f"Invalid change to field '{field_id}': {e}", original_error=e)

        self.update_field(revised)
        return revised

    def set_options(self, field_id: str, text: str) -> Optional[FormField]:
        """Set options from comma-separated text."""
        return self._revise_field(field_id, options=parse_options(text))

    def toggle_validation_rule(
        self,
        field_id: str,
        rule_type: ValidationRuleType,
        enabled: bool,
    ) -> Optional[FormField]:
        """
        Switch a validation rule on or off for a field.

        Length rules start at their default bound (min 8, max 100).
        Enabling a rule that is already present changes nothing.
        """
        field = self.form.get_field(field_id)
        if field is None:
            return None

        rule_type = ValidationRuleType(rule_type)
        rules = [rule.model_dump() for rule in field.validation_rules]
        present = any(rule["type"] == rule_type for rule in rules)

        if enabled and not present:
            rules.append({"type": rule_type, "value": DEFAULT_RULE_VALUES.get(rule_type)})
        elif not enabled:
            rules = [rule for rule in rules if rule["type"] != rule_type]

        return self._revise_field(field_id, validation_rules=rules)

    def set_rule_value(
        self,
        field_id: str,
        rule_type: ValidationRuleType,
        value: int,
    ) -> Optional[FormField]:
        """Change the bound of an existing rule."""
        field = self.form.get_field(field_id)
        if field is None:
            return None

        rule_type = ValidationRuleType(rule_type)
        rules = []
        for rule in field.validation_rules:
            data = rule.model_dump()
            if rule.type == rule_type:
                data["value"] = value
            rules.append(data)
        return self._revise_field(field_id, validation_rules=rules)

    def set_derived(self, field_id: str, enabled: bool) -> Optional[FormField]:
        """Mark a field derived (with an empty config) or plain."""
        if enabled:
            field = self.form.get_field(field_id)
            if field is not None and field.is_derived:
                return field
            config = DerivedFieldConfig().model_dump()
            return self._revise_field(field_id, is_derived=True, derived_config=config)
        return self._revise_field(field_id, is_derived=False, derived_config=None)

    def set_derived_config(
        self,
        field_id: str,
        parent_field_ids: Optional[Iterable[str]] = None,
        formula: Optional[str] = None,
    ) -> Optional[FormField]:
        """
        Update a derived field's parents and/or formula.

        Raises:
            SchemaError: If the field is not derived
        """
        field = self.form.get_field(field_id)
        if field is None:
            return None
        if field.derived_config is None:
            raise SchemaError(f"Field '{field_id}' is not a derived field")

        config = field.derived_config.model_dump()
        if parent_field_ids is not None:
            config["parent_field_ids"] = list(parent_field_ids)
        if formula is not None:
            config["formula"] = formula
        return self._revise_field(field_id, derived_config=config)
