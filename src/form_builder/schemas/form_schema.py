"""Pydantic schemas for form definitions.

A form schema is pure data: an ordered list of field definitions, each with
its type, label, requiredness, options, validation rules and optional
derived-value configuration. Field order is display and tab order.

Stored schemas use camelCase keys (``createdAt``, ``validationRules``,
``isDerived``, ``derivedConfig``, ``parentFieldIds``); both the alias and the
python attribute name are accepted on input.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from form_builder.exceptions import SchemaError

# Runtime value of a single field in a fill session
FieldValue = Union[str, int, float, bool, None]

# Formula token for the age-from-date-of-birth derivation
AGE_FROM_DOB_FORMULA = "AGE_FROM_DOB"


class FieldType(str, Enum):
    """Input field kinds a form can contain."""

    TEXT = "text"
    EMAIL = "email"
    PASSWORD = "password"
    NUMBER = "number"
    TEXTAREA = "textarea"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    DATE = "date"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


# Field types that must carry a non-empty options list
OPTION_FIELD_TYPES = frozenset({FieldType.SELECT, FieldType.RADIO})


class ValidationRuleType(str, Enum):
    """Validation rules that can be attached to a field."""

    NOT_EMPTY = "not_empty"
    MIN_LENGTH = "min_length"
    MAX_LENGTH = "max_length"
    IS_EMAIL = "is_email"
    CUSTOM_PASSWORD = "custom_password"


# Rule types whose ``value`` is a length bound
LENGTH_RULE_TYPES = frozenset({ValidationRuleType.MIN_LENGTH, ValidationRuleType.MAX_LENGTH})


class _SchemaModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ValidationRule(_SchemaModel):
    """A single validation rule; ``value`` is the bound for length rules."""

    type: ValidationRuleType = Field(..., description="Rule kind")
    value: Optional[int] = Field(
        default=None,
        ge=0,
        description="Length bound (required for min_length/max_length)",
    )

    @model_validator(mode="after")
    def validate_length_value(self):
        """Length rules need a bound."""
        if self.type in LENGTH_RULE_TYPES and self.value is None:
            raise ValueError(f"Rule '{self.type.value}' requires a numeric value")
        return self


class DerivedFieldConfig(_SchemaModel):
    """How a derived field computes its value from parent fields."""

    parent_field_ids: List[str] = Field(
        default_factory=list,
        description="Parent field ids, in declaration order",
    )
    formula: str = Field(
        default="",
        description="AGE_FROM_DOB or an arithmetic expression with {field_id} placeholders",
    )

    @property
    def is_age_from_dob(self) -> bool:
        return self.formula == AGE_FROM_DOB_FORMULA


class FormField(_SchemaModel):
    """
    Definition of a single form field.

    Invariants:
    - ``derived_config`` is present if and only if ``is_derived``
    - ``options`` is non-empty for select and radio fields
    """

    id: str = Field(..., min_length=1, description="Field id, unique within the schema")
    type: FieldType = Field(..., description="Input field kind")
    label: str = Field(default="", description="Display label")
    required: bool = Field(default=False, description="Whether a value is required")
    default_value: Optional[str] = Field(
        default=None, description="Initial value when a fill session starts"
    )
    placeholder: Optional[str] = Field(default=None, description="Input hint text")
    options: Optional[List[str]] = Field(
        default=None, description="Choices for select and radio fields"
    )
    validation_rules: List[ValidationRule] = Field(
        default_factory=list, description="Rules checked in order"
    )
    is_derived: bool = Field(
        default=False, description="Whether the value is computed from other fields"
    )
    derived_config: Optional[DerivedFieldConfig] = Field(
        default=None, description="Derivation settings (present iff is_derived)"
    )

    @model_validator(mode="after")
    def validate_field_invariants(self):
        """Enforce derived-config and options invariants."""
        if self.is_derived and self.derived_config is None:
            raise ValueError(f"Field '{self.id}' is derived but has no derivedConfig")
        if not self.is_derived and self.derived_config is not None:
            raise ValueError(f"Field '{self.id}' has derivedConfig but is not derived")
        if self.type in OPTION_FIELD_TYPES and not self.options:
            raise ValueError(f"Field '{self.id}' of type '{self.type.value}' needs options")
        return self


class FormSchema(_SchemaModel):
    """
    Complete form definition.

    This is the document persisted by the form store and loaded by the
    editor and fill sessions.
    """

    id: str = Field(..., min_length=1, description="Schema identifier")
    name: str = Field(default="", description="Form name")
    created_at: datetime = Field(..., description="Creation timestamp")
    fields: List[FormField] = Field(
        default_factory=list, description="Fields in display order"
    )

    @model_validator(mode="after")
    def validate_unique_field_ids(self):
        """Field ids must be unique within a schema."""
        seen = set()
        duplicates = []
        for field in self.fields:
            if field.id in seen:
                duplicates.append(field.id)
            seen.add(field.id)
        if duplicates:
            raise ValueError(f"Duplicate field ids: {', '.join(sorted(set(duplicates)))}")
        return self

    def get_field(self, field_id: str) -> Optional[FormField]:
        """Look up a field by id; None when absent."""
        for field in self.fields:
            if field.id == field_id:
                return field
        return None

    def field_ids(self) -> List[str]:
        return [field.id for field in self.fields]

    def derived_fields(self) -> List[FormField]:
        return [field for field in self.fields if field.is_derived]


def dump_schema(form: FormSchema) -> Dict[str, Any]:
    """Serialize a schema to its JSON-compatible wire form."""
    return form.model_dump(mode="json", by_alias=True, exclude_none=True)


def load_schema(data: Dict[str, Any]) -> FormSchema:
    """
    Build a schema from its wire form.

    Raises:
        SchemaError: If the data does not describe a valid schema
    """
    try:
        return FormSchema.model_validate(data)
    except ValidationError as e:
        raise SchemaError(f"Invalid form schema: {e}", original_error=e)


def schema_to_json(form: FormSchema, indent: Optional[int] = None) -> str:
    return form.model_dump_json(by_alias=True, exclude_none=True, indent=indent)


def schema_from_json(text: str) -> FormSchema:
    """
    Parse a schema from JSON text.

    Raises:
        SchemaError: If the text is not valid JSON or not a valid schema
    """
    try:
        return FormSchema.model_validate_json(text)
    except ValidationError as e:
        raise SchemaError(f"Invalid form schema JSON: {e}", original_error=e)
