"""Pydantic schemas for form definitions."""

from form_builder.schemas.form_schema import (
    AGE_FROM_DOB_FORMULA,
    LENGTH_RULE_TYPES,
    OPTION_FIELD_TYPES,
    DerivedFieldConfig,
    FieldType,
    FieldValue,
    FormField,
    FormSchema,
    ValidationRule,
    ValidationRuleType,
    dump_schema,
    load_schema,
    schema_from_json,
    schema_to_json,
)

__all__ = [
    "AGE_FROM_DOB_FORMULA",
    "LENGTH_RULE_TYPES",
    "OPTION_FIELD_TYPES",
    "DerivedFieldConfig",
    "FieldType",
    "FieldValue",
    "FormField",
    "FormSchema",
    "ValidationRule",
    "ValidationRuleType",
    "dump_schema",
    "load_schema",
    "schema_from_json",
    "schema_to_json",
]
