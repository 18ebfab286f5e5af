"""
Form Builder - form schema model with validation and derived fields.

This package provides the schema model for forms, the validation and
derived-value engine used while a form is filled, a schema editor and a
key-value form store.
"""

__version__ = "0.1.0"

from form_builder.builder.editor import FormEditor
from form_builder.runtime.derived import evaluate_derived, recompute_derived_fields, settle_derived_fields
from form_builder.runtime.session import FormSession
from form_builder.runtime.validation import validate
from form_builder.schemas.form_schema import FieldType, FormField, FormSchema, ValidationRule, ValidationRuleType
from form_builder.storage.form_store import FormStore

__all__ = [
    "FormEditor",
    "evaluate_derived",
    "recompute_derived_fields",
    "settle_derived_fields",
    "FormSession",
    "validate",
    "FieldType",
    "FormField",
    "FormSchema",
    "ValidationRule",
    "ValidationRuleType",
    "FormStore",
]
