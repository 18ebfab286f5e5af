"""
Runtime engine for filling forms.

Components:
1. Validation - ordered rule checks with first-failure messages
2. Expressions - whitelisted arithmetic parser/evaluator
3. Derived fields - AGE_FROM_DOB and formula evaluation, fixed-point passes
4. Dependency graph - cycle detection and schema linting
5. Session - owner of a fill session's value map
"""

from form_builder.runtime.dependency_graph import (
    build_dependency_graph,
    check_schema,
    find_derived_cycles,
    find_unknown_parents,
)
from form_builder.runtime.derived import (
    EMPTY_VALUE,
    FORMULA_ERROR,
    SettleResult,
    age_from_dob,
    evaluate_derived,
    recompute_derived_fields,
    settle_derived_fields,
)
from form_builder.runtime.expression import (
    ExpressionSyntaxError,
    UnsafeExpressionError,
    evaluate_expression,
    is_safe_expression,
)
from form_builder.runtime.session import FormSession, SubmissionResult, seed_values
from form_builder.runtime.validation import (
    effective_rules,
    validate,
    validate_field,
    validate_values,
)

__all__ = [
    "build_dependency_graph",
    "check_schema",
    "find_derived_cycles",
    "find_unknown_parents",
    "EMPTY_VALUE",
    "FORMULA_ERROR",
    "SettleResult",
    "age_from_dob",
    "evaluate_derived",
    "recompute_derived_fields",
    "settle_derived_fields",
    "ExpressionSyntaxError",
    "UnsafeExpressionError",
    "evaluate_expression",
    "is_safe_expression",
    "FormSession",
    "SubmissionResult",
    "seed_values",
    "effective_rules",
    "validate",
    "validate_field",
    "validate_values",
]
