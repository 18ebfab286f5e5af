"""
Derived-field evaluation.

A derived field computes its value from parent fields, either with the
``AGE_FROM_DOB`` formula or with an arithmetic expression that references
parents through ``{field_id}`` placeholders.

Failures never raise: missing or non-numeric parents give an empty value,
a malformed expression gives the ``"Error"`` sentinel, and an expression
containing disallowed text leaves the field's prior value untouched.

Recomputation runs one pass in schema field order per call;
``settle_derived_fields`` repeats passes until nothing changes, with a
bound so that cyclic dependencies surface as a diagnosable condition.
"""

import logging
import math
from dataclasses import dataclass, field as dc_field
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from form_builder.exceptions import DerivedFieldCycleError
from form_builder.runtime.dependency_graph import find_derived_cycles
from form_builder.runtime.expression import (
    ExpressionSyntaxError,
    evaluate_expression,
    is_safe_expression,
)
from form_builder.schemas.form_schema import (
    DerivedFieldConfig,
    FieldValue,
    FormField,
    FormSchema,
)
from form_builder.utils.date_parsing import parse_date, whole_years_between
from form_builder.utils.number_parsing import format_number, parse_leading_float

logger = logging.getLogger(__name__)

# Value of a derived field that could not be computed
EMPTY_VALUE = ""

# Sentinel stored when a formula is malformed
FORMULA_ERROR = "Error"


@dataclass
class SettleResult:
    """Outcome of iterating derived-field passes to a fixed point."""

    values: Dict[str, FieldValue]
    passes: int
    converged: bool
    unstable_field_ids: List[str] = dc_field(default_factory=list)


def values_equal(left: Any, right: Any) -> bool:
    """Compare two field values for change detection.

    NaN equals NaN, and booleans never equal numbers, so ``True`` and ``1``
    count as a change.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, float) and isinstance(right, float):
        if math.isnan(left) and math.isnan(right):
            return True
    return left == right


def _normalize_number(number: float) -> FieldValue:
    """Integral finite results are stored as int, the rest as float."""
    if math.isfinite(number) and number.is_integer():
        return int(number)
    return number


def age_from_dob(value: Any, today: Optional[date] = None) -> FieldValue:
    """
    Whole years since a date of birth.

    Args:
        value: Date-of-birth value from the parent field
        today: Reference date (defaults to the current date)

    Returns:
        Age in years, or "" if the date is missing, unparseable or in the future
    """
    born = parse_date(value)
    if born is None:
        return EMPTY_VALUE

    age = whole_years_between(born, today or date.today())
    if age < 0:
        logger.debug(f"Date of birth {born.isoformat()} is in the future; age left empty")
        return EMPTY_VALUE
    return age


def substitute_parents(config: DerivedFieldConfig, values: Dict[str, Any]) -> Optional[str]:
    """
    Replace every ``{parent_id}`` placeholder with the parent's numeric value.

    Returns:
        The substituted expression, or None if any parent is missing or
        not numeric
    """
    expression = config.formula
    for parent_id in config.parent_field_ids:
        number = parse_leading_float(values.get(parent_id))
        if number is None:
            return None
        expression = expression.replace("{" + parent_id + "}", format_number(number))
    return expression


def evaluate_formula(
    config: DerivedFieldConfig,
    values: Dict[str, Any],
    prior: FieldValue = None,
) -> FieldValue:
    """
    Evaluate an arithmetic derived-field formula.

    Args:
        config: Derived-field configuration
        values: Current value map
        prior: The field's current value, returned when the expression is rejected

    Returns:
        Number, "" (missing parents or blank formula), "Error" (malformed)
        or ``prior``
    """
    expression = substitute_parents(config, values)
    if expression is None or not expression.strip():
        return EMPTY_VALUE

    if not is_safe_expression(expression):
        logger.debug(f"Formula {config.formula!r} rejected after substitution: {expression!r}")
        return prior

    try:
        result = evaluate_expression(expression)
    except ExpressionSyntaxError as e:
        logger.warning(f"Derived field evaluation error for {config.formula!r}: {e}")
        return FORMULA_ERROR

    return _normalize_number(result)


def evaluate_derived(
    field: FormField,
    values: Dict[str, Any],
    today: Optional[date] = None,
) -> FieldValue:
    """
    Compute the value of a derived field.

    Non-derived fields (or derived fields without a config) return their
    current value unchanged.

    Args:
        field: Field definition
        values: Current value map (field id -> value)
        today: Reference date for AGE_FROM_DOB

    Returns:
        The field's effective value
    """
    config = field.derived_config
    if not field.is_derived or config is None:
        return values.get(field.id)

    if config.is_age_from_dob and len(config.parent_field_ids) == 1:
        return age_from_dob(values.get(config.parent_field_ids[0]), today)

    return evaluate_formula(config, values, prior=values.get(field.id))


def _recompute_pass(
    schema: FormSchema,
    values: Dict[str, Any],
    today: Optional[date],
) -> Tuple[Dict[str, FieldValue], List[str]]:
    updated = dict(values)
    changed_ids: List[str] = []
    for field in schema.fields:
        if not field.is_derived:
            continue
        new_value = evaluate_derived(field, updated, today)
        if not values_equal(updated.get(field.id), new_value):
            updated[field.id] = new_value
            changed_ids.append(field.id)
    return updated, changed_ids


def recompute_derived_fields(
    schema: FormSchema,
    values: Dict[str, Any],
    today: Optional[date] = None,
) -> Tuple[Dict[str, FieldValue], bool]:
    """
    Run one derived-field pass in schema order.

    Each derived field sees values already updated earlier in the same pass.
    The input map is not modified.

    Args:
        schema: Form schema
        values: Current value map
        today: Reference date for AGE_FROM_DOB

    Returns:
        Tuple of (updated value map, whether any derived value changed)
    """
    updated, changed_ids = _recompute_pass(schema, values, today)
    return updated, bool(changed_ids)


def settle_derived_fields(
    schema: FormSchema,
    values: Dict[str, Any],
    max_passes: Optional[int] = None,
    strict: bool = False,
    today: Optional[date] = None,
) -> SettleResult:
    """
    Repeat derived-field passes until the value map stops changing.

    At most ``max_passes`` changing passes run (default: the schema's field
    count), followed by the pass that confirms the fixed point.

    Args:
        schema: Form schema
        values: Current value map (not modified)
        max_passes: Cap on changing passes
        strict: Raise instead of returning an unconverged result
        today: Reference date for AGE_FROM_DOB

    Returns:
        SettleResult with the final values and convergence status

    Raises:
        DerivedFieldCycleError: If ``strict`` and the passes did not converge
    """
    limit = max_passes if max_passes is not None else len(schema.fields)
    limit = max(limit, 1)

    current: Dict[str, FieldValue] = dict(values)
    changed_ids: List[str] = []
    for pass_number in range(1, limit + 2):
        current, changed_ids = _recompute_pass(schema, current, today)
        if not changed_ids:
            return SettleResult(values=current, passes=pass_number, converged=True)

    logger.warning(
        f"Derived fields of form '{schema.id}' did not settle after {limit + 1} passes; "
        f"still changing: {', '.join(changed_ids)}"
    )
    if strict:
        cycles = find_derived_cycles(schema) or [changed_ids]
        raise DerivedFieldCycleError(cycles)

    return SettleResult(
        values=current,
        passes=limit + 1,
        converged=False,
        unstable_field_ids=changed_ids,
    )
