"""Unit tests for derived-field evaluation."""

import math
from datetime import date

import pytest

from form_builder.exceptions import DerivedFieldCycleError
from form_builder.runtime.derived import (
    EMPTY_VALUE,
    FORMULA_ERROR,
    age_from_dob,
    evaluate_derived,
    evaluate_formula,
    recompute_derived_fields,
    settle_derived_fields,
    substitute_parents,
    values_equal,
)
from form_builder.schemas.form_schema import DerivedFieldConfig, FormField

TODAY = date(2024, 6, 15)


def derived(field_id, parents, formula):
    return FormField(
        id=field_id,
        type="number",
        is_derived=True,
        derived_config=DerivedFieldConfig(parent_field_ids=parents, formula=formula),
    )


def config(parents, formula):
    return DerivedFieldConfig(parent_field_ids=parents, formula=formula)


# =============================================================================
# AGE_FROM_DOB
# =============================================================================


class TestAgeFromDob:
    def test_day_before_birthday(self):
        assert age_from_dob("2000-06-15", date(2024, 6, 14)) == 23

    def test_on_birthday(self):
        assert age_from_dob("2000-06-15", date(2024, 6, 15)) == 24

    def test_day_after_birthday(self):
        assert age_from_dob("2000-06-15", date(2024, 6, 16)) == 24

    def test_leap_day_birthday(self):
        assert age_from_dob("2000-02-29", date(2024, 2, 28)) == 23
        assert age_from_dob("2000-02-29", date(2024, 2, 29)) == 24

    def test_born_today(self):
        assert age_from_dob("2024-06-15", TODAY) == 0

    def test_future_date_is_empty(self):
        assert age_from_dob("2030-01-01", TODAY) == EMPTY_VALUE

    @pytest.mark.parametrize("value", ["", None, "not a date", "2024-02-30"])
    def test_unparseable_is_empty(self, value):
        assert age_from_dob(value, TODAY) == EMPTY_VALUE

    def test_accepts_date_objects(self):
        assert age_from_dob(date(1990, 1, 1), TODAY) == 34

    def test_day_first_input(self):
        assert age_from_dob("15.06.2000", TODAY) == 24

    def test_evaluate_derived_age(self):
        field = derived("age", ["dob"], "AGE_FROM_DOB")
        assert evaluate_derived(field, {"dob": "1990-12-31"}, today=TODAY) == 33

    def test_age_with_two_parents_is_treated_as_expression(self):
        field = derived("age", ["dob", "other"], "AGE_FROM_DOB")
        # Not a valid arithmetic expression after substitution: prior value kept
        assert evaluate_derived(field, {"dob": "1", "other": "2", "age": "x"}, today=TODAY) == "x"


# =============================================================================
# Arithmetic formulas
# =============================================================================


class TestSubstitution:
    def test_placeholders_replaced(self):
        cfg = config(["a", "b"], "{a} + {b} * 2")
        assert substitute_parents(cfg, {"a": "3", "b": 4}) == "3 + 4 * 2"

    def test_repeated_placeholder(self):
        assert substitute_parents(config(["a"], "{a} * {a}"), {"a": "5"}) == "5 * 5"

    def test_float_values(self):
        assert substitute_parents(config(["a"], "{a} + 1"), {"a": "2.5"}) == "2.5 + 1"

    def test_leading_number_prefix(self):
        assert substitute_parents(config(["a"], "{a}"), {"a": "12kg"}) == "12"

    @pytest.mark.parametrize("value", ["", None, "abc", True])
    def test_non_numeric_parent(self, value):
        assert substitute_parents(config(["a"], "{a} + 1"), {"a": value}) is None


class TestEvaluateFormula:
    def test_placeholders_with_precedence(self):
        assert evaluate_formula(config(["a", "b"], "{a} + {b} * 2"), {"a": "3", "b": "4"}) == 11

    def test_integral_result_is_int(self):
        result = evaluate_formula(config(["a"], "{a} / 2"), {"a": "8"})
        assert result == 4
        assert isinstance(result, int)

    def test_fractional_result(self):
        assert evaluate_formula(config(["a"], "{a} / 4"), {"a": "3"}) == 0.75

    def test_missing_parent_is_empty(self):
        assert evaluate_formula(config(["a", "b"], "{a} + {b}"), {"a": "1"}) == EMPTY_VALUE

    def test_malformed_expression_is_error(self):
        assert evaluate_formula(config(["a"], "{a} +"), {"a": "1"}) == FORMULA_ERROR

    def test_unknown_placeholder_keeps_prior(self):
        cfg = config(["a"], "{a} + {c}")
        assert evaluate_formula(cfg, {"a": "1"}, prior=7) == 7

    def test_unsafe_formula_keeps_prior(self):
        cfg = config(["a"], "__import__('os') or {a}")
        assert evaluate_formula(cfg, {"a": "1"}, prior="") == ""

    @pytest.mark.parametrize("formula", ["", "   "])
    def test_blank_formula_is_empty(self, formula):
        assert evaluate_formula(config([], formula), {}, prior=5) == EMPTY_VALUE

    def test_division_by_zero(self):
        assert evaluate_formula(config(["a", "b"], "{a} / {b}"), {"a": "1", "b": "0"}) == math.inf

    def test_negative_parent(self):
        assert evaluate_formula(config(["a"], "10 - {a}"), {"a": "-5"}) == 15

    def test_non_derived_field_returns_own_value(self):
        field = FormField(id="a", type="number")
        assert evaluate_derived(field, {"a": "42"}) == "42"


# =============================================================================
# Recompute passes
# =============================================================================


class TestValuesEqual:
    def test_nan_equals_nan(self):
        assert values_equal(math.nan, math.nan)

    def test_bool_is_not_number(self):
        assert not values_equal(True, 1)
        assert not values_equal(0, False)

    def test_int_and_float(self):
        assert values_equal(4, 4.0)

    def test_strings(self):
        assert values_equal("", "")
        assert not values_equal("", 0)


class TestRecompute:
    def test_single_pass(self, arithmetic_schema):
        values = {"a": "3", "b": "4", "total": ""}
        updated, changed = recompute_derived_fields(arithmetic_schema, values)
        assert updated["total"] == 11
        assert changed is True

    def test_input_not_mutated(self, arithmetic_schema):
        values = {"a": "3", "b": "4", "total": ""}
        recompute_derived_fields(arithmetic_schema, values)
        assert values["total"] == ""

    def test_idempotent(self, arithmetic_schema):
        values = {"a": "3", "b": "4", "total": ""}
        first, _ = recompute_derived_fields(arithmetic_schema, values)
        second, changed = recompute_derived_fields(arithmetic_schema, first)
        assert second == first
        assert changed is False

    def test_chain_in_schema_order_settles_in_one_pass(self, schema_factory):
        schema = schema_factory(
            [
                {"id": "a", "type": "number"},
                {
                    "id": "b",
                    "type": "number",
                    "isDerived": True,
                    "derivedConfig": {"parentFieldIds": ["a"], "formula": "{a} * 2"},
                },
                {
                    "id": "c",
                    "type": "number",
                    "isDerived": True,
                    "derivedConfig": {"parentFieldIds": ["b"], "formula": "{b} + 1"},
                },
            ]
        )
        updated, _ = recompute_derived_fields(schema, {"a": "5", "b": "", "c": ""})
        assert updated["b"] == 10
        assert updated["c"] == 11

    def test_reverse_chain_needs_second_pass(self, schema_factory):
        schema = schema_factory(
            [
                {
                    "id": "c",
                    "type": "number",
                    "isDerived": True,
                    "derivedConfig": {"parentFieldIds": ["b"], "formula": "{b} + 1"},
                },
                {
                    "id": "b",
                    "type": "number",
                    "isDerived": True,
                    "derivedConfig": {"parentFieldIds": ["a"], "formula": "{a} * 2"},
                },
                {"id": "a", "type": "number"},
            ]
        )
        values = {"a": "5", "b": "", "c": ""}
        one_pass, _ = recompute_derived_fields(schema, values)
        assert one_pass["b"] == 10
        assert one_pass["c"] == ""

        result = settle_derived_fields(schema, values)
        assert result.converged
        assert result.values["c"] == 11
        assert result.passes == 3


class TestSettle:
    def test_already_settled(self, arithmetic_schema):
        result = settle_derived_fields(arithmetic_schema, {"a": "1", "b": "1", "total": 3})
        assert result.converged
        assert result.passes == 1
        assert result.unstable_field_ids == []

    def test_cycle_does_not_converge(self, cyclic_schema):
        result = settle_derived_fields(cyclic_schema, {"x": "0", "y": "0"})
        assert result.converged is False
        assert set(result.unstable_field_ids) == {"x", "y"}
        assert result.passes == len(cyclic_schema.fields) + 1

    def test_cycle_strict_raises(self, cyclic_schema):
        with pytest.raises(DerivedFieldCycleError) as exc_info:
            settle_derived_fields(cyclic_schema, {"x": "0", "y": "0"}, strict=True)
        assert exc_info.value.cycles == [["x", "y", "x"]]
        assert exc_info.value.error_type == "derived_cycle"

    def test_max_passes(self, cyclic_schema):
        result = settle_derived_fields(cyclic_schema, {"x": "0", "y": "0"}, max_passes=5)
        assert result.passes == 6
        assert not result.converged

    def test_empty_cycle_settles(self, cyclic_schema):
        # Empty parents propagate "" around the cycle, which is a fixed point
        result = settle_derived_fields(cyclic_schema, {"x": "", "y": ""})
        assert result.converged
        assert result.values == {"x": "", "y": ""}
