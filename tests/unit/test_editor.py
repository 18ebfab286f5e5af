"""Unit tests for the schema editor."""

import pytest

from form_builder.builder.editor import (
    DEFAULT_FORM_NAME,
    FormEditor,
    new_form_schema,
    parse_options,
)
from form_builder.config.settings import FormBuilderSettings
from form_builder.exceptions import SchemaError
from form_builder.schemas.form_schema import FieldType, ValidationRuleType


@pytest.fixture
def editor():
    return FormEditor()


def labels(editor):
    return [field.label for field in editor.form.fields]


class TestNewForm:
    def test_empty_untitled_form(self, editor):
        assert editor.form.name == DEFAULT_FORM_NAME
        assert editor.form.fields == []
        assert editor.form.id.startswith("form_")
        assert editor.form.created_at.tzinfo is not None

    def test_fresh_ids(self):
        assert new_form_schema().id != new_form_schema().id

    def test_settings_default_name(self):
        editor = FormEditor(settings=FormBuilderSettings(default_form_name="Draft"))
        assert editor.form.name == "Draft"


class TestAddField:
    def test_text_field(self, editor):
        field = editor.add_field(FieldType.TEXT)
        assert field.label == "New Text Field"
        assert field.required is False
        assert field.validation_rules == []
        assert field.options is None
        assert editor.form.fields == [field]

    @pytest.mark.parametrize("field_type", ["select", "radio"])
    def test_option_fields_get_default_options(self, editor, field_type):
        field = editor.add_field(field_type)
        assert field.options == ["Option 1", "Option 2"]

    def test_unique_ids(self, editor):
        ids = {editor.add_field("text").id for _ in range(20)}
        assert len(ids) == 20

    def test_previous_schema_untouched(self, editor):
        before = editor.form
        editor.add_field("number")
        assert before.fields == []
        assert len(editor.form.fields) == 1


class TestUpdateDelete:
    def test_update_field(self, editor):
        field = editor.add_field("text")
        editor.update_field(field.model_copy(update={"label": "Name", "required": True}))
        assert editor.form.fields[0].label == "Name"
        assert editor.form.fields[0].required is True

    def test_update_unknown_field_ignored(self, editor):
        field = editor.add_field("text")
        stranger = field.model_copy(update={"id": "ghost", "label": "Ghost"})
        editor.update_field(stranger)
        assert labels(editor) == ["New Text Field"]

    def test_delete_field(self, editor):
        first = editor.add_field("text")
        editor.add_field("email")
        editor.delete_field(first.id)
        assert labels(editor) == ["New Email Field"]

    def test_delete_unknown_field_ignored(self, editor):
        editor.add_field("text")
        editor.delete_field("ghost")
        assert len(editor.form.fields) == 1


class TestReorder:
    @pytest.fixture
    def abc(self, editor):
        for label in ("A", "B", "C"):
            field = editor.add_field("text")
            editor.update_field(field.model_copy(update={"label": label}))
        return editor

    def test_move_first_to_end(self, abc):
        abc.reorder_fields(0, 2)
        assert labels(abc) == ["B", "C", "A"]

    def test_move_last_to_front(self, abc):
        abc.reorder_fields(2, 0)
        assert labels(abc) == ["C", "A", "B"]

    def test_same_position(self, abc):
        abc.reorder_fields(1, 1)
        assert labels(abc) == ["A", "B", "C"]

    def test_out_of_range_start_ignored(self, abc):
        abc.reorder_fields(5, 0)
        assert labels(abc) == ["A", "B", "C"]

    def test_destination_clamped(self, abc):
        abc.reorder_fields(0, 10)
        assert labels(abc) == ["B", "C", "A"]


class TestFormLevel:
    def test_reset(self, editor):
        old_id = editor.form.id
        editor.add_field("text")
        editor.rename("Survey")
        editor.reset_form()
        assert editor.form.fields == []
        assert editor.form.name == DEFAULT_FORM_NAME
        assert editor.form.id != old_id

    def test_load_form(self, editor, arithmetic_schema):
        editor.load_form(arithmetic_schema)
        assert editor.form is arithmetic_schema

    def test_finalize_blank_name(self, editor):
        editor.rename("   ")
        assert editor.finalize().name == DEFAULT_FORM_NAME
        assert editor.form.name == "   "

    def test_finalize_keeps_name(self, editor):
        editor.rename(" Survey ")
        assert editor.finalize().name == "Survey"


class TestFieldHelpers:
    def test_parse_options(self):
        assert parse_options(" Red, Green ,, Blue ,") == ["Red", "Green", "Blue"]

    def test_set_options(self, editor):
        field = editor.add_field("select")
        revised = editor.set_options(field.id, "Yes, No")
        assert revised.options == ["Yes", "No"]
        assert editor.form.fields[0].options == ["Yes", "No"]

    def test_set_empty_options_on_select_rejected(self, editor):
        field = editor.add_field("radio")
        with pytest.raises(SchemaError):
            editor.set_options(field.id, " , ")
        assert editor.form.fields[0].options == ["Option 1", "Option 2"]

    def test_toggle_length_rule_uses_default(self, editor):
        field = editor.add_field("password")
        revised = editor.toggle_validation_rule(field.id, ValidationRuleType.MIN_LENGTH, True)
        assert [(r.type, r.value) for r in revised.validation_rules] == [
            (ValidationRuleType.MIN_LENGTH, 8)
        ]

    def test_toggle_max_length_default(self, editor):
        field = editor.add_field("text")
        revised = editor.toggle_validation_rule(field.id, "max_length", True)
        assert revised.validation_rules[0].value == 100

    def test_toggle_twice_is_noop(self, editor):
        field = editor.add_field("email")
        editor.toggle_validation_rule(field.id, "is_email", True)
        revised = editor.toggle_validation_rule(field.id, "is_email", True)
        assert len(revised.validation_rules) == 1

    def test_toggle_off(self, editor):
        field = editor.add_field("email")
        editor.toggle_validation_rule(field.id, "is_email", True)
        editor.toggle_validation_rule(field.id, "not_empty", True)
        revised = editor.toggle_validation_rule(field.id, "is_email", False)
        assert [r.type for r in revised.validation_rules] == [ValidationRuleType.NOT_EMPTY]

    def test_set_rule_value(self, editor):
        field = editor.add_field("text")
        editor.toggle_validation_rule(field.id, "min_length", True)
        revised = editor.set_rule_value(field.id, "min_length", 3)
        assert revised.validation_rules[0].value == 3

    def test_helpers_on_unknown_field(self, editor):
        assert editor.set_options("ghost", "a") is None
        assert editor.toggle_validation_rule("ghost", "is_email", True) is None
        assert editor.set_derived("ghost", True) is None

    def test_set_derived_and_config(self, editor):
        dob = editor.add_field("date")
        age = editor.add_field("number")
        revised = editor.set_derived(age.id, True)
        assert revised.is_derived
        assert revised.derived_config.parent_field_ids == []

        revised = editor.set_derived_config(age.id, parent_field_ids=[dob.id], formula="AGE_FROM_DOB")
        assert revised.derived_config.is_age_from_dob
        assert revised.derived_config.parent_field_ids == [dob.id]

    def test_set_derived_keeps_existing_config(self, editor):
        field = editor.add_field("number")
        editor.set_derived(field.id, True)
        editor.set_derived_config(field.id, formula="1 + 1")
        assert editor.set_derived(field.id, True).derived_config.formula == "1 + 1"

    def test_unset_derived_drops_config(self, editor):
        field = editor.add_field("number")
        editor.set_derived(field.id, True)
        revised = editor.set_derived(field.id, False)
        assert revised.is_derived is False
        assert revised.derived_config is None

    def test_config_on_plain_field_rejected(self, editor):
        field = editor.add_field("number")
        with pytest.raises(SchemaError, match="not a derived field"):
            editor.set_derived_config(field.id, formula="1")
