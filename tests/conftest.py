"""
Pytest fixtures and configuration for form builder tests.
Provides sample schemas and stores shared across test modules.
"""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from form_builder.config.settings import reset_settings_cache
from form_builder.schemas.form_schema import FormSchema
from form_builder.storage.backends import MemoryBackend
from form_builder.storage.form_store import FormStore


def make_schema(fields, form_id="form_test", name="Test Form"):
    """Build a FormSchema from plain field dicts (camelCase or snake_case keys)."""
    return FormSchema.model_validate(
        {
            "id": form_id,
            "name": name,
            "createdAt": datetime(2024, 1, 1, tzinfo=timezone.utc).isoformat(),
            "fields": fields,
        }
    )


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch, tmp_path):
    """Isolate settings from the developer's environment and cwd."""
    for name in ("FORM_BUILDER_CONFIG", "FORM_BUILDER_STORAGE_DIR", "FORM_BUILDER_MAX_PASSES"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def registration_schema():
    """Registration form: name, email, password, dob with derived age."""
    return make_schema(
        [
            {
                "id": "name",
                "type": "text",
                "label": "Full name",
                "required": True,
                "validationRules": [{"type": "max_length", "value": 20}],
            },
            {
                "id": "email",
                "type": "email",
                "label": "Email",
                "required": True,
                "validationRules": [{"type": "is_email"}],
            },
            {
                "id": "password",
                "type": "password",
                "label": "Password",
                "validationRules": [{"type": "custom_password"}],
            },
            {"id": "dob", "type": "date", "label": "Date of birth"},
            {
                "id": "age",
                "type": "number",
                "label": "Age",
                "isDerived": True,
                "derivedConfig": {"parentFieldIds": ["dob"], "formula": "AGE_FROM_DOB"},
            },
            {"id": "terms", "type": "checkbox", "label": "Accept terms", "defaultValue": "false"},
        ],
        form_id="form_registration",
        name="Registration",
    )


@pytest.fixture
def arithmetic_schema():
    """Two number inputs and a derived total."""
    return make_schema(
        [
            {"id": "a", "type": "number", "label": "A"},
            {"id": "b", "type": "number", "label": "B"},
            {
                "id": "total",
                "type": "number",
                "label": "Total",
                "isDerived": True,
                "derivedConfig": {"parentFieldIds": ["a", "b"], "formula": "{a} + {b} * 2"},
            },
        ],
        form_id="form_arithmetic",
        name="Arithmetic",
    )


@pytest.fixture
def cyclic_schema():
    """Two derived fields that depend on each other."""
    return make_schema(
        [
            {
                "id": "x",
                "type": "number",
                "isDerived": True,
                "derivedConfig": {"parentFieldIds": ["y"], "formula": "{y} + 1"},
            },
            {
                "id": "y",
                "type": "number",
                "isDerived": True,
                "derivedConfig": {"parentFieldIds": ["x"], "formula": "{x} + 1"},
            },
        ],
        form_id="form_cyclic",
        name="Cyclic",
    )


@pytest.fixture
def memory_store():
    return FormStore(MemoryBackend())


@pytest.fixture
def schema_file(tmp_path, arithmetic_schema) -> Path:
    """Arithmetic schema written to a JSON file."""
    from form_builder.schemas.form_schema import dump_schema

    path = tmp_path / "arithmetic.json"
    path.write_text(json.dumps(dump_schema(arithmetic_schema), indent=2), encoding="utf-8")
    return path


@pytest.fixture
def schema_factory():
    """Factory for ad-hoc schemas: ``schema_factory([field, ...])``."""
    return make_schema
