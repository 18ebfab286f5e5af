"""Form builder settings schema and loader.

Settings are loaded from a YAML file (``form_builder.yaml`` in the working
directory, or the path in ``FORM_BUILDER_CONFIG``) and then overridden by
environment variables:

- FORM_BUILDER_STORAGE_DIR: directory of the file-backed form store
- FORM_BUILDER_MAX_PASSES: cap on derived-field recomputation passes
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "form_builder.yaml"
CONFIG_PATH_ENV = "FORM_BUILDER_CONFIG"
STORAGE_DIR_ENV = "FORM_BUILDER_STORAGE_DIR"
MAX_PASSES_ENV = "FORM_BUILDER_MAX_PASSES"


class FormBuilderSettings(BaseModel):
    """Settings for the editor, the engine and the form store.

    Attributes:
        storage_dir: Directory holding stored forms.
        default_form_name: Name given to new or unnamed forms.
        default_options: Options seeded into new select/radio fields.
        max_derived_passes: Cap on derived passes (None: the form's field count).
        reject_cyclic_forms: Refuse to save forms with cyclic derived fields.
        strict_derived_cycles: Raise when derived passes do not converge.
    """

    storage_dir: Path = Field(
        default=Path(".form_builder"),
        description="Directory holding stored forms",
    )
    default_form_name: str = Field(
        default="Untitled Form",
        min_length=1,
        description="Name given to new or unnamed forms",
    )
    default_options: List[str] = Field(
        default_factory=lambda: ["Option 1", "Option 2"],
        description="Options seeded into new select/radio fields",
    )
    max_derived_passes: Optional[int] = Field(
        default=None,
        ge=1,
        description="Cap on derived-field passes (default: field count)",
    )
    reject_cyclic_forms: bool = Field(
        default=True,
        description="Refuse to save forms whose derived fields form a cycle",
    )
    strict_derived_cycles: bool = Field(
        default=False,
        description="Raise instead of warning when derived fields do not settle",
    )

    @field_validator("default_options")
    @classmethod
    def validate_default_options(cls, v: List[str]) -> List[str]:
        """Select and radio fields need at least one option."""
        cleaned = [opt.strip() for opt in v if opt.strip()]
        if not cleaned:
            raise ValueError("default_options must contain at least one non-empty option")
        return cleaned


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    storage_dir = os.getenv(STORAGE_DIR_ENV)
    if storage_dir:
        data["storage_dir"] = storage_dir

    max_passes = os.getenv(MAX_PASSES_ENV)
    if max_passes:
        try:
            data["max_derived_passes"] = int(max_passes)
        except ValueError:
            raise ValueError(f"{MAX_PASSES_ENV} must be an integer, got {max_passes!r}")

    return data


def load_settings(config_path: Optional[Path] = None) -> FormBuilderSettings:
    """Load settings from YAML plus environment overrides.

    Args:
        config_path: Optional explicit path to the YAML file. If not
            provided, uses $FORM_BUILDER_CONFIG or ./form_builder.yaml.

    Returns:
        FormBuilderSettings (defaults when no file exists).

    Raises:
        ValueError: If the file exists but contains invalid settings.
    """
    if config_path is None:
        env_path = os.getenv(CONFIG_PATH_ENV)
        config_path = Path(env_path) if env_path else Path.cwd() / DEFAULT_CONFIG_FILENAME

    data: Dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in settings file {config_path}: {e}")

        if loaded is None:
            logger.warning(f"Empty settings file at {config_path}")
        elif not isinstance(loaded, dict):
            raise ValueError(f"Settings file {config_path} must contain a mapping")
        else:
            data = loaded
            logger.debug(f"Loaded settings from {config_path}")
    else:
        logger.debug(f"No settings file found at {config_path}; using defaults")

    data = _apply_env_overrides(data)

    try:
        return FormBuilderSettings.model_validate(data)
    except Exception as e:
        raise ValueError(f"Failed to load settings from {config_path}: {e}")


# Cached settings (loaded once per process)
_cached_settings: Optional[FormBuilderSettings] = None


def get_settings(force_reload: bool = False) -> FormBuilderSettings:
    """Get the current settings (cached).

    Args:
        force_reload: If True, reload from disk even if cached.
    """
    global _cached_settings

    if force_reload or _cached_settings is None:
        _cached_settings = load_settings()

    return _cached_settings


def reset_settings_cache() -> None:
    """Reset the settings cache so the next lookup reloads."""
    global _cached_settings
    _cached_settings = None
