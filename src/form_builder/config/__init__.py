"""Form builder configuration management."""

from form_builder.config.settings import (
    FormBuilderSettings,
    get_settings,
    load_settings,
    reset_settings_cache,
)

__all__ = [
    "FormBuilderSettings",
    "get_settings",
    "load_settings",
    "reset_settings_cache",
]
