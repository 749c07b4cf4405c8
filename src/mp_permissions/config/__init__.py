"""Config – 12-factor settings and loaders."""

from mp_permissions.config.settings import (
    DotenvSettingsLoader,
    EnvSettingsLoader,
    PermissionsSettings,
    Settings,
    SettingsLoader,
)
from mp_permissions.config.validation import ConfigError, InvalidSettingValueError, MissingRequiredSettingError

__all__ = [
    "ConfigError",
    "DotenvSettingsLoader",
    "EnvSettingsLoader",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
    "PermissionsSettings",
    "Settings",
    "SettingsLoader",
]
