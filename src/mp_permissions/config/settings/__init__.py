"""Config settings – 12-factor env-based configuration."""
from mp_permissions.config.settings.base import Settings
from mp_permissions.config.settings.loaders import DotenvSettingsLoader, EnvSettingsLoader, SettingsLoader
from mp_permissions.config.settings.permissions import PermissionsSettings

__all__ = ["DotenvSettingsLoader", "EnvSettingsLoader", "PermissionsSettings", "Settings", "SettingsLoader"]
