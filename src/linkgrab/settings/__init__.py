"""User settings for linkgrab."""

from .store import SettingsListener, SettingsStore

__all__ = ["SettingsListener", "SettingsStore"]
