"""
Application settings management.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Callable, Optional
from enum import Enum


DARK_PREFIX = "dark_"


class Theme(Enum):
    """UI theme options."""
    SYSTEM = "system"
    LIGHT = "light"
    DARK = "dark"

    @classmethod
    def from_string(cls, value: str) -> 'Theme':
        """Theme for a name or value, case-insensitive; SYSTEM when unknown."""
        key = (value or '').strip().lower()
        for theme in cls:
            if key in (theme.value, theme.name.lower()):
                return theme
        return cls.SYSTEM


@dataclass
class ComparisonSettings:
    """Settings for the comparison view."""
    sync_scroll: bool = True
    allow_reversion: bool = True
    scroll_sync_suppress_ms: int = 50
    highlight_duration_ms: int = 2000
    revert_feedback_ms: int = 300
    max_compare_chars: int = 2_000_000


@dataclass
class UISettings:
    """User interface settings."""
    theme: Theme = Theme.LIGHT
    font_family: str = "Consolas"
    font_size: int = 10
    window_width: int = 1200
    window_height: int = 800
    window_maximized: bool = False
    recent_files_limit: int = 5


@dataclass
class ColorSettings:
    """Color settings for diff highlighting."""
    added_background: str = "#e6ffec"
    removed_background: str = "#ffebe9"
    modified_background: str = "#fff8c5"
    unchanged_background: str = "#ffffff"

    word_added: str = "#96ff96"
    word_removed: str = "#ff9696"
    word_modified: str = "#ffdc64"

    text_color: str = "#24292e"
    line_number_color: str = "#999999"
    placeholder_color: str = "#6c757d"
    link_color: str = "#0366d6"
    flash_color: str = "#3399ff"

    # Dark theme overrides
    dark_added_background: str = "#1e3c1e"
    dark_removed_background: str = "#3c1e1e"
    dark_modified_background: str = "#3c3c1e"
    dark_unchanged_background: str = "#282828"
    dark_word_added: str = "#326432"
    dark_word_removed: str = "#643232"
    dark_word_modified: str = "#646432"
    dark_text_color: str = "#dcdcdc"

    def for_theme(self, theme: Theme) -> 'ColorSettings':
        """Effective colors for a theme: dark_* fields replace their light counterparts."""
        if theme != Theme.DARK:
            return self
        overrides = {
            f.name[len(DARK_PREFIX):]: getattr(self, f.name)
            for f in fields(self) if f.name.startswith(DARK_PREFIX)
        }
        return replace(self, **overrides)


@dataclass
class ApplicationSettings:
    """Main application settings container."""
    comparison: ComparisonSettings = field(default_factory=ComparisonSettings)
    ui: UISettings = field(default_factory=UISettings)
    colors: ColorSettings = field(default_factory=ColorSettings)

    recent_original_paths: list[str] = field(default_factory=list)
    recent_edited_paths: list[str] = field(default_factory=list)
    last_directory: str = ""


SettingsObserver = Callable[[ApplicationSettings], None]

SECTIONS = {
    'comparison': ComparisonSettings,
    'ui': UISettings,
    'colors': ColorSettings,
}


class SettingsManager:
    """
    Loads and saves ApplicationSettings as JSON.

    Settings are loaded lazily on first access. A missing or unreadable
    file gives the defaults; observers are called after every save.
    """

    def __init__(self, settings_path: Optional[Path] = None):
        self.settings_path = settings_path or self._get_default_path()
        self._settings: Optional[ApplicationSettings] = None
        self._observers: list[SettingsObserver] = []

    @staticmethod
    def _get_default_path() -> Path:
        if os.name == 'nt':
            base = Path(os.environ.get('APPDATA', Path.home()))
            return base / 'ReportDiff' / 'settings.json'
        base = Path(os.environ.get('XDG_CONFIG_HOME', Path.home() / '.config'))
        return base / 'reportdiff' / 'settings.json'

    @property
    def settings(self) -> ApplicationSettings:
        if self._settings is None:
            self._settings = self.load()
        return self._settings

    def load(self) -> ApplicationSettings:
        """Read settings from disk, falling back to defaults."""
        if not self.settings_path.exists():
            logging.debug(f"SettingsManager - No settings at {self.settings_path}, using defaults")
            return ApplicationSettings()

        try:
            data = json.loads(self.settings_path.read_text(encoding='utf-8'))
            return self._from_dict(data)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logging.warning(f"SettingsManager - Using defaults, failed to load {self.settings_path}: {e}")
            return ApplicationSettings()

    def save(self, settings: Optional[ApplicationSettings] = None) -> bool:
        """Write settings to disk; returns False if they could not be written."""
        settings = settings or self._settings
        if settings is None:
            return False

        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)
            self.settings_path.write_text(json.dumps(self._to_dict(settings), indent=2), encoding='utf-8')
        except OSError as e:
            logging.error(f"SettingsManager - Failed to save {self.settings_path}: {e}")
            return False

        self._settings = settings
        self._notify_observers()
        return True

    def reset(self) -> ApplicationSettings:
        """Replace the stored settings with the defaults."""
        self._settings = ApplicationSettings()
        self.save()
        return self._settings

    def add_observer(self, callback: SettingsObserver) -> None:
        self._observers.append(callback)

    def remove_observer(self, callback: SettingsObserver) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify_observers(self) -> None:
        for callback in list(self._observers):
            try:
                callback(self._settings)
            except Exception as e:
                logging.warning(f"SettingsManager - Settings observer failed: {e}")

    def add_recent_path(self, path: str, is_original: bool) -> None:
        """Move a path to the front of the recent original or edited files."""
        settings = self.settings
        attribute = 'recent_original_paths' if is_original else 'recent_edited_paths'

        recent = [path] + [p for p in getattr(settings, attribute) if p != path]
        setattr(settings, attribute, recent[:max(0, settings.ui.recent_files_limit)])
        self.save()

    # === Serialization ===

    @staticmethod
    def _to_dict(settings: ApplicationSettings) -> dict:
        """Plain JSON data; enums are stored by name."""
        def encode(value: Any) -> Any:
            if isinstance(value, Enum):
                return value.name
            if isinstance(value, dict):
                return {key: encode(item) for key, item in value.items()}
            if isinstance(value, list):
                return [encode(item) for item in value]
            return value

        return encode(asdict(settings))

    @staticmethod
    def _section_from_dict(cls: type, values: dict) -> Any:
        """
        Build one settings dataclass.

        Unknown keys are dropped and missing keys keep their defaults.
        Enum fields are read by member name; an unknown name falls back
        to the enum's first member.
        """
        defaults = cls()
        kwargs = {}
        for f in fields(cls):
            if f.name not in values:
                continue
            value = values[f.name]
            default = getattr(defaults, f.name)
            if isinstance(default, Enum):
                enum_class = type(default)
                value = enum_class.__members__.get(str(value), next(iter(enum_class)))
            kwargs[f.name] = value
        return cls(**kwargs)

    def _from_dict(self, data: dict) -> ApplicationSettings:
        sections = {
            name: self._section_from_dict(cls, data.get(name) or {})
            for name, cls in SECTIONS.items()
        }
        return ApplicationSettings(
            **sections,
            recent_original_paths=list(data.get('recent_original_paths', [])),
            recent_edited_paths=list(data.get('recent_edited_paths', [])),
            last_directory=str(data.get('last_directory', '')),
        )
