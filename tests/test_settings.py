import json

from reportdiff.services.settings import (
    ApplicationSettings,
    ColorSettings,
    SettingsManager,
    Theme,
)


def test_defaults_when_file_missing(settings_manager):
    settings = settings_manager.settings

    assert settings.comparison.sync_scroll is True
    assert settings.comparison.allow_reversion is True
    assert settings.comparison.scroll_sync_suppress_ms == 50
    assert settings.comparison.highlight_duration_ms == 2000
    assert settings.comparison.revert_feedback_ms == 300
    assert settings.ui.theme == Theme.LIGHT


def test_save_and_load_round_trip(settings_manager):
    settings = settings_manager.settings
    settings.comparison.sync_scroll = False
    settings.ui.theme = Theme.DARK
    settings.colors.added_background = "#00ff00"

    assert settings_manager.save() is True

    data = json.loads(settings_manager.settings_path.read_text(encoding="utf-8"))
    assert data["ui"]["theme"] == "DARK"

    loaded = SettingsManager(settings_manager.settings_path).settings
    assert loaded.comparison.sync_scroll is False
    assert loaded.ui.theme == Theme.DARK
    assert loaded.colors.added_background == "#00ff00"


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{ not json", encoding="utf-8")

    assert SettingsManager(path).settings == ApplicationSettings()


def test_unknown_values_are_tolerated(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({
        "comparison": {"sync_scroll": False, "obsolete_option": 1},
        "ui": {"theme": "PURPLE"},
    }), encoding="utf-8")

    settings = SettingsManager(path).settings

    assert settings.comparison.sync_scroll is False
    assert settings.ui.theme == Theme.SYSTEM  # first member


def test_observers_notified_on_save(settings_manager):
    seen = []
    settings_manager.add_observer(seen.append)

    settings_manager.save(settings_manager.settings)
    assert seen == [settings_manager.settings]

    settings_manager.remove_observer(seen.append)
    settings_manager.save()
    assert len(seen) == 1


def test_reset_restores_defaults(settings_manager):
    settings_manager.settings.comparison.revert_feedback_ms = 999
    settings_manager.save()

    settings = settings_manager.reset()

    assert settings.comparison.revert_feedback_ms == 300
    assert SettingsManager(settings_manager.settings_path).settings.comparison.revert_feedback_ms == 300


def test_recent_paths_are_limited(settings_manager):
    settings_manager.settings.ui.recent_files_limit = 2
    for name in ("a.txt", "b.txt", "c.txt", "b.txt"):
        settings_manager.add_recent_path(name, is_original=True)

    assert settings_manager.settings.recent_original_paths == ["b.txt", "c.txt"]


def test_theme_from_string():
    assert Theme.from_string("dark") == Theme.DARK
    assert Theme.from_string("LIGHT") == Theme.LIGHT
    assert Theme.from_string("unknown") == Theme.SYSTEM


def test_dark_colors():
    colors = ColorSettings()

    assert colors.for_theme(Theme.LIGHT) is colors
    dark = colors.for_theme(Theme.DARK)
    assert dark.added_background == colors.dark_added_background
    assert dark.text_color == colors.dark_text_color
