import os

# Widgets are created without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from reportdiff.core.diff import DiffEngine
from reportdiff.services.settings import SettingsManager


@pytest.fixture
def engine():
    return DiffEngine()


@pytest.fixture
def settings_manager(tmp_path):
    return SettingsManager(tmp_path / "config" / "settings.json")
