import codecs

import pytest
from PyQt6.QtWidgets import QMessageBox

from reportdiff.core.models import ChangeKind, RevertIntent
from reportdiff.ui.main_window import MainWindow


ORIGINAL = "Quarterly report\nRevenue grew\nCosts fell"
EDITED = "Quarterly report\nRevenue rose sharply\nCosts fell\nOutlook positive"


@pytest.fixture
def reports(tmp_path):
    original = tmp_path / "original.txt"
    edited = tmp_path / "edited.txt"
    original.write_text(ORIGINAL, encoding="utf-8")
    edited.write_text(EDITED, encoding="utf-8")
    return original, edited


@pytest.fixture
def window(qtbot, monkeypatch, settings_manager):
    # Close prompts always confirm
    monkeypatch.setattr(QMessageBox, "question", lambda *args, **kwargs: QMessageBox.StandardButton.Yes)
    main_window = MainWindow(settings_manager=settings_manager)
    yield main_window
    main_window.close()
    main_window.deleteLater()


def test_open_original_starts_clean(window, reports):
    original, _ = reports

    assert window.open_original(original) is True

    assert window.editor.toPlainText() == ORIGINAL
    assert window.content_state.is_dirty is False
    assert window.comparison_view.get_stats().total_changes == 0
    assert window.windowTitle() == "original.txt - ReportDiff"
    assert window.status_text() == "Opened original: original.txt"


def test_open_edited_compares(window, reports):
    assert window.load_files(*reports) is True

    assert window.content_state.edited_text == EDITED
    assert window.editor.toPlainText() == EDITED
    assert window.windowTitle().startswith("*")

    stats = window.comparison_view.get_stats()
    assert stats.modified_lines == 1
    assert stats.added_lines == 1


def test_revert_updates_editor_and_comparison(window, reports):
    window.load_files(*reports)

    assert window.comparison_view.revert_change(2) is True

    expected = "Quarterly report\nRevenue grew\nCosts fell\nOutlook positive"
    assert window.content_state.edited_text == expected
    assert window.editor.toPlainText() == expected
    assert window.comparison_view.session.edited_text == expected
    assert window.comparison_view.get_stats().modified_lines == 0
    assert window.status_text() == "Reverted modified line 2"


def test_stale_revert_is_ignored(window, reports):
    window.load_files(*reports)
    change = window.comparison_view.session.current_diff.find_change(2)
    intent = RevertIntent(change=change, line_number=2, change_kind=ChangeKind.MODIFIED)

    window.content_state.set_edited_content("Quarterly report\nRevenue fell\nCosts fell")
    window.comparison_view.revert_change.emit(intent)

    assert window.content_state.edited_text == "Quarterly report\nRevenue fell\nCosts fell"
    assert window.status_text() == "Line 2 has changed since the comparison; nothing reverted"


def test_reset_restores_original(window, reports):
    window.load_files(*reports)

    window.comparison_view.reset_changes()

    assert window.content_state.edited_text == ORIGINAL
    assert window.content_state.is_dirty is False
    assert window.editor.toPlainText() == ORIGINAL
    assert window.comparison_view.get_stats().total_changes == 0
    assert window.status_text() == "All changes reset to the original report"


def test_editor_typing_is_committed(window, reports, qtbot):
    window.open_original(reports[0])

    window.editor.setPlainText("Quarterly report\nRevenue doubled\nCosts fell")

    qtbot.waitUntil(lambda: window.content_state.is_dirty, timeout=2000)
    assert window.comparison_view.get_stats().modified_lines == 1


def test_save_edited(window, reports, tmp_path):
    window.load_files(*reports)
    target = tmp_path / "saved" / "report.txt"

    assert window.save_edited(target) is True

    assert target.read_text(encoding="utf-8") == EDITED
    assert window.content_state.is_dirty is False
    assert not window.windowTitle().startswith("*")
    assert window.content_state.edited_text == EDITED


def test_save_keeps_report_encoding(window, tmp_path):
    original = tmp_path / "original.txt"
    original.write_bytes(("\ufeff" + ORIGINAL).encode("utf-16-le"))
    window.open_original(original)
    target = tmp_path / "saved.txt"

    assert window.save_edited(target) is True

    data = target.read_bytes()
    assert data.startswith(codecs.BOM_UTF16_LE)
    assert data[len(codecs.BOM_UTF16_LE):].decode("utf-16-le") == ORIGINAL


def test_save_keeps_latin1_edited_report(window, reports, tmp_path):
    edited = tmp_path / "edited-latin1.txt"
    text = "Quarterly report\nRevenue grew in M\xfcnchen and Z\xfcrich\nCaf\xe9 sales r\xe9sum\xe9 for the ann\xe9e"
    edited.write_bytes(text.encode("latin-1"))
    window.open_original(reports[0])
    window.open_edited(edited)
    target = tmp_path / "saved.txt"

    assert window.save_edited(target) is True

    assert target.read_bytes() == edited.read_bytes()


def test_open_missing_file_reports_error(window, tmp_path, monkeypatch):
    errors = []
    monkeypatch.setattr(QMessageBox, "critical", lambda parent, title, message: errors.append(message))

    assert window.open_original(tmp_path / "missing.txt") is False

    assert len(errors) == 1
    assert "not found" in errors[0]
    assert window.content_state.original_text == ""


def test_oversize_reports_are_not_compared(qtbot, monkeypatch, settings_manager, reports):
    monkeypatch.setattr(QMessageBox, "question", lambda *args, **kwargs: QMessageBox.StandardButton.Yes)
    settings_manager.settings.comparison.max_compare_chars = 10
    main_window = MainWindow(settings_manager=settings_manager)
    qtbot.addWidget(main_window)

    main_window.open_original(reports[0])

    assert main_window.comparison_view.get_stats() is None
    assert "too large to compare" in main_window.status_text()


def test_sync_toggle_is_remembered(window, settings_manager):
    window.comparison_view.toggle_sync_scroll()

    assert settings_manager.settings.comparison.sync_scroll is False


def test_close_saves_settings(window, settings_manager):
    window.close()

    assert settings_manager.settings_path.exists()
    assert window.comparison_view.state.name == "TORN_DOWN"
