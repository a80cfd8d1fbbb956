"""
Main application window.

Provides the primary UI container with:
- Menu bar
- Editor and Comparison tabs
- Status bar

The window owns the ContentState: revert and reset intents from the
comparison view are applied there, and every state change refreshes
the editor and the comparison.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PyQt6.QtCore import QTimer, pyqtSlot
from PyQt6.QtGui import QAction, QCloseEvent, QFont, QKeySequence
from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QPlainTextEdit, QTabWidget,
    QStatusBar, QFileDialog, QMessageBox, QLabel,
)

from reportdiff.core.content_state import ContentState
from reportdiff.core.models import ChangeStats, ResetIntent, RevertIntent
from reportdiff.services.file_io import FileIOService
from reportdiff.services.settings import ApplicationSettings, SettingsManager
from reportdiff.ui.comparison_view import ComparisonView, ViewState


APP_TITLE = "ReportDiff"
REPORT_FILE_FILTER = "Text reports (*.txt *.md *.markdown);;All files (*)"


class MainWindow(QMainWindow):
    """
    Main application window.

    Hosts the report editor and the comparison view and applies the
    comparison view's intents to the shared content state.
    """

    # Delay before editor keystrokes are committed to the content state
    EDITOR_COMMIT_DELAY_MS = 400

    def __init__(
        self,
        parent: Optional[QWidget] = None,
        settings_manager: Optional[SettingsManager] = None,
        file_io: Optional[FileIOService] = None
    ):
        super().__init__(parent)

        self._settings_manager = settings_manager or SettingsManager()
        self._settings = self._settings_manager.settings
        self._file_io = file_io or FileIOService()

        self._content_state = ContentState()
        self._original_path: Optional[Path] = None
        self._edited_path: Optional[Path] = None
        # Encoding and BOM flag of the loaded edited file
        self._edited_format: Optional[tuple[str, bool]] = None
        self._updating_editor = False

        self._editor_timer = QTimer(self)
        self._editor_timer.setSingleShot(True)
        self._editor_timer.setInterval(self.EDITOR_COMMIT_DELAY_MS)
        self._editor_timer.timeout.connect(self._commit_editor_text)

        # Register for settings changes
        self._settings_manager.add_observer(self._on_settings_changed)
        self._content_state.add_observer(self._on_content_changed)

        self._setup_ui()
        self._setup_menus()
        self._setup_statusbar()
        self._setup_connections()
        self._load_settings()
        self._update_title()

    # === Setup ===

    def _setup_ui(self) -> None:
        """Set up the main UI layout."""
        self.setMinimumSize(800, 600)

        self._tabs = QTabWidget()
        self.setCentralWidget(self._tabs)

        self._editor = QPlainTextEdit()
        self._editor.setPlaceholderText("Open an original report to start editing")
        self._tabs.addTab(self._editor, "Editor")

        self._comparison_view = ComparisonView(
            settings=self._settings.comparison,
            colors=self._settings.colors.for_theme(self._settings.ui.theme)
        )
        self._tabs.addTab(self._comparison_view, "Comparison")

    def _setup_menus(self) -> None:
        """Set up the menu bar."""
        menubar = self.menuBar()

        # File menu
        file_menu = menubar.addMenu("&File")

        self._action_open_original = QAction("Open &Original...", self)
        self._action_open_original.setShortcut(QKeySequence("Ctrl+O"))
        self._action_open_original.triggered.connect(self._on_open_original)
        file_menu.addAction(self._action_open_original)

        self._action_open_edited = QAction("Open &Edited...", self)
        self._action_open_edited.setShortcut(QKeySequence("Ctrl+Shift+O"))
        self._action_open_edited.triggered.connect(self._on_open_edited)
        file_menu.addAction(self._action_open_edited)

        file_menu.addSeparator()

        self._action_save_as = QAction("Save Edited &As...", self)
        self._action_save_as.setShortcut(QKeySequence.StandardKey.SaveAs)
        self._action_save_as.triggered.connect(self._on_save_as)
        file_menu.addAction(self._action_save_as)

        file_menu.addSeparator()

        self._action_exit = QAction("&Quit", self)
        self._action_exit.setShortcut(QKeySequence.StandardKey.Quit)
        self._action_exit.triggered.connect(self.close)
        file_menu.addAction(self._action_exit)

        # Edit menu
        edit_menu = menubar.addMenu("&Edit")

        self._action_reset = QAction("&Reset All Changes", self)
        self._action_reset.triggered.connect(self._on_reset_requested)
        edit_menu.addAction(self._action_reset)

        # View menu
        view_menu = menubar.addMenu("&View")

        self._action_sync_scroll = QAction("&Synchronized Scrolling", self)
        self._action_sync_scroll.setCheckable(True)
        self._action_sync_scroll.setChecked(self._comparison_view.is_sync_scroll_enabled)
        self._action_sync_scroll.toggled.connect(self._comparison_view.set_sync_scroll)
        view_menu.addAction(self._action_sync_scroll)

        # Navigate menu
        navigate_menu = menubar.addMenu("&Navigate")

        self._action_next_change = QAction("&Next Change", self)
        self._action_next_change.setShortcut(QKeySequence("F8"))
        self._action_next_change.triggered.connect(self._on_next_change)
        navigate_menu.addAction(self._action_next_change)

        self._action_prev_change = QAction("&Previous Change", self)
        self._action_prev_change.setShortcut(QKeySequence("Shift+F8"))
        self._action_prev_change.triggered.connect(self._on_prev_change)
        navigate_menu.addAction(self._action_prev_change)

    def _setup_statusbar(self) -> None:
        """Set up the status bar."""
        self._statusbar = QStatusBar()
        self.setStatusBar(self._statusbar)

        self._status_label = QLabel("Ready")
        self._statusbar.addWidget(self._status_label, 1)

        self._stats_label = QLabel()
        self._statusbar.addPermanentWidget(self._stats_label)

    def _setup_connections(self) -> None:
        """Set up signal connections."""
        self._editor.textChanged.connect(self._on_editor_text_changed)
        self._tabs.currentChanged.connect(self._on_tab_changed)

        self._comparison_view.revert_change.connect(self._on_revert_change)
        self._comparison_view.reset_all_changes.connect(self._on_reset_all_changes)
        self._comparison_view.comparison_updated.connect(self._on_comparison_updated)
        self._comparison_view.sync_scroll_toggled.connect(self._on_sync_scroll_toggled)

    def _load_settings(self) -> None:
        """Load application settings."""
        ui = self._settings.ui
        if ui.window_maximized:
            self.showMaximized()
        else:
            self.resize(ui.window_width, ui.window_height)

        font = QFont(ui.font_family, ui.font_size)
        font.setStyleHint(QFont.StyleHint.Monospace)
        self._editor.setFont(font)
        for pane in (self._comparison_view.original_pane, self._comparison_view.edited_pane):
            pane.set_font_settings(ui.font_family, ui.font_size)

    def _save_settings(self) -> None:
        """Save application settings."""
        self._settings.ui.window_width = self.width()
        self._settings.ui.window_height = self.height()
        self._settings.ui.window_maximized = self.isMaximized()
        self._settings_manager.save()

    # === Accessors ===

    @property
    def content_state(self) -> ContentState:
        return self._content_state

    @property
    def comparison_view(self) -> ComparisonView:
        return self._comparison_view

    @property
    def editor(self) -> QPlainTextEdit:
        return self._editor

    def status_text(self) -> str:
        return self._status_label.text()

    # === File operations ===

    def load_files(self, original_path: Optional[str], edited_path: Optional[str] = None) -> bool:
        """Load the original and (optionally) edited reports."""
        if original_path and not self.open_original(original_path):
            return False
        if edited_path and not self.open_edited(edited_path):
            return False
        return True

    def open_original(self, path: Path | str) -> bool:
        """Load the original report from a file."""
        path = Path(path)
        result = self._file_io.read_file(path)
        if not result.success:
            self._show_error("Open Original Report", result.error or f"Could not read {path}")
            return False

        content = result.content
        self._original_path = path
        self._set_status(f"Opened original: {path.name}")
        self._content_state.set_original_content(content.content, {
            'path': str(path),
            'encoding': content.encoding,
            'bom': content.bom,
            'size': content.size,
        })
        self._settings_manager.add_recent_path(str(path), is_original=True)
        return True

    def open_edited(self, path: Path | str) -> bool:
        """Load an edited report from a file."""
        path = Path(path)
        result = self._file_io.read_file(path)
        if not result.success:
            self._show_error("Open Edited Report", result.error or f"Could not read {path}")
            return False

        self._edited_path = path
        self._edited_format = (result.content.encoding, result.content.bom)
        self._set_status(f"Opened edited: {path.name}")
        self._content_state.set_edited_content(result.content.content)
        self._settings_manager.add_recent_path(str(path), is_original=False)
        return True

    def save_edited(self, path: Path | str) -> bool:
        """Write the edited report to a file."""
        self._commit_editor_text()
        path = Path(path)
        text = self._content_state.edited_text
        encoding, bom = self._save_format(text)
        result = self._file_io.write_file(path, text, encoding=encoding, bom=bom)
        if not result.success:
            self._show_error("Save Edited Report", result.error or f"Could not write {path}")
            return False

        self._edited_path = path
        self._content_state.save()
        self._settings_manager.add_recent_path(str(path), is_original=False)
        self._set_status(f"Saved {path.name} ({result.bytes_written} bytes)")
        return True

    def _save_format(self, text: str) -> tuple[str, bool]:
        """Encoding and BOM flag to save with, taken from the loaded reports."""
        metadata = self._content_state.metadata
        encoding, bom = self._edited_format or (
            metadata.get('encoding') or 'utf-8', bool(metadata.get('bom')))
        try:
            text.encode(encoding)
        except (UnicodeEncodeError, LookupError):
            logging.warning(f"MainWindow - Edited text does not fit {encoding}, saving as utf-8")
            return 'utf-8', False
        return encoding, bom

    def _browse_directory(self) -> str:
        return self._settings.last_directory or str(Path.home())

    def _remember_directory(self, path: str) -> None:
        self._settings.last_directory = str(Path(path).parent)

    @pyqtSlot()
    def _on_open_original(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Open Original Report", self._browse_directory(), REPORT_FILE_FILTER
        )
        if path:
            self._remember_directory(path)
            self.open_original(path)

    @pyqtSlot()
    def _on_open_edited(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Open Edited Report", self._browse_directory(), REPORT_FILE_FILTER
        )
        if path:
            self._remember_directory(path)
            self.open_edited(path)

    @pyqtSlot()
    def _on_save_as(self) -> None:
        default = str(self._edited_path or Path(self._browse_directory()) / "edited_report.txt")
        path, _ = QFileDialog.getSaveFileName(self, "Save Edited Report", default, REPORT_FILE_FILTER)
        if path:
            self._remember_directory(path)
            self.save_edited(path)

    # === Editor ===

    def _on_editor_text_changed(self) -> None:
        if not self._updating_editor:
            self._editor_timer.start()

    def _commit_editor_text(self) -> None:
        """Push pending editor text into the content state."""
        self._editor_timer.stop()
        text = self._editor.toPlainText()
        if text != self._content_state.edited_text:
            self._content_state.set_edited_content(text)

    def _set_editor_text(self, text: str) -> None:
        if self._editor.toPlainText() == text:
            return
        self._updating_editor = True
        try:
            self._editor.setPlainText(text)
        finally:
            self._updating_editor = False

    def _on_tab_changed(self, index: int) -> None:
        if self._tabs.widget(index) is self._comparison_view:
            self._commit_editor_text()

    # === Content state ===

    def _on_content_changed(self, event_type: str, state: ContentState) -> None:
        """Refresh the editor and the comparison after a state change."""
        self._set_editor_text(state.edited_text)
        if event_type != 'save':
            self._refresh_comparison()
        self._update_title()

    def _refresh_comparison(self) -> None:
        state = self._content_state
        limit = self._settings.comparison.max_compare_chars
        size = len(state.original_text) + len(state.edited_text)
        if size > limit:
            logging.warning(f"MainWindow - Skipping comparison of {size} characters (limit {limit})")
            self._set_status(f"Reports too large to compare ({size:,} characters, limit {limit:,})")
            return
        self._comparison_view.update_comparison(state.original_text, state.edited_text)

    def _update_title(self) -> None:
        title = APP_TITLE
        if self._original_path is not None:
            title = f"{self._original_path.name} - {APP_TITLE}"
        if self._content_state.is_dirty:
            title = f"*{title}"
        self.setWindowTitle(title)

    # === Comparison intents ===

    def _on_revert_change(self, intent: RevertIntent) -> None:
        if self._content_state.apply_revert(intent):
            self._set_status(f"Reverted {intent.change_kind.value} line {intent.line_number}")
        else:
            self._set_status(f"Line {intent.line_number} has changed since the comparison; nothing reverted")

    def _on_reset_all_changes(self, intent: ResetIntent) -> None:
        if self._content_state.apply_reset(intent):
            self._set_status("All changes reset to the original report")
        else:
            self._set_status("Original report has changed; reset ignored")

    @pyqtSlot()
    def _on_reset_requested(self) -> None:
        self._commit_editor_text()
        if self._content_state.is_dirty:
            reply = QMessageBox.question(
                self,
                "Reset All Changes",
                "Discard every edit and restore the original report?",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
            )
            if reply != QMessageBox.StandardButton.Yes:
                return
        self._comparison_view.reset_changes()

    def _on_comparison_updated(self, stats: ChangeStats) -> None:
        total = stats.total_changes
        if total == 0:
            self._stats_label.setText("No changes")
        else:
            self._stats_label.setText(
                f"{total} change{'s' if total != 1 else ''} "
                f"(+{stats.added_lines} -{stats.removed_lines} ~{stats.modified_lines})"
            )

    def _on_sync_scroll_toggled(self, enabled: bool) -> None:
        self._action_sync_scroll.blockSignals(True)
        self._action_sync_scroll.setChecked(enabled)
        self._action_sync_scroll.blockSignals(False)
        self._settings.comparison.sync_scroll = enabled

    # === Navigation ===

    @pyqtSlot()
    def _on_next_change(self) -> None:
        self._tabs.setCurrentWidget(self._comparison_view)
        line_number = self._comparison_view.goto_next_change()
        if line_number is not None:
            self._set_status(f"Change at line {line_number}")

    @pyqtSlot()
    def _on_prev_change(self) -> None:
        self._tabs.setCurrentWidget(self._comparison_view)
        line_number = self._comparison_view.goto_prev_change()
        if line_number is not None:
            self._set_status(f"Change at line {line_number}")

    # === Settings ===

    def _on_settings_changed(self, settings: ApplicationSettings) -> None:
        self._settings = settings
        if self._comparison_view.state != ViewState.TORN_DOWN:
            self._comparison_view.apply_settings(
                settings.comparison,
                settings.colors.for_theme(settings.ui.theme)
            )

    # === Helpers ===

    def _set_status(self, message: str) -> None:
        self._status_label.setText(message)

    def _show_error(self, title: str, message: str) -> None:
        logging.error(f"MainWindow - {title}: {message}")
        QMessageBox.critical(self, title, message)

    def closeEvent(self, event: QCloseEvent) -> None:
        """Handle window close."""
        self._commit_editor_text()
        if self._content_state.is_dirty:
            reply = QMessageBox.question(
                self,
                "Unsaved Changes",
                "The edited report has unsaved changes. Close anyway?",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
            )
            if reply == QMessageBox.StandardButton.No:
                event.ignore()
                return

        self._settings_manager.remove_observer(self._on_settings_changed)
        self._save_settings()
        self._comparison_view.destroy_view()
        event.accept()
