"""
Report comparison view.

Shows the original and edited report side by side with line and word
highlighting, synchronized scrolling and per-change revert links. The
view never edits text: reverts and resets are emitted as intents for
the content owner, which answers with a new update_comparison call.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from enum import Enum, auto
from typing import Optional

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QSplitter,
    QLabel, QFrame, QPushButton,
)

from reportdiff.core.diff import DiffEngine
from reportdiff.core.models import (
    ChangeStats,
    ComparisonSession,
    DiffResult,
    EDITED_SIDE,
    HighlightedMarkup,
    ORIGINAL_SIDE,
    ResetIntent,
    RevertIntent,
)
from reportdiff.services.settings import ColorSettings, ComparisonSettings
from reportdiff.ui.widgets.diff_pane import DiffPane, REVERT_SCHEME
from reportdiff.ui.widgets.scroll_sync import ScrollSynchronizer
from reportdiff.ui.widgets.stats_bar import ChangeStatsBar


NO_CONTENT_TEXT = "No content to compare"
NO_ORIGINAL_TEXT = "No original content"
NO_EDITED_TEXT = "No edited content"

REVERTABLE_ROW_PATTERN = re.compile(
    r'^(<div class="diff-line diff-(?:added|removed|modified)" data-line="(\d+)">.*)(</div>)$',
    re.MULTILINE
)
REVERT_LINK_PATTERN = re.compile(
    rf' ?<a class="revert-link" href="{REVERT_SCHEME}:\d+">Revert</a>'
)


class ComparisonViewError(RuntimeError):
    """The view has no rendering surface (missing panes or torn down)."""


class ViewState(Enum):
    """Lifecycle of a comparison view."""
    EMPTY = auto()       # No non-empty comparison shown yet
    POPULATED = auto()   # A comparison has been rendered
    TORN_DOWN = auto()   # destroy_view() was called; terminal


def strip_revert_links(markup: str) -> str:
    """Remove every revert link from pane markup."""
    return REVERT_LINK_PATTERN.sub('', markup)


def bind_revert_links(markup: str) -> str:
    """
    Attach a revert link to every added, removed or modified row.

    Existing links are stripped first, so binding twice gives the same
    markup as binding once.
    """
    def add_link(match: re.Match) -> str:
        line_number = int(match.group(2))
        link = f' <a class="revert-link" href="{REVERT_SCHEME}:{line_number}">Revert</a>'
        return f"{match.group(1)}{link}{match.group(3)}"

    return REVERTABLE_ROW_PATTERN.sub(add_link, strip_revert_links(markup))


class ComparisonView(QWidget):
    """
    Two-pane comparison of an original and an edited report.

    Supports:
    - Line and word level highlighting
    - Proportional synchronized scrolling (toggleable)
    - Revert links on changed rows (emits revert_change)
    - Reset of all changes (emits reset_all_changes)
    - Change navigation and statistics
    """

    # Signals
    revert_change = pyqtSignal(object)       # RevertIntent
    reset_all_changes = pyqtSignal(object)   # ResetIntent
    comparison_updated = pyqtSignal(object)  # ChangeStats
    sync_scroll_toggled = pyqtSignal(bool)

    def __init__(
        self,
        parent: Optional[QWidget] = None,
        engine: Optional[DiffEngine] = None,
        settings: Optional[ComparisonSettings] = None,
        colors: Optional[ColorSettings] = None
    ):
        super().__init__(parent)

        self._engine = engine or DiffEngine()
        self._settings = settings or ComparisonSettings()
        self._colors = colors or ColorSettings()

        self._session: Optional[ComparisonSession] = None
        self._sync_preference = self._settings.sync_scroll
        self._state = ViewState.EMPTY
        self._stats: Optional[ChangeStats] = None
        self._markup: Optional[HighlightedMarkup] = None
        self._current_change_index = -1

        self._original_pane: Optional[DiffPane] = None
        self._edited_pane: Optional[DiffPane] = None

        self._setup_ui()
        self._verify_panes()
        self._setup_connections()

    # === Construction ===

    def _setup_ui(self) -> None:
        """Set up the UI."""
        self.setStyleSheet("""
            #ComparisonToolbar QLabel { font-weight: 600; padding: 4px; }
            #PaneHeader { font-weight: 600; padding: 2px 6px; }
        """)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        layout.addWidget(self._create_toolbar())

        self._splitter = QSplitter(Qt.Orientation.Horizontal)
        self._original_pane = self._create_pane(ORIGINAL_SIDE)
        self._edited_pane = self._create_pane(EDITED_SIDE)
        for title, pane in (("Original", self._original_pane), ("Edited", self._edited_pane)):
            if pane is not None:
                self._splitter.addWidget(self._create_pane_panel(title, pane))
        self._splitter.setSizes([500, 500])
        layout.addWidget(self._splitter, 1)

        self._stats_bar = ChangeStatsBar(colors=self._colors)
        layout.addWidget(self._stats_bar)

    def _create_toolbar(self) -> QWidget:
        """Create the toolbar with sync, navigation and reset controls."""
        toolbar = QFrame()
        toolbar.setObjectName("ComparisonToolbar")

        layout = QHBoxLayout(toolbar)
        layout.setContentsMargins(12, 6, 12, 6)

        layout.addWidget(QLabel("Compare Changes"))
        layout.addStretch()

        self._sync_button = QPushButton("Sync Scroll")
        self._sync_button.setCheckable(True)
        self._sync_button.setChecked(self._sync_preference)
        self._sync_button.setToolTip("Scroll both panes together")
        layout.addWidget(self._sync_button)

        self._prev_button = QPushButton("Previous Change")
        layout.addWidget(self._prev_button)

        self._next_button = QPushButton("Next Change")
        layout.addWidget(self._next_button)

        self._reset_button = QPushButton("Reset All Changes")
        self._reset_button.setToolTip("Discard every edit and restore the original report")
        layout.addWidget(self._reset_button)

        return toolbar

    def _create_pane(self, side: str) -> Optional[DiffPane]:
        """Create the rendering surface for one side."""
        return DiffPane(side, colors=self._colors)

    def _create_pane_panel(self, title: str, pane: DiffPane) -> QWidget:
        panel = QFrame()
        panel.setFrameShape(QFrame.Shape.StyledPanel)
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        header = QLabel(title)
        header.setObjectName("PaneHeader")
        layout.addWidget(header)
        layout.addWidget(pane, 1)
        return panel

    def _verify_panes(self) -> None:
        if not isinstance(self._original_pane, DiffPane) or not isinstance(self._edited_pane, DiffPane):
            logging.error("ComparisonView - Comparison panes are missing")
            raise ComparisonViewError("Comparison panes are not available")

    def _setup_connections(self) -> None:
        """Set up signal connections."""
        self._scroll_sync = ScrollSynchronizer(
            self._original_pane.verticalScrollBar(),
            self._edited_pane.verticalScrollBar(),
            suppress_ms=self._settings.scroll_sync_suppress_ms,
            parent=self
        )
        self._scroll_sync.set_enabled(self._sync_preference)

        self._original_pane.revert_requested.connect(self._on_revert_requested)
        self._edited_pane.revert_requested.connect(self._on_revert_requested)

        self._sync_button.toggled.connect(self.set_sync_scroll)
        self._prev_button.clicked.connect(self.goto_prev_change)
        self._next_button.clicked.connect(self.goto_next_change)
        self._reset_button.clicked.connect(self.reset_changes)

    # === Accessors ===

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def session(self) -> Optional[ComparisonSession]:
        return self._session

    @property
    def original_pane(self) -> Optional[DiffPane]:
        return self._original_pane

    @property
    def edited_pane(self) -> Optional[DiffPane]:
        return self._edited_pane

    @property
    def stats_bar(self) -> ChangeStatsBar:
        return self._stats_bar

    @property
    def scroll_synchronizer(self) -> ScrollSynchronizer:
        return self._scroll_sync

    @property
    def is_sync_scroll_enabled(self) -> bool:
        if self._session is not None:
            return self._session.scroll_sync_enabled
        return self._sync_preference

    def get_stats(self) -> Optional[ChangeStats]:
        """Statistics of the current comparison, or None before the first update."""
        return self._stats

    def _panes(self) -> tuple[DiffPane, DiffPane]:
        return self._original_pane, self._edited_pane

    def _ensure_alive(self) -> None:
        if self._state == ViewState.TORN_DOWN:
            raise ComparisonViewError("Comparison view has been torn down")

    # === Comparison ===

    def update_comparison(self, original_text: Optional[str], edited_text: Optional[str]) -> None:
        """
        Compare two texts and render the result.

        Args:
            original_text: The original report (None treated as empty)
            edited_text: The edited report (None treated as empty)

        Raises:
            ComparisonViewError: If the view has been torn down
        """
        self._ensure_alive()

        original_text = original_text or ''
        edited_text = edited_text or ''

        diff = self._engine.compare_texts(original_text, edited_text)
        self._session = ComparisonSession(
            original_text=original_text,
            edited_text=edited_text,
            current_diff=diff,
            scroll_sync_enabled=self._sync_preference,
        )
        self._current_change_index = -1

        if diff.is_empty:
            self._markup = None
            for pane in self._panes():
                pane.show_placeholder(NO_CONTENT_TEXT)
        else:
            self._markup = self._engine.generate_highlighted_html(diff)
            self._render_markup()
            self._state = ViewState.POPULATED

        self._stats = self._engine.get_change_stats(diff)
        self._stats_bar.set_stats(self._stats)
        self._update_navigation(diff)

        logging.debug(f"ComparisonView - Comparison updated ({self._stats})")
        self.comparison_updated.emit(self._stats)

    def _render_markup(self) -> None:
        """Load the current markup into both panes, keeping scroll positions."""
        positions = [pane.verticalScrollBar().value() for pane in self._panes()]

        sides = (
            (self._original_pane, self._markup.original_html, NO_ORIGINAL_TEXT),
            (self._edited_pane, self._markup.edited_html, NO_EDITED_TEXT),
        )
        for pane, markup, placeholder in sides:
            if not markup:
                pane.show_placeholder(placeholder)
            elif self._settings.allow_reversion:
                pane.set_markup(bind_revert_links(markup))
            else:
                pane.set_markup(strip_revert_links(markup))

        for pane, value in zip(self._panes(), positions):
            pane.verticalScrollBar().setValue(value)

    def _update_navigation(self, diff: DiffResult) -> None:
        has_changes = diff.has_changes
        self._prev_button.setEnabled(has_changes)
        self._next_button.setEnabled(has_changes)

    # === Settings ===

    def apply_settings(
        self,
        settings: ComparisonSettings,
        colors: Optional[ColorSettings] = None
    ) -> None:
        """Apply new comparison settings and re-render the current result."""
        self._ensure_alive()
        self._settings = settings
        if colors is not None:
            self._colors = colors
            for pane in self._panes():
                pane.set_colors(colors)
        self._scroll_sync.set_suppress_interval(settings.scroll_sync_suppress_ms)
        if self._markup is not None:
            self._render_markup()

    # === Scroll synchronization ===

    def toggle_sync_scroll(self) -> bool:
        """Flip synchronized scrolling; returns the new setting."""
        enabled = not self.is_sync_scroll_enabled
        self.set_sync_scroll(enabled)
        return enabled

    def set_sync_scroll(self, enabled: bool) -> None:
        """Enable/disable synchronized scrolling."""
        self._ensure_alive()
        enabled = bool(enabled)
        changed = enabled != self.is_sync_scroll_enabled

        self._sync_preference = enabled
        if self._session is not None:
            self._session = dataclasses.replace(self._session, scroll_sync_enabled=enabled)
        self._scroll_sync.set_enabled(enabled)

        self._sync_button.blockSignals(True)
        self._sync_button.setChecked(enabled)
        self._sync_button.blockSignals(False)

        if changed:
            logging.debug(f"ComparisonView - Scroll sync {'enabled' if enabled else 'disabled'}")
            self.sync_scroll_toggled.emit(enabled)

    # === Revert / reset ===

    def _on_revert_requested(self, line_number: int) -> None:
        if self._state != ViewState.TORN_DOWN:
            self.revert_change(line_number)

    def revert_change(self, line_number: int) -> bool:
        """
        Ask the content owner to undo the change shown on a row.

        Args:
            line_number: Row line number (1-based)

        Returns:
            True if a revert intent was emitted
        """
        self._ensure_alive()

        if not self._settings.allow_reversion:
            return False

        diff = self._session.current_diff if self._session else None
        change = diff.find_change(line_number) if diff else None
        if change is None or not change.is_change:
            logging.warning(f"ComparisonView - No change to revert at line {line_number}")
            return False

        intent = RevertIntent(change=change, line_number=line_number, change_kind=change.kind)
        logging.info(f"ComparisonView - Revert requested for {change.kind.value} line {line_number}")
        self.revert_change.emit(intent)

        # The owner may already have re-rendered; acknowledge on the current rows
        if self._state != ViewState.TORN_DOWN:
            for pane in self._panes():
                pane.flash_row(line_number, self._settings.revert_feedback_ms)
        return True

    def reset_changes(self) -> None:
        """Ask the content owner to discard every edit."""
        self._ensure_alive()
        original_text = self._session.original_text if self._session else ''
        logging.info("ComparisonView - Reset of all changes requested")
        self.reset_all_changes.emit(ResetIntent(original_text=original_text))

    # === Navigation ===

    def scroll_to_line(self, line_number: int) -> bool:
        """
        Scroll every pane holding a row for a line number to it and highlight it.

        Returns:
            True if any pane holds the row
        """
        self._ensure_alive()
        found = False
        for pane in self._panes():
            if pane.scroll_to_row(line_number):
                pane.highlight_row(line_number, self._settings.highlight_duration_ms)
                found = True
        return found

    def changed_line_numbers(self) -> list[int]:
        if self._session is None or self._session.current_diff is None:
            return []
        return self._session.current_diff.changed_line_numbers()

    def goto_next_change(self) -> Optional[int]:
        """Navigate to the next change (wraps around); returns its line number."""
        positions = self.changed_line_numbers()
        if not positions:
            return None

        self._current_change_index += 1
        if self._current_change_index >= len(positions):
            self._current_change_index = 0

        return self._goto_change(positions[self._current_change_index])

    def goto_prev_change(self) -> Optional[int]:
        """Navigate to the previous change (wraps around); returns its line number."""
        positions = self.changed_line_numbers()
        if not positions:
            return None

        self._current_change_index -= 1
        if self._current_change_index < 0:
            self._current_change_index = len(positions) - 1

        return self._goto_change(positions[self._current_change_index])

    def _goto_change(self, line_number: int) -> int:
        self.scroll_to_line(line_number)
        return line_number

    # === Teardown ===

    def destroy_view(self) -> None:
        """Release listeners, timers and content. The view cannot be reused."""
        if self._state == ViewState.TORN_DOWN:
            return

        self._scroll_sync.detach()
        for pane in self._panes():
            pane.stop_timers()
            pane.clear_pane()
        self.setStyleSheet('')

        for button in (self._sync_button, self._prev_button, self._next_button, self._reset_button):
            button.setEnabled(False)

        self._session = None
        self._markup = None
        self._stats = None
        self._stats_bar.set_stats(None)
        self._state = ViewState.TORN_DOWN
        logging.debug("ComparisonView - View torn down")
