"""
Read-only rich-text pane for one side of a comparison.

Provides:
- Rendering of row markup with a generated style sheet
- Row lookup by line number (via the gutter anchors)
- Scroll-to-row with a timed highlight
- A short flash acknowledging a revert click
- Revert link activation as a signal
"""

from __future__ import annotations

import html
import logging
from typing import Optional

from PyQt6.QtCore import QTimer, QUrl, pyqtSignal
from PyQt6.QtGui import QColor, QFont, QTextBlock, QTextCursor, QTextFormat
from PyQt6.QtWidgets import QTextBrowser, QTextEdit, QWidget

from reportdiff.core.diff.highlight import parse_row_anchor, row_anchor
from reportdiff.services.settings import ColorSettings


REVERT_SCHEME = 'revert'


def build_stylesheet(colors: ColorSettings) -> str:
    """Generate the document style sheet for the pane markup."""
    return f"""
        body {{ color: {colors.text_color}; }}
        div.diff-line {{ white-space: pre-wrap; margin: 0px; }}
        .diff-added {{ background-color: {colors.added_background}; }}
        .diff-removed {{ background-color: {colors.removed_background}; }}
        .diff-modified {{ background-color: {colors.modified_background}; }}
        .diff-unchanged {{ background-color: {colors.unchanged_background}; }}
        .diff-word-added {{ background-color: {colors.word_added}; }}
        .diff-word-removed {{ background-color: {colors.word_removed}; text-decoration: line-through; }}
        .diff-word-modified {{ background-color: {colors.word_modified}; }}
        a.diff-gutter {{ color: {colors.line_number_color}; text-decoration: none; }}
        a.revert-link {{ color: {colors.link_color}; font-size: small; }}
        p.diff-placeholder {{ color: {colors.placeholder_color}; font-style: italic; }}
    """


class DiffPane(QTextBrowser):
    """
    One side of the comparison view.

    Rows are identified by the ``line-N`` anchor at the start of each
    block; links with the ``revert:`` scheme are reported through
    ``revert_requested`` instead of being followed.
    """

    # Signals
    revert_requested = pyqtSignal(int)  # line number

    def __init__(
        self,
        side: str,
        parent: Optional[QWidget] = None,
        colors: Optional[ColorSettings] = None
    ):
        super().__init__(parent)

        self.side = side
        self._colors = colors or ColorSettings()
        self._selections: dict[str, QTextEdit.ExtraSelection] = {}
        self._is_placeholder = False

        self._highlight_timer = QTimer(self)
        self._highlight_timer.setSingleShot(True)
        self._highlight_timer.timeout.connect(lambda: self._clear_selection('highlight'))

        self._flash_timer = QTimer(self)
        self._flash_timer.setSingleShot(True)
        self._flash_timer.timeout.connect(lambda: self._clear_selection('flash'))

        self._setup_pane()

    def _setup_pane(self) -> None:
        """Configure browser settings."""
        self.setObjectName(f"{self.side}_pane")
        self.setReadOnly(True)
        self.setOpenLinks(False)
        self.setOpenExternalLinks(False)
        self.setLineWrapMode(QTextEdit.LineWrapMode.WidgetWidth)

        font = QFont("Consolas", 10)
        font.setStyleHint(QFont.StyleHint.Monospace)
        self.setFont(font)

        self.set_colors(self._colors)
        self.anchorClicked.connect(self._on_anchor_clicked)

    # === Content ===

    @property
    def is_placeholder(self) -> bool:
        return self._is_placeholder

    def set_colors(self, colors: ColorSettings) -> None:
        """Set the color scheme used for newly loaded markup."""
        self._colors = colors
        self.document().setDefaultStyleSheet(build_stylesheet(colors))

    def set_font_settings(self, family: str, size: int) -> None:
        font = QFont(family, size)
        font.setStyleHint(QFont.StyleHint.Monospace)
        self.setFont(font)

    def set_markup(self, markup: str) -> None:
        """Load row markup, replacing the current content."""
        self._reset_selections()
        self._is_placeholder = False
        self.setHtml(markup)

    def show_placeholder(self, text: str) -> None:
        """Replace the content with a placeholder message."""
        self._reset_selections()
        self._is_placeholder = True
        self.setHtml(f'<p class="diff-placeholder">{html.escape(text)}</p>')

    def clear_pane(self) -> None:
        """Drop content, selections and the installed style sheet."""
        self._reset_selections()
        self._is_placeholder = False
        self.clear()
        self.document().setDefaultStyleSheet('')

    def stop_timers(self) -> None:
        self._highlight_timer.stop()
        self._flash_timer.stop()

    # === Rows ===

    def row_line_number(self, block: QTextBlock) -> Optional[int]:
        """Line number of a block's gutter anchor, or None for non-row blocks."""
        if not block.isValid() or block.length() <= 1:
            return None
        for name in QTextCursor(block).charFormat().anchorNames():
            line_number = parse_row_anchor(name)
            if line_number is not None:
                return line_number
        return None

    def row_line_numbers(self) -> list[int]:
        """Line numbers of every rendered row, in document order."""
        numbers = []
        block = self.document().firstBlock()
        while block.isValid():
            line_number = self.row_line_number(block)
            if line_number is not None:
                numbers.append(line_number)
            block = block.next()
        return numbers

    def find_row_block(self, line_number: int) -> Optional[QTextBlock]:
        """Find the block rendering the row for a line number."""
        block = self.document().firstBlock()
        while block.isValid():
            if self.row_line_number(block) == line_number:
                return block
            block = block.next()
        return None

    def scroll_to_row(self, line_number: int) -> bool:
        """Scroll the row for a line number into view."""
        if self.find_row_block(line_number) is None:
            return False
        self.scrollToAnchor(row_anchor(line_number))
        return True

    def highlight_row(self, line_number: int, duration_ms: int = 2000) -> bool:
        """Highlight a row for a while, replacing any previous highlight."""
        color = QColor(self._colors.flash_color)
        color.setAlpha(60)
        if not self._select_row('highlight', line_number, color):
            return False
        self._highlight_timer.start(max(0, duration_ms))
        return True

    def flash_row(self, line_number: int, duration_ms: int = 300) -> bool:
        """Briefly flash a row."""
        color = QColor(self._colors.flash_color)
        color.setAlpha(110)
        if not self._select_row('flash', line_number, color):
            return False
        self._flash_timer.start(max(0, duration_ms))
        return True

    def highlighted_rows(self) -> dict[str, int]:
        """Active row selections by purpose ('highlight', 'flash')."""
        result = {}
        for purpose, selection in self._selections.items():
            line_number = self.row_line_number(selection.cursor.block())
            if line_number is not None:
                result[purpose] = line_number
        return result

    def _select_row(self, purpose: str, line_number: int, color: QColor) -> bool:
        block = self.find_row_block(line_number)
        if block is None:
            return False

        selection = QTextEdit.ExtraSelection()
        selection.format.setBackground(color)
        selection.format.setProperty(QTextFormat.Property.FullWidthSelection, True)
        selection.cursor = QTextCursor(block)
        selection.cursor.clearSelection()

        self._selections[purpose] = selection
        self._apply_selections()
        return True

    def _clear_selection(self, purpose: str) -> None:
        if self._selections.pop(purpose, None) is not None:
            self._apply_selections()

    def _reset_selections(self) -> None:
        self.stop_timers()
        self._selections.clear()
        self._apply_selections()

    def _apply_selections(self) -> None:
        self.setExtraSelections(list(self._selections.values()))

    # === Links ===

    def _on_anchor_clicked(self, url: QUrl) -> None:
        """Report revert links; any other link is ignored."""
        if url.scheme() != REVERT_SCHEME:
            logging.debug(f"DiffPane - Ignoring link {url.toString()}")
            return
        try:
            line_number = int(url.path())
        except ValueError:
            logging.warning(f"DiffPane - Malformed revert link {url.toString()}")
            return
        self.revert_requested.emit(line_number)

