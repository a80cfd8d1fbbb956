"""
Change statistics bar for the comparison view.

Provides:
- A summary label with the total change count
- Added, removed and modified counters with colour swatches
"""

from __future__ import annotations

from typing import Optional

from PyQt6.QtGui import QColor, QPixmap
from PyQt6.QtWidgets import QHBoxLayout, QLabel, QWidget

from reportdiff.core.models import ChangeStats
from reportdiff.services.settings import ColorSettings


class ChangeStatsBar(QWidget):
    """Summary of a comparison: change count badge and per-kind counters."""

    def __init__(self, parent=None, colors: Optional[ColorSettings] = None):
        super().__init__(parent)

        self._colors = colors or ColorSettings()
        self._stats: Optional[ChangeStats] = None

        self._layout = QHBoxLayout(self)
        self._layout.setContentsMargins(15, 5, 15, 5)
        self._layout.setSpacing(15)

        self._summary_label = QLabel("No changes")
        self._summary_label.setObjectName("change_summary")
        self._layout.addWidget(self._summary_label)

        self._added_label = self._add_counter(self._colors.added_background, "Added lines")
        self._removed_label = self._add_counter(self._colors.removed_background, "Removed lines")
        self._modified_label = self._add_counter(self._colors.modified_background, "Modified lines")

        self._layout.addStretch()
        self.set_stats(None)

    def _add_counter(self, color: str, tooltip: str) -> QLabel:
        """Add a color box and counter label."""
        color_box = QLabel()
        pixmap = QPixmap(12, 12)
        pixmap.fill(QColor(color))
        color_box.setPixmap(pixmap)
        color_box.setToolTip(tooltip)
        self._layout.addWidget(color_box)

        label = QLabel()
        label.setToolTip(tooltip)
        self._layout.addWidget(label)
        return label

    @property
    def stats(self) -> Optional[ChangeStats]:
        return self._stats

    def summary_text(self) -> str:
        return self._summary_label.text()

    def counter_texts(self) -> tuple[str, str, str]:
        return (self._added_label.text(), self._removed_label.text(), self._modified_label.text())

    def set_stats(self, stats: Optional[ChangeStats]):
        """Show the counts of a comparison (None clears them)."""
        self._stats = stats
        stats = stats or ChangeStats()

        total = stats.total_changes
        if total == 0:
            self._summary_label.setText("No changes")
            color, bg = "#2da44e", "#dafbe1"  # Green
        else:
            self._summary_label.setText(f"{total} change{'s' if total != 1 else ''}")
            color, bg = "#9a6700", "#fff8c5"  # Yellow/Orange

        self._summary_label.setStyleSheet(f"""
            QLabel {{
                font-weight: bold;
                color: {color};
                background-color: {bg};
                border: 1px solid {color};
                border-radius: 4px;
                padding: 2px 8px;
            }}
        """)

        self._added_label.setText(f"+{stats.added_lines}")
        self._removed_label.setText(f"-{stats.removed_lines}")
        self._modified_label.setText(f"~{stats.modified_lines}")
