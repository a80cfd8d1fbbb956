"""
Reusable UI widgets for the report comparison view.

Provides specialized widgets for:
- Highlighted, read-only diff panes
- Proportional scroll synchronization
- Change statistics display
"""

from reportdiff.ui.widgets.diff_pane import (
    DiffPane,
    build_stylesheet,
)
from reportdiff.ui.widgets.scroll_sync import (
    ScrollSynchronizer,
    scroll_ratio,
    apply_scroll_ratio,
)
from reportdiff.ui.widgets.stats_bar import (
    ChangeStatsBar,
)

__all__ = [
    # Panes
    'DiffPane',
    'build_stylesheet',
    # Scrolling
    'ScrollSynchronizer',
    'scroll_ratio',
    'apply_scroll_ratio',
    # Status
    'ChangeStatsBar',
]
