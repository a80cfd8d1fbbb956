"""
Diff module for report comparison.

Provides:
- Positional line and word diff of two text blocks
- Highlighted markup for the two comparison panes
- Change statistics
"""

from reportdiff.core.diff.engine import (
    DiffEngine,
    split_into_lines,
    tokenize,
)
from reportdiff.core.diff.highlight import (
    escape_html,
    render_markup,
    row_anchor,
    parse_row_anchor,
)

__all__ = [
    # Engine
    'DiffEngine',
    'split_into_lines',
    'tokenize',
    # Markup
    'escape_html',
    'render_markup',
    'row_anchor',
    'parse_row_anchor',
]
