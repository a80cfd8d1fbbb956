"""
Markup generation for the comparison panes.

Every diff record becomes one row of rich text:

    <div class="diff-line diff-modified" data-line="7"><a name="line-7">   7 </a>...</div>

The gutter anchor carries the row's line number so views can find,
scroll to and act on rows after the markup has been loaded.
"""

from __future__ import annotations

import html

from reportdiff.core.models import (
    ChangeKind,
    ChangeRecord,
    DiffResult,
    EDITED_SIDE,
    HighlightedMarkup,
    ORIGINAL_SIDE,
    WordChange,
)


ROW_ANCHOR_PREFIX = 'line-'

WORD_CLASSES = {
    ChangeKind.ADDED: 'diff-word-added',
    ChangeKind.REMOVED: 'diff-word-removed',
    ChangeKind.MODIFIED: 'diff-word-modified',
}


def escape_html(text: str | None) -> str:
    """Escape text for rich-text insertion; newlines become line breaks."""
    if not text:
        return ''
    escaped = html.escape(text, quote=True)
    return escaped.replace('\r\n', '<br />').replace('\n', '<br />')


def row_anchor(line_number: int) -> str:
    """Anchor name identifying the row for a line number."""
    return f"{ROW_ANCHOR_PREFIX}{line_number}"


def parse_row_anchor(name: str) -> int | None:
    """Line number for a row anchor name, or None for other anchors."""
    if not name.startswith(ROW_ANCHOR_PREFIX):
        return None
    try:
        return int(name[len(ROW_ANCHOR_PREFIX):])
    except ValueError:
        return None


def render_row(kind: ChangeKind, line_number: int, body: str) -> str:
    """Render one row with its gutter anchor and already-escaped body."""
    return (
        f'<div class="diff-line diff-{kind.value}" data-line="{line_number}">'
        f'<a class="diff-gutter" name="{row_anchor(line_number)}">{line_number:>4} </a>'
        f'{body}</div>'
    )


def render_word_diff(word_diff: tuple[WordChange, ...], side: str) -> str:
    """Render the word-level highlights of a modified line for one side."""
    parts = []
    for word in word_diff:
        if word.kind == ChangeKind.UNCHANGED:
            parts.append(escape_html(word.content))
            continue

        text = word.side_text(side)
        if word.kind != ChangeKind.MODIFIED and not text:
            # Added tokens only show on the edited side, removed on the original
            continue
        parts.append(f'<span class="{WORD_CLASSES[word.kind]}">{escape_html(text)}</span>')

    return ''.join(parts)


def render_markup(diff_result: DiffResult) -> HighlightedMarkup:
    """
    Render the original and edited pane markup for a diff result.

    Args:
        diff_result: Result from DiffEngine.compare_texts

    Returns:
        HighlightedMarkup with one row per record present on each side
    """
    original_rows: list[str] = []
    edited_rows: list[str] = []

    for change in diff_result.changes:
        _render_change(change, original_rows, edited_rows)

    return HighlightedMarkup(
        original_html='\n'.join(original_rows),
        edited_html='\n'.join(edited_rows),
    )


def _render_change(
    change: ChangeRecord,
    original_rows: list[str],
    edited_rows: list[str]
) -> None:
    if change.kind == ChangeKind.ADDED:
        edited_rows.append(render_row(
            change.kind,
            change.edited_line_number or change.line_number,
            escape_html(change.content)
        ))

    elif change.kind == ChangeKind.REMOVED:
        original_rows.append(render_row(
            change.kind,
            change.original_line_number or change.line_number,
            escape_html(change.content)
        ))

    elif change.kind == ChangeKind.MODIFIED:
        original_rows.append(render_row(
            change.kind,
            change.original_line_number or change.line_number,
            render_word_diff(change.word_diff, ORIGINAL_SIDE)
        ))
        edited_rows.append(render_row(
            change.kind,
            change.edited_line_number or change.line_number,
            render_word_diff(change.word_diff, EDITED_SIDE)
        ))

    else:
        row = render_row(change.kind, change.line_number, escape_html(change.content))
        original_rows.append(row)
        edited_rows.append(row)
