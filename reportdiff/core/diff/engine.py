"""
Report text diff engine.

Provides a positional line-by-line comparison with:
- Degenerate handling of empty inputs
- Word-level (whitespace-preserving) sub-diffs for modified lines
- Highlighted markup generation for the comparison panes
- Change statistics

Lines are paired by index, not by best alignment: inserting a line
near the top shifts every following pair.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Optional, Sequence

from reportdiff.core.diff import highlight
from reportdiff.core.models import (
    ChangeKind,
    ChangeRecord,
    ChangeStats,
    DiffResult,
    HighlightedMarkup,
    WordChange,
)


LINE_SPLIT_PATTERN = re.compile(r'\r?\n')
WORD_SPLIT_PATTERN = re.compile(r'(\s+)')


def split_into_lines(text: str) -> list[str]:
    """Split text into lines on LF or CRLF."""
    return LINE_SPLIT_PATTERN.split(text)


def tokenize(line: str) -> list[str]:
    """Split a line into words and whitespace runs, keeping separators."""
    return WORD_SPLIT_PATTERN.split(line)


class DiffEngine:
    """
    Engine for comparing an original and an edited report.

    Pure and deterministic: the same inputs always give equal results.
    """

    def compare_texts(
        self,
        original_text: Optional[str],
        edited_text: Optional[str]
    ) -> DiffResult:
        """
        Compare two text blocks.

        Args:
            original_text: The original report text (None treated as empty)
            edited_text: The edited report text (None treated as empty)

        Returns:
            DiffResult with one record per line position
        """
        if not original_text and not edited_text:
            return DiffResult(changes=(), has_changes=False)

        if not original_text:
            return DiffResult(
                changes=(ChangeRecord(
                    kind=ChangeKind.ADDED,
                    line_number=1,
                    original_line_number=None,
                    edited_line_number=1,
                    content=edited_text,
                ),),
                has_changes=True
            )

        if not edited_text:
            return DiffResult(
                changes=(ChangeRecord(
                    kind=ChangeKind.REMOVED,
                    line_number=1,
                    original_line_number=1,
                    edited_line_number=None,
                    content=original_text,
                ),),
                has_changes=True
            )

        started = time.perf_counter()
        original_lines = split_into_lines(original_text)
        edited_lines = split_into_lines(edited_text)

        result = self.generate_line_diff(original_lines, edited_lines)

        logging.debug(
            f"DiffEngine - Compared {len(original_lines)} / {len(edited_lines)} lines "
            f"in {(time.perf_counter() - started) * 1000:.1f} ms"
        )
        return result

    def generate_line_diff(
        self,
        original_lines: Sequence[str],
        edited_lines: Sequence[str]
    ) -> DiffResult:
        """Classify every line position of the two line sequences."""
        changes: list[ChangeRecord] = []
        has_changes = False

        for i in range(max(len(original_lines), len(edited_lines))):
            original_line = original_lines[i] if i < len(original_lines) else None
            edited_line = edited_lines[i] if i < len(edited_lines) else None
            line_number = i + 1

            if original_line is None:
                changes.append(ChangeRecord(
                    kind=ChangeKind.ADDED,
                    line_number=line_number,
                    original_line_number=None,
                    edited_line_number=line_number,
                    content=edited_line,
                ))
                has_changes = True
            elif edited_line is None:
                changes.append(ChangeRecord(
                    kind=ChangeKind.REMOVED,
                    line_number=line_number,
                    original_line_number=line_number,
                    edited_line_number=None,
                    content=original_line,
                ))
                has_changes = True
            elif original_line != edited_line:
                changes.append(ChangeRecord(
                    kind=ChangeKind.MODIFIED,
                    line_number=line_number,
                    original_line_number=line_number,
                    edited_line_number=line_number,
                    original_content=original_line,
                    edited_content=edited_line,
                    word_diff=self.word_diff(original_line, edited_line),
                ))
                has_changes = True
            else:
                changes.append(ChangeRecord(
                    kind=ChangeKind.UNCHANGED,
                    line_number=line_number,
                    original_line_number=line_number,
                    edited_line_number=line_number,
                    content=original_line,
                ))

        return DiffResult(changes=tuple(changes), has_changes=has_changes)

    def word_diff(self, original_line: str, edited_line: str) -> tuple[WordChange, ...]:
        """
        Generate the token-level diff of two lines.

        Whitespace runs are tokens of their own, so the original-side
        and edited-side texts of the result rebuild the two lines.
        """
        original_words = tokenize(original_line)
        edited_words = tokenize(edited_line)
        word_changes: list[WordChange] = []

        for i in range(max(len(original_words), len(edited_words))):
            original_word = original_words[i] if i < len(original_words) else None
            edited_word = edited_words[i] if i < len(edited_words) else None

            if original_word is None:
                word_changes.append(WordChange(ChangeKind.ADDED, content=edited_word))
            elif edited_word is None:
                word_changes.append(WordChange(ChangeKind.REMOVED, content=original_word))
            elif original_word != edited_word:
                word_changes.append(WordChange(
                    ChangeKind.MODIFIED,
                    original_content=original_word,
                    edited_content=edited_word,
                ))
            else:
                word_changes.append(WordChange(ChangeKind.UNCHANGED, content=original_word))

        return tuple(word_changes)

    def generate_highlighted_html(self, diff_result: DiffResult) -> HighlightedMarkup:
        """Render both panes' markup for a diff result."""
        return highlight.render_markup(diff_result)

    def get_change_stats(self, diff_result: DiffResult) -> ChangeStats:
        """Count the records of a diff result by kind."""
        counts = {kind: 0 for kind in ChangeKind}
        for change in diff_result.changes:
            counts[change.kind] += 1

        return ChangeStats(
            total_lines=len(diff_result.changes),
            added_lines=counts[ChangeKind.ADDED],
            removed_lines=counts[ChangeKind.REMOVED],
            modified_lines=counts[ChangeKind.MODIFIED],
            unchanged_lines=counts[ChangeKind.UNCHANGED],
        )
