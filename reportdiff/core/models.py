"""
Core data models for the report comparison application.

This module defines the data structures shared by the diff engine,
the comparison view and the content state owner:
- Change classification (line and word level)
- Diff results and statistics
- Rendered markup for the two comparison panes
- Revert/reset intents emitted by the view
- The ephemeral comparison session

All models are designed to be:
- UI-agnostic (can be used with any frontend)
- Immutable (results are replaced, never mutated in place)
- Type-hinted for IDE support
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional


# =============================================================================
# Enumerations
# =============================================================================

class ChangeKind(Enum):
    """Classification of a line or token in a diff result."""
    ADDED = 'added'          # Exists only in the edited text
    REMOVED = 'removed'      # Exists only in the original text
    MODIFIED = 'modified'    # Exists on both sides with different content
    UNCHANGED = 'unchanged'  # Identical on both sides


ORIGINAL_SIDE = 'original'
EDITED_SIDE = 'edited'


# =============================================================================
# Text Diff Models
# =============================================================================

@dataclass(frozen=True)
class WordChange:
    """
    A single token-level difference within a modified line.

    Tokens are either runs of whitespace or runs of non-whitespace,
    so joining the side text of every token of a line rebuilds that line.
    """
    kind: ChangeKind
    content: Optional[str] = None
    original_content: Optional[str] = None
    edited_content: Optional[str] = None

    def side_text(self, side: str) -> str:
        """Get the text this token contributes to the given side."""
        if self.kind == ChangeKind.MODIFIED:
            text = self.original_content if side == ORIGINAL_SIDE else self.edited_content
            return text or ''
        if self.kind == ChangeKind.ADDED:
            return (self.content or '') if side == EDITED_SIDE else ''
        if self.kind == ChangeKind.REMOVED:
            return (self.content or '') if side == ORIGINAL_SIDE else ''
        return self.content or ''


@dataclass(frozen=True)
class ChangeRecord:
    """
    One classified line position in a diff result.

    ``line_number`` is 1-based and is the stable row identifier used
    by the comparison view. The side-specific numbers are None on the
    side where the line does not exist.
    """
    kind: ChangeKind
    line_number: int
    original_line_number: Optional[int] = None
    edited_line_number: Optional[int] = None
    content: Optional[str] = None
    original_content: Optional[str] = None
    edited_content: Optional[str] = None
    word_diff: tuple[WordChange, ...] = ()

    @property
    def is_change(self) -> bool:
        """Check if the record represents a difference."""
        return self.kind != ChangeKind.UNCHANGED

    @property
    def original_text(self) -> Optional[str]:
        """Line text on the original side, or None if absent there."""
        if self.kind == ChangeKind.MODIFIED:
            return self.original_content
        if self.kind == ChangeKind.ADDED:
            return None
        return self.content

    @property
    def edited_text(self) -> Optional[str]:
        """Line text on the edited side, or None if absent there."""
        if self.kind == ChangeKind.MODIFIED:
            return self.edited_content
        if self.kind == ChangeKind.REMOVED:
            return None
        return self.content

    def matches_line(self, line_number: int) -> bool:
        """Check if a rendered row number refers to this record."""
        return line_number in (
            self.line_number,
            self.original_line_number,
            self.edited_line_number,
        )


@dataclass(frozen=True)
class DiffResult:
    """
    Complete result of comparing two text blocks.

    ``has_changes`` is True exactly when some record is not UNCHANGED.
    """
    changes: tuple[ChangeRecord, ...] = ()
    has_changes: bool = False

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to display."""
        return len(self.changes) == 0

    def changed_records(self) -> Iterator[ChangeRecord]:
        """Iterate over only the changed records."""
        for change in self.changes:
            if change.is_change:
                yield change

    def changed_line_numbers(self) -> list[int]:
        """Line numbers of every changed record, in order."""
        return [change.line_number for change in self.changed_records()]

    def find_change(self, line_number: int) -> Optional[ChangeRecord]:
        """Find the first record a rendered row number refers to."""
        for change in self.changes:
            if change.matches_line(line_number):
                return change
        return None


@dataclass(frozen=True)
class ChangeStats:
    """Statistics about a diff result."""
    total_lines: int = 0
    added_lines: int = 0
    removed_lines: int = 0
    modified_lines: int = 0
    unchanged_lines: int = 0

    @property
    def total_changes(self) -> int:
        """Total number of changed lines."""
        return self.added_lines + self.removed_lines + self.modified_lines

    def as_dict(self) -> dict[str, int]:
        return {
            'total_lines': self.total_lines,
            'added_lines': self.added_lines,
            'removed_lines': self.removed_lines,
            'modified_lines': self.modified_lines,
            'unchanged_lines': self.unchanged_lines,
        }

    def __str__(self) -> str:
        return (f"+{self.added_lines} -{self.removed_lines} "
                f"~{self.modified_lines} ={self.unchanged_lines}")


@dataclass(frozen=True)
class HighlightedMarkup:
    """Rendered rich-text markup for the original and edited panes."""
    original_html: str
    edited_html: str


# =============================================================================
# Comparison View Models
# =============================================================================

@dataclass(frozen=True)
class RevertIntent:
    """Request for the content owner to undo one specific change."""
    change: ChangeRecord
    line_number: int
    change_kind: ChangeKind


@dataclass(frozen=True)
class ResetIntent:
    """Request for the content owner to discard every edit."""
    original_text: str


@dataclass(frozen=True)
class ComparisonSession:
    """
    Ephemeral state held by the comparison view.

    A new session replaces the previous one on every comparison update
    and on every scroll-sync toggle.
    """
    original_text: str = ''
    edited_text: str = ''
    current_diff: Optional[DiffResult] = None
    scroll_sync_enabled: bool = True

    @property
    def has_diff(self) -> bool:
        return self.current_diff is not None and not self.current_diff.is_empty


@dataclass
class ContentSnapshot:
    """Timestamped copy of one side of the authoritative content."""
    content: str = ''
    timestamp: Optional[str] = None
    metadata: dict = field(default_factory=dict)
