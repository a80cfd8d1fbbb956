"""
Authoritative holder of the original and edited report text.

The comparison view never edits text itself; it emits revert and reset
intents which are applied here. Observers are told about every change
so views can refresh.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Optional

from reportdiff.core.diff.engine import split_into_lines
from reportdiff.core.models import (
    ChangeKind,
    ContentSnapshot,
    ResetIntent,
    RevertIntent,
)


StateObserver = Callable[[str, 'ContentState'], None]


def _timestamp() -> str:
    return datetime.now().isoformat(timespec='seconds')


def detect_line_separator(text: str) -> str:
    """Get the dominant line separator of a text block."""
    crlf_count = text.count('\r\n')
    lf_count = text.count('\n') - crlf_count
    return '\r\n' if crlf_count > lf_count else '\n'


class ContentState:
    """
    Owner of the report content shown in the comparison view.

    Tracks a version counter and a dirty flag (edited text differs
    from the original).
    """

    def __init__(self):
        self._original = ContentSnapshot()
        self._edited = ContentSnapshot()
        self._is_dirty = False
        self._version = 1
        self._last_saved: Optional[str] = None
        self._observers: list[StateObserver] = []

    # === Accessors ===

    @property
    def original_text(self) -> str:
        return self._original.content

    @property
    def edited_text(self) -> str:
        return self._edited.content

    @property
    def metadata(self) -> dict:
        return dict(self._original.metadata)

    @property
    def is_dirty(self) -> bool:
        return self._is_dirty

    @property
    def version(self) -> int:
        return self._version

    @property
    def last_saved(self) -> Optional[str]:
        return self._last_saved

    # === Mutation ===

    def set_original_content(self, content: Optional[str], metadata: Optional[dict] = None) -> None:
        """
        Set the original report text.

        If no edited text exists yet, the edited text starts as a copy
        of the original.
        """
        timestamp = _timestamp()
        self._original = ContentSnapshot(content or '', timestamp, dict(metadata or {}))

        if not self._edited.content:
            self._edited = ContentSnapshot(content or '', timestamp)

        self._is_dirty = self._original.content != self._edited.content
        self._version += 1
        logging.debug(f"ContentState - Original content set ({len(self.original_text)} characters)")
        self._notify_observers('original')

    def set_edited_content(self, content: Optional[str]) -> None:
        """Replace the edited report text."""
        self._edited = ContentSnapshot(content or '', _timestamp())
        self._is_dirty = self._original.content != self._edited.content
        self._version += 1
        self._notify_observers('edited')

    def apply_revert(self, intent: RevertIntent) -> bool:
        """
        Undo one change in the edited text.

        Args:
            intent: Revert intent emitted by the comparison view

        Returns:
            True if the edited text was changed, False for a stale intent
        """
        new_text = self._reverted_text(intent)
        if new_text is None:
            logging.warning(
                f"ContentState - Ignoring stale revert of line {intent.line_number} "
                f"({intent.change_kind.value})"
            )
            return False

        logging.info(f"ContentState - Reverted {intent.change_kind.value} line {intent.line_number}")
        self.set_edited_content(new_text)
        return True

    def apply_reset(self, intent: ResetIntent) -> bool:
        """Discard all edits; the intent must refer to the current original."""
        if intent.original_text != self.original_text:
            logging.warning("ContentState - Ignoring reset for a different original text")
            return False
        self.reset()
        return True

    def reset(self) -> None:
        """Reset the edited text to the original."""
        self._edited = ContentSnapshot(self._original.content, _timestamp())
        self._is_dirty = False
        self._version += 1
        logging.info("ContentState - Edited content reset to original")
        self._notify_observers('reset')

    def save(self) -> None:
        """Mark the current content as saved."""
        self._last_saved = _timestamp()
        self._is_dirty = False
        self._version += 1
        self._notify_observers('save')

    def clear(self) -> None:
        """Drop all content."""
        self._original = ContentSnapshot()
        self._edited = ContentSnapshot()
        self._is_dirty = False
        self._last_saved = None
        self._version = 1
        self._notify_observers('clear')

    # === Revert computation ===

    def _reverted_text(self, intent: RevertIntent) -> Optional[str]:
        """Compute the edited text with one change undone, or None if stale."""
        change = intent.change
        edited = self.edited_text
        original = self.original_text

        # Whole-text records from comparing against an empty side
        if change.kind == ChangeKind.ADDED and not original:
            return '' if change.content == edited else None
        if change.kind == ChangeKind.REMOVED and not edited:
            return original if change.content == original else None

        separator = detect_line_separator(edited)
        lines = split_into_lines(edited)
        index = change.line_number - 1

        if change.kind == ChangeKind.ADDED:
            if index >= len(lines) or lines[index] != change.content:
                return None
            del lines[index]

        elif change.kind == ChangeKind.REMOVED:
            # The row is only missing while the edited text ends before it
            original_lines = split_into_lines(original)
            if (index < len(lines) or index >= len(original_lines)
                    or original_lines[index] != change.content):
                return None
            # Earlier removed rows come back too so the line lands at its own position
            lines.extend(original_lines[len(lines):index + 1])

        elif change.kind == ChangeKind.MODIFIED:
            if index >= len(lines) or lines[index] != change.edited_content:
                return None
            lines[index] = change.original_content or ''

        else:
            return None

        return separator.join(lines)

    # === Observers ===

    def add_observer(self, callback: StateObserver) -> None:
        """Add a callback notified with (event_type, state) on changes."""
        self._observers.append(callback)

    def remove_observer(self, callback: StateObserver) -> None:
        """Remove a state change observer."""
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify_observers(self, event_type: str) -> None:
        for callback in list(self._observers):
            try:
                callback(event_type, self)
            except Exception as e:
                logging.warning(f"ContentState - Observer failed on '{event_type}': {e}")

    # === Snapshots ===

    def export_state(self) -> dict[str, Any]:
        """Export the state as a plain dictionary."""
        return {
            'original': {
                'content': self._original.content,
                'timestamp': self._original.timestamp,
                'metadata': dict(self._original.metadata),
            },
            'edited': {
                'content': self._edited.content,
                'timestamp': self._edited.timestamp,
            },
            'is_dirty': self._is_dirty,
            'last_saved': self._last_saved,
            'version': self._version,
        }

    def import_state(self, data: dict[str, Any]) -> None:
        """Restore a state previously produced by export_state."""
        if not isinstance(data, dict) or 'original' not in data or 'edited' not in data:
            raise ValueError("Invalid content state data")

        original = data['original'] or {}
        edited = data['edited'] or {}
        self._original = ContentSnapshot(
            original.get('content', ''),
            original.get('timestamp'),
            dict(original.get('metadata') or {}),
        )
        self._edited = ContentSnapshot(edited.get('content', ''), edited.get('timestamp'))
        self._is_dirty = self._original.content != self._edited.content
        self._last_saved = data.get('last_saved')
        self._version = int(data.get('version') or 0) + 1
        self._notify_observers('import')
