import pytest

from reportdiff.core.content_state import ContentState, detect_line_separator
from reportdiff.core.diff import DiffEngine
from reportdiff.core.models import ChangeKind, ResetIntent, RevertIntent


def make_state(original: str, edited: str) -> ContentState:
    state = ContentState()
    state.set_original_content(original)
    state.set_edited_content(edited)
    return state


def intent_for(state: ContentState, line_number: int) -> RevertIntent:
    diff = DiffEngine().compare_texts(state.original_text, state.edited_text)
    change = diff.find_change(line_number)
    return RevertIntent(change=change, line_number=line_number, change_kind=change.kind)


def test_original_initialises_edited():
    state = ContentState()
    state.set_original_content("report", {"path": "r.txt"})

    assert state.edited_text == "report"
    assert state.is_dirty is False
    assert state.metadata == {"path": "r.txt"}


def test_editing_marks_dirty_and_bumps_version():
    state = ContentState()
    state.set_original_content("a")
    version = state.version

    state.set_edited_content("b")

    assert state.is_dirty is True
    assert state.version == version + 1


def test_revert_modified_line():
    state = make_state("a\nb\nc", "a\nX\nc")

    assert state.apply_revert(intent_for(state, 2)) is True
    assert state.edited_text == "a\nb\nc"
    assert state.is_dirty is False


def test_revert_added_line():
    state = make_state("a\nb", "a\nb\nnew")

    intent = intent_for(state, 3)
    assert intent.change_kind == ChangeKind.ADDED
    assert state.apply_revert(intent) is True
    assert state.edited_text == "a\nb"


def test_revert_removed_line_is_appended():
    state = make_state("a\nb\nc", "a\nb")

    assert state.apply_revert(intent_for(state, 3)) is True
    assert state.edited_text == "a\nb\nc"


def test_revert_degenerate_records():
    added = make_state("", "all new text")
    assert added.apply_revert(intent_for(added, 1)) is True
    assert added.edited_text == ""

    state = ContentState()
    state.set_original_content("gone\nentirely")
    state.set_edited_content("")
    assert state.apply_revert(intent_for(state, 1)) is True
    assert state.edited_text == "gone\nentirely"


def test_revert_keeps_crlf_separator():
    state = make_state("a\r\nb\r\nc", "a\r\nX\r\nc")

    assert state.apply_revert(intent_for(state, 2)) is True
    assert state.edited_text == "a\r\nb\r\nc"


def test_stale_revert_is_ignored(caplog):
    state = make_state("a\nb", "a\nX")
    intent = intent_for(state, 2)
    state.set_edited_content("a\nY")

    assert state.apply_revert(intent) is False
    assert state.edited_text == "a\nY"
    assert "stale revert" in caplog.text


def test_stale_removed_revert_keeps_new_lines(caplog):
    state = make_state("a\nb\nc", "a\nb")
    intent = intent_for(state, 3)
    state.set_edited_content("a\nb\nZ")

    assert state.apply_revert(intent) is False
    assert state.edited_text == "a\nb\nZ"
    assert "stale revert of line 3" in caplog.text


def test_revert_removed_line_out_of_order():
    state = make_state("a\nb\nc\nd", "a\nb")

    assert state.apply_revert(intent_for(state, 4)) is True

    assert state.edited_text == "a\nb\nc\nd"
    diff = DiffEngine().compare_texts(state.original_text, state.edited_text)
    assert diff.has_changes is False


def test_reset_and_reset_intent():
    state = make_state("orig", "changed")

    assert state.apply_reset(ResetIntent(original_text="something else")) is False
    assert state.edited_text == "changed"

    assert state.apply_reset(ResetIntent(original_text="orig")) is True
    assert state.edited_text == "orig"
    assert state.is_dirty is False


def test_save_marks_clean():
    state = make_state("a", "b")
    state.save()

    assert state.is_dirty is False
    assert state.last_saved is not None


def test_observers_are_notified_and_failures_skipped():
    state = ContentState()
    events = []

    def broken(event_type, _state):
        raise RuntimeError("observer failure")

    state.add_observer(broken)
    state.add_observer(lambda event_type, s: events.append((event_type, s.edited_text)))

    state.set_original_content("x")
    state.set_edited_content("y")
    state.reset()

    assert events == [("original", "x"), ("edited", "y"), ("reset", "x")]

    state.remove_observer(broken)
    state.clear()
    assert events[-1] == ("clear", "")


def test_export_import_round_trip():
    state = make_state("orig", "edit")
    exported = state.export_state()

    restored = ContentState()
    restored.import_state(exported)

    assert restored.original_text == "orig"
    assert restored.edited_text == "edit"
    assert restored.is_dirty is True
    assert restored.version > exported["version"]


def test_import_rejects_invalid_data():
    with pytest.raises(ValueError):
        ContentState().import_state({"original": {}})
    with pytest.raises(ValueError):
        ContentState().import_state("not a dict")


def test_detect_line_separator():
    assert detect_line_separator("a\r\nb\r\nc") == "\r\n"
    assert detect_line_separator("a\nb") == "\n"
    assert detect_line_separator("single") == "\n"
