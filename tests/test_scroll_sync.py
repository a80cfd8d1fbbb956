import pytest
from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QScrollBar

from reportdiff.ui.widgets.scroll_sync import (
    ScrollSynchronizer,
    apply_scroll_ratio,
    scroll_ratio,
)


def make_bar(qtbot, minimum: int, maximum: int) -> QScrollBar:
    bar = QScrollBar(Qt.Orientation.Vertical)
    bar.setRange(minimum, maximum)
    qtbot.addWidget(bar)
    return bar


@pytest.fixture
def bars(qtbot):
    return make_bar(qtbot, 0, 100), make_bar(qtbot, 0, 400)


def test_scroll_ratio(qtbot):
    bar = make_bar(qtbot, 10, 110)
    bar.setValue(60)
    assert scroll_ratio(bar) == pytest.approx(0.5)

    flat = make_bar(qtbot, 0, 0)
    assert scroll_ratio(flat) == 0.0

    apply_scroll_ratio(bar, 0.25)
    assert bar.value() == 35


def test_follower_scrolls_proportionally(qtbot, bars):
    first, second = bars
    sync = ScrollSynchronizer(first, second, suppress_ms=20)

    first.setValue(50)

    assert second.value() == 200
    assert abs(scroll_ratio(second) - scroll_ratio(first)) <= 0.01
    assert sync.is_suppressed


def test_suppression_window_blocks_echo(qtbot, bars):
    first, second = bars
    sync = ScrollSynchronizer(first, second, suppress_ms=30)

    first.setValue(50)
    second.setValue(10)
    assert first.value() == 50

    qtbot.waitUntil(lambda: not sync.is_suppressed, timeout=1000)

    second.setValue(100)
    assert first.value() == 25


def test_disabled_sync_ignores_scrolls(qtbot, bars):
    first, second = bars
    sync = ScrollSynchronizer(first, second, suppress_ms=20)
    sync.set_enabled(False)

    first.setValue(70)

    assert second.value() == 0
    assert not sync.is_suppressed

    sync.set_enabled(True)
    first.setValue(80)
    assert second.value() == 320


def test_detach_stops_listening(qtbot, bars):
    first, second = bars
    sync = ScrollSynchronizer(first, second, suppress_ms=20)

    sync.detach()
    first.setValue(40)

    assert second.value() == 0
    assert not sync.is_attached

    sync.attach()
    first.setValue(50)
    assert second.value() == 200


def test_synchronized_signal(qtbot, bars):
    first, second = bars
    sync = ScrollSynchronizer(first, second, suppress_ms=20)

    with qtbot.waitSignal(sync.synchronized) as blocker:
        second.setValue(100)

    assert blocker.args == [pytest.approx(0.25)]
    assert first.value() == 25
