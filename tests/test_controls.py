"""Tests for controls.py: event queue, dispatch and pointer tracking."""

import logging
import pytest

from camera import CameraController, FreeFlyCamera, ORBIT
from controls import (
    InputQueue, KeyEvent, PointerMotion, PointerTracker, Scroll, SwitchMode,
    ToggleActive, dispatch,
)


class Recorder:
    """Stands in for a CameraController and records what it is told."""

    def __init__(self):
        self.calls = []

    def key(self, action, pressed):
        self.calls.append(("key", action, pressed))

    def pointer_motion(self, dx, dy):
        self.calls.append(("pointer", dx, dy))

    def scroll(self, dy):
        self.calls.append(("scroll", dy))

    def toggle(self):
        self.calls.append(("toggle",))

    def switch_mode(self):
        self.calls.append(("switch",))


class TestInputQueue:
    def test_drains_in_arrival_order(self):
        q = InputQueue()
        q.push(ToggleActive())
        q.push(KeyEvent("forward", True))
        q.push(PointerMotion(1, 2))
        q.push(Scroll(-1.0))
        q.push(KeyEvent("forward", False))
        q.push(SwitchMode())
        rec = Recorder()
        assert q.drain(rec) == 6
        assert rec.calls == [
            ("toggle",),
            ("key", "forward", True),
            ("pointer", 1, 2),
            ("scroll", -1.0),
            ("key", "forward", False),
            ("switch",),
        ]
        assert len(q) == 0

    def test_consecutive_motions_merge(self):
        q = InputQueue()
        q.push(PointerMotion(1, 1))
        q.push(PointerMotion(2, -3))
        q.push(PointerMotion(0.5, 0))
        assert len(q) == 1
        rec = Recorder()
        q.drain(rec)
        assert rec.calls == [("pointer", 3.5, -2)]

    def test_motions_split_by_other_events_stay_separate(self):
        q = InputQueue()
        q.push(PointerMotion(1, 0))
        q.push(KeyEvent("left", True))
        q.push(PointerMotion(2, 0))
        assert len(q) == 3

    def test_full_queue_drops_new_events(self, caplog):
        q = InputQueue(maxsize=2)
        assert q.push(KeyEvent("forward", True))
        assert q.push(KeyEvent("left", True))
        with caplog.at_level(logging.WARNING, logger="controls"):
            assert not q.push(Scroll(1.0))
            assert not q.push(ToggleActive())
        assert q.dropped == 2
        assert "input queue full" in caplog.text
        rec = Recorder()
        q.drain(rec)
        assert rec.calls == [("key", "forward", True), ("key", "left", True)]

    def test_full_queue_defers_key_release(self, caplog):
        q = InputQueue(maxsize=2)
        q.push(KeyEvent("forward", True))
        q.push(Scroll(1.0))
        with caplog.at_level(logging.WARNING, logger="controls"):
            assert q.push(KeyEvent("forward", False))
        assert q.dropped == 0
        assert "deferring" in caplog.text
        rec = Recorder()
        assert q.drain(rec) == 3
        assert rec.calls == [
            ("key", "forward", True),
            ("scroll", 1.0),
            ("key", "forward", False),
        ]

    def test_deferred_keys_keep_latest_state_per_action(self):
        q = InputQueue(maxsize=1)
        q.push(Scroll(1.0))
        q.push(KeyEvent("left", True))
        q.push(KeyEvent("fast", True))
        q.push(KeyEvent("left", False))
        assert len(q) == 3
        rec = Recorder()
        q.drain(rec)
        assert rec.calls == [("scroll", 1.0), ("key", "fast", True), ("key", "left", False)]
        assert len(q) == 0

    def test_motion_still_merges_when_full(self):
        q = InputQueue(maxsize=1)
        q.push(PointerMotion(1, 1))
        assert q.push(PointerMotion(1, 1))
        assert q.dropped == 0
        assert len(q) == 1

    def test_drain_empty(self):
        assert InputQueue().drain(Recorder()) == 0

    def test_drain_twice_applies_once(self):
        q = InputQueue()
        q.push(Scroll(1.0))
        rec = Recorder()
        q.drain(rec)
        q.drain(rec)
        assert rec.calls == [("scroll", 1.0)]

    @pytest.mark.parametrize("size", [0, -5])
    def test_size_must_be_positive(self, size):
        with pytest.raises(ValueError):
            InputQueue(maxsize=size)


class TestDispatch:
    def test_unknown_event_type(self):
        with pytest.raises(TypeError):
            dispatch(Recorder(), ("key", "forward", True))

    def test_marker_events_compare_equal(self):
        assert ToggleActive() == ToggleActive()
        assert SwitchMode() == SwitchMode()
        assert ToggleActive() != SwitchMode()
        assert len({ToggleActive(), ToggleActive()}) == 1


class TestPointerTracker:
    def test_first_sample_gives_no_delta(self):
        assert PointerTracker().delta(100, 100) is None

    def test_y_points_up(self):
        t = PointerTracker()
        t.delta(100, 100)
        assert t.delta(110, 80) == PointerMotion(10, 20)
        assert t.delta(105, 90) == PointerMotion(-5, -10)

    def test_reset_forgets_last_position(self):
        t = PointerTracker()
        t.delta(0, 0)
        t.reset()
        assert t.delta(500, 500) is None
        assert t.delta(501, 500) == PointerMotion(1, 0)


class TestQueueWithController:
    def test_activate_move_and_release(self):
        ctrl = CameraController(FreeFlyCamera(), base_speed=2.5)
        q = InputQueue()
        q.push(ToggleActive())
        q.push(KeyEvent("forward", True))
        q.push(KeyEvent("fast", True))
        q.drain(ctrl)
        ctrl.update(0.5)
        assert ctrl.active
        assert ctrl.camera.position[2] == pytest.approx(0.5, abs=1e-5)

        q.push(KeyEvent("forward", False))
        q.push(KeyEvent("fast", False))
        q.drain(ctrl)
        ctrl.update(1.0)
        assert ctrl.camera.position[2] == pytest.approx(0.5, abs=1e-5)
        assert ctrl.speed_factor == 1.0

    def test_release_during_overflow_stops_movement(self):
        ctrl = CameraController(FreeFlyCamera(), base_speed=1.0)
        ctrl.set_active(True)
        ctrl.key("forward", True)
        q = InputQueue(maxsize=4)
        for _ in range(4):
            q.push(Scroll(1.0))
        q.push(KeyEvent("forward", False))
        q.drain(ctrl)
        ctrl.update(1.0)
        assert ctrl.moving["forward"] is False
        assert ctrl.camera.position.tolist() == [0, 0, 3]

    def test_look_applies_only_after_activation(self):
        ctrl = CameraController(FreeFlyCamera(), sensitivity=0.1)
        q = InputQueue()
        q.push(PointerMotion(50, 0))
        q.push(ToggleActive())
        q.push(PointerMotion(100, 0))
        q.drain(ctrl)
        assert ctrl.camera.yaw == pytest.approx(10.0)

    def test_switch_mode_event(self):
        ctrl = CameraController(FreeFlyCamera())
        q = InputQueue()
        q.push(SwitchMode())
        q.drain(ctrl)
        assert ctrl.camera.kind == ORBIT
