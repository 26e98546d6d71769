"""
Input events and the per-frame event queue.

glfw callbacks only push events here; the frame loop drains the queue once,
before asking the camera for its view matrix, so state changes happen in a
fixed order at a fixed point of the frame.
"""
import logging
from collections import deque, namedtuple

from config import EVENT_QUEUE_SIZE

logger = logging.getLogger(__name__)

KeyEvent = namedtuple("KeyEvent", "action pressed")
PointerMotion = namedtuple("PointerMotion", "dx dy")
Scroll = namedtuple("Scroll", "dy")


class ToggleActive:
    __slots__ = ()

    def __eq__(self, other):
        return isinstance(other, ToggleActive)

    def __hash__(self):
        return hash(ToggleActive)

    def __repr__(self):
        return "ToggleActive()"


class SwitchMode:
    __slots__ = ()

    def __eq__(self, other):
        return isinstance(other, SwitchMode)

    def __hash__(self):
        return hash(SwitchMode)

    def __repr__(self):
        return "SwitchMode()"


class InputQueue:
    """Bounded FIFO of input events.

    Consecutive pointer motions merge into a single event. Once full, key
    events are kept as the latest state per action and applied after the
    queued events, so a release is never lost. Other new events are dropped
    (and counted) rather than evicting queued ones.
    """

    def __init__(self, maxsize=EVENT_QUEUE_SIZE):
        if maxsize < 1:
            raise ValueError(f"queue size must be positive, got {maxsize}")
        self.maxsize = maxsize
        self.dropped = 0
        self._events = deque()
        self._late_keys = {}

    def __len__(self):
        return len(self._events) + len(self._late_keys)

    def push(self, event):
        if isinstance(event, PointerMotion) and self._events and isinstance(self._events[-1], PointerMotion):
            last = self._events[-1]
            self._events[-1] = PointerMotion(last.dx + event.dx, last.dy + event.dy)
            return True
        if len(self._events) >= self.maxsize:
            if isinstance(event, KeyEvent):
                # last state wins; re-inserting keeps arrival order across actions
                self._late_keys.pop(event.action, None)
                self._late_keys[event.action] = event.pressed
                logger.warning("input queue full (%d events), deferring %r", self.maxsize, event)
                return True
            self.dropped += 1
            logger.warning("input queue full (%d events), dropping %r", self.maxsize, event)
            return False
        self._events.append(event)
        return True

    def drain(self, controller):
        """Apply every queued event to ``controller`` in arrival order, then any deferred keys."""
        applied = 0
        while self._events:
            dispatch(controller, self._events.popleft())
            applied += 1
        late, self._late_keys = self._late_keys, {}
        for action, pressed in late.items():
            dispatch(controller, KeyEvent(action, pressed))
            applied += 1
        return applied


def dispatch(controller, event):
    if isinstance(event, KeyEvent):
        controller.key(event.action, event.pressed)
    elif isinstance(event, PointerMotion):
        controller.pointer_motion(event.dx, event.dy)
    elif isinstance(event, Scroll):
        controller.scroll(event.dy)
    elif isinstance(event, ToggleActive):
        controller.toggle()
    elif isinstance(event, SwitchMode):
        controller.switch_mode()
    else:
        raise TypeError(f"unsupported input event {event!r}")


class PointerTracker:
    """Turns absolute cursor positions into deltas with +y pointing up."""

    def __init__(self):
        self.last = None

    def reset(self):
        self.last = None

    def delta(self, xpos, ypos):
        if self.last is None:
            self.last = (xpos, ypos)
            return None
        last_x, last_y = self.last
        self.last = (xpos, ypos)
        # screen y grows downwards
        return PointerMotion(xpos - last_x, last_y - ypos)
