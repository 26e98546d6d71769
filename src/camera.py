"""
Camera variants and the input-driven controller.

Both variants expose the same surface (``kind``, ``yaw``/``pitch`` in degrees,
``rotate``, ``move``, ``view_matrix``) so the frame pipeline only ever calls
``view_matrix()``.

The controller is not thread-safe. Input events are drained on the render
thread between frames (see controls.InputQueue); if events ever arrive on
another thread the controller state must be double-buffered and swapped once
per frame instead of mutated in place.
"""
import logging
import math
import numpy as np

from config import (
    BASE_SPEED, FAST_FACTOR, MOUSE_SENSITIVITY, ORBIT_DISTANCE,
    ORBIT_MAX_DISTANCE, ORBIT_MIN_DISTANCE, PITCH_LIMIT, SLOW_FACTOR,
    START_PITCH, START_POSITION, START_YAW,
)
from errors import StateInvariantViolation
from transform import look_at, rotation_x, rotation_y, translation
from vecmath import apply, cross, invert, normalize, vec3, vec4

logger = logging.getLogger(__name__)

WORLD_UP = np.array([0.0, 1.0, 0.0], dtype=np.float32)

FREEFLY = "freefly"
ORBIT = "orbit"


class Camera:
    kind = None

    def __init__(self, yaw=START_YAW, pitch=START_PITCH, pitch_limit=PITCH_LIMIT):
        if not 0.0 < pitch_limit < 90.0:
            raise ValueError(f"pitch limit must lie in (0, 90) degrees, got {pitch_limit}")
        self.pitch_limit = float(pitch_limit)
        self._yaw = float(yaw)
        self._pitch = self._clamp_pitch(pitch)

    @property
    def yaw(self):
        return self._yaw

    @yaw.setter
    def yaw(self, value):
        self._yaw = float(value)
        self._orientation_changed()

    @property
    def pitch(self):
        return self._pitch

    @pitch.setter
    def pitch(self, value):
        self._pitch = self._clamp_pitch(value)
        self._orientation_changed()

    def _clamp_pitch(self, pitch):
        return max(-self.pitch_limit, min(self.pitch_limit, float(pitch)))

    def _orientation_changed(self):
        pass

    def rotate(self, dyaw, dpitch):
        self._yaw += dyaw
        self._pitch = self._clamp_pitch(self._pitch + dpitch)
        self._orientation_changed()

    def horizontal_axes(self):
        """World-space forward and right on the ground plane for the current yaw."""
        y = math.radians(self._yaw)
        forward = vec3(math.sin(y), 0.0, -math.cos(y))
        right = vec3(math.cos(y), 0.0, math.sin(y))
        return forward, right

    def check_invariants(self):
        if not -self.pitch_limit <= self._pitch <= self.pitch_limit:
            raise StateInvariantViolation(
                f"pitch {self._pitch} outside [-{self.pitch_limit}, {self.pitch_limit}]")

    def eye_position(self):
        return apply(invert(self.view_matrix()), vec4(0.0, 0.0, 0.0, 1.0))[:3]

    def move(self, forward, right, up):
        raise NotImplementedError

    def view_matrix(self):
        raise NotImplementedError


class FreeFlyCamera(Camera):
    """First-person camera: position plus a yaw/pitch derived basis.

    yaw = pitch = 0 looks down -Z; positive yaw turns toward +X and positive
    pitch looks up. The view matrix equals
    ``rotation_x(-pitch) @ rotation_y(yaw) @ translation(-position)``.
    """

    kind = FREEFLY

    def __init__(self, position=START_POSITION, yaw=START_YAW, pitch=START_PITCH,
                 pitch_limit=PITCH_LIMIT):
        super().__init__(yaw, pitch, pitch_limit)
        self.position = np.array(position, dtype=np.float32)
        self.update_vectors()

    def _orientation_changed(self):
        self.update_vectors()

    def update_vectors(self):
        y = math.radians(self._yaw)
        p = math.radians(self._pitch)
        front = vec3(math.sin(y) * math.cos(p), math.sin(p), -math.cos(y) * math.cos(p))
        self.front = normalize(front)
        self.right = normalize(cross(self.front, WORLD_UP))
        self.up = normalize(cross(self.right, self.front))

    def check_invariants(self):
        super().check_invariants()
        # front x up == right keeps the basis right-handed
        if not np.allclose(cross(self.front, self.up), self.right, atol=1e-5):
            raise StateInvariantViolation("camera basis is not right-handed orthonormal")

    def move(self, forward, right, up):
        # W/S stay on the ground plane, Q/E go straight up and down
        horizontal = normalize(vec3(self.front[0], 0.0, self.front[2]))
        self.position = (self.position
                         + horizontal * forward
                         + self.right * right
                         + WORLD_UP * up).astype(np.float32)

    def eye_position(self):
        return self.position.copy()

    def view_matrix(self):
        if __debug__:
            self.check_invariants()
        # rows come out as right, up and -front
        return look_at(self.position, self.position + self.front, WORLD_UP)


class OrbitCamera(Camera):
    """Camera circling a target at ``distance``.

    ``offset`` accumulates movement and is the negated orbit target, so the
    view matrix is ``translation(0, 0, -distance) @ Rx(pitch) @ Ry(yaw) @
    translation(offset)``. Positive pitch raises the eye above the target.
    """

    kind = ORBIT

    def __init__(self, distance=ORBIT_DISTANCE, offset=(0.0, 0.0, 0.0), yaw=START_YAW,
                 pitch=START_PITCH, pitch_limit=PITCH_LIMIT,
                 min_distance=ORBIT_MIN_DISTANCE, max_distance=ORBIT_MAX_DISTANCE):
        super().__init__(yaw, pitch, pitch_limit)
        if distance < 0.0:
            raise ValueError(f"orbit distance must be non-negative, got {distance}")
        self.distance = float(distance)
        self.offset = np.array(offset, dtype=np.float32)
        self.min_distance = min_distance
        self.max_distance = max_distance

    @property
    def target(self):
        return -self.offset

    def move(self, forward, right, up):
        fwd, rgt = self.horizontal_axes()
        self.offset = (self.offset - (fwd * forward + rgt * right + WORLD_UP * up)).astype(np.float32)

    def zoom(self, factor):
        self.distance = max(self.min_distance, min(self.max_distance, self.distance * factor))

    def orientation_matrix(self):
        return (rotation_x(math.radians(self._pitch))
                @ rotation_y(math.radians(self._yaw))
                @ translation(self.offset))

    def view_matrix(self):
        if __debug__:
            self.check_invariants()
        return translation(0.0, 0.0, -self.distance) @ self.orientation_matrix()


def to_orbit(cam, distance=ORBIT_DISTANCE):
    """Orbit camera with the same view as ``cam``, targeting ``distance`` ahead."""
    offset = -(cam.position + cam.front * distance)
    return OrbitCamera(distance=distance, offset=offset, yaw=cam.yaw, pitch=-cam.pitch,
                       pitch_limit=cam.pitch_limit)


def to_freefly(cam):
    """Free-fly camera placed at the orbit camera's eye, looking the same way."""
    free = FreeFlyCamera(position=(0.0, 0.0, 0.0), yaw=cam.yaw, pitch=-cam.pitch,
                         pitch_limit=cam.pitch_limit)
    free.position = cam.eye_position()
    return free


MOVEMENT_ACTIONS = ("forward", "backward", "left", "right", "up", "down")
SPEED_MODIFIERS = {"fast": FAST_FACTOR, "slow": SLOW_FACTOR}


class CameraController:
    """Inactive/Active state machine feeding pointer and key input to a camera.

    Look and movement only apply while active. Key states are tracked in both
    states so releasing a key while inactive is not lost.
    """

    def __init__(self, camera, base_speed=BASE_SPEED, sensitivity=MOUSE_SENSITIVITY,
                 speed_modifiers=None, on_active_changed=None):
        self.camera = camera
        self.base_speed = base_speed
        self.sensitivity = sensitivity
        self.active = False
        self.on_active_changed = on_active_changed

        self.moving = dict.fromkeys(MOVEMENT_ACTIONS, False)
        self.modifiers = dict(SPEED_MODIFIERS if speed_modifiers is None else speed_modifiers)
        self.speed_factor = 1.0
        self._held = set()

    @property
    def speed(self):
        return self.base_speed * self.speed_factor

    def set_active(self, active):
        active = bool(active)
        if active == self.active:
            return
        self.active = active
        logger.debug("camera %s", "active" if active else "inactive")
        if self.on_active_changed is not None:
            self.on_active_changed(active)

    def toggle(self):
        self.set_active(not self.active)

    def key(self, action, pressed):
        if action in self.moving:
            self.moving[action] = bool(pressed)
        elif action in self.modifiers:
            # apply on transitions only; undo by dividing the same factor
            factor = self.modifiers[action]
            if pressed and action not in self._held:
                self._held.add(action)
                self.speed_factor *= factor
            elif not pressed and action in self._held:
                self._held.remove(action)
                self.speed_factor /= factor
        else:
            raise ValueError(f"unknown camera action {action!r}")

    def pointer_motion(self, dx, dy):
        if not self.active:
            return
        self.camera.rotate(dx * self.sensitivity, dy * self.sensitivity)

    def scroll(self, dy):
        if self.camera.kind != ORBIT or dy == 0:
            return
        self.camera.zoom(0.9 if dy > 0 else 1.1)

    def switch_mode(self):
        if self.camera.kind == FREEFLY:
            self.camera = to_orbit(self.camera)
        else:
            self.camera = to_freefly(self.camera)
        logger.info("camera mode: %s", self.camera.kind)

    def update(self, dt):
        dt = max(0.0, float(dt))
        if not self.active or dt == 0.0:
            return
        step = self.speed * dt
        m = self.moving
        forward = (m["forward"] - m["backward"]) * step
        right = (m["right"] - m["left"]) * step
        up = (m["up"] - m["down"]) * step
        if forward or right or up:
            self.camera.move(forward, right, up)

    def view_matrix(self):
        return self.camera.view_matrix()
