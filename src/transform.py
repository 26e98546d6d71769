import math
import numpy as np

from errors import DegenerateInputError
from vecmath import (
    EPSILON, as_vec, cross, identity33, invert, is_identity, normalize, length,
    transpose, upper_left33,
)

# Builders return row-major float32 4x4 matrices (see vecmath). Angles are radians.


def rotation_x(angle_rad):
    c = math.cos(angle_rad); s = math.sin(angle_rad)
    M = np.eye(4, dtype=np.float32)
    M[1, 1] = c; M[1, 2] = -s
    M[2, 1] = s; M[2, 2] = c
    return M


def rotation_y(angle_rad):
    c = math.cos(angle_rad); s = math.sin(angle_rad)
    M = np.eye(4, dtype=np.float32)
    M[0, 0] = c; M[0, 2] = s
    M[2, 0] = -s; M[2, 2] = c
    return M


def rotation_z(angle_rad):
    c = math.cos(angle_rad); s = math.sin(angle_rad)
    M = np.eye(4, dtype=np.float32)
    M[0, 0] = c; M[0, 1] = -s
    M[1, 0] = s; M[1, 1] = c
    return M


def rotation(angle_rad, axis):
    """Rotation about an arbitrary axis; a zero axis gives the identity."""
    axis = np.array(axis, dtype=np.float32)
    if length(axis) < EPSILON:
        return np.eye(4, dtype=np.float32)
    x, y, z = normalize(axis)
    c = math.cos(angle_rad); s = math.sin(angle_rad); C = 1.0 - c
    R3 = np.array([
        [x*x*C + c,     x*y*C - z*s, x*z*C + y*s],
        [y*x*C + z*s,   y*y*C + c,   y*z*C - x*s],
        [z*x*C - y*s,   z*y*C + x*s, z*z*C + c  ],], dtype=np.float32)
    M = np.eye(4, dtype=np.float32)
    M[:3, :3] = R3
    return M


def translation(x, y=None, z=None):
    """translation((x, y, z)) or translation(x, y, z)."""
    if y is None and z is None:
        x, y, z = as_vec(x, 3)
    elif y is None or z is None:
        raise TypeError("translation takes one 3-vector or three scalars")
    M = np.eye(4, dtype=np.float32)
    M[0, 3] = x; M[1, 3] = y; M[2, 3] = z
    return M


def scaling(sx, sy=None, sz=None):
    """scaling(s) scales uniformly; otherwise all three factors are required."""
    if sy is None and sz is None:
        sy = sz = sx
    elif sy is None or sz is None:
        raise TypeError("scaling takes one factor or three")
    M = np.eye(4, dtype=np.float32)
    M[0, 0] = sx; M[1, 1] = sy; M[2, 2] = sz
    return M


def perspective(fovy_rad, aspect, znear, zfar):
    """OpenGL symmetric frustum.

    View-space z = -znear lands on NDC z = -1 and z = -zfar on NDC z = +1.
    The bottom row copies -z_view into clip w for the perspective divide.
    """
    params = (fovy_rad, aspect, znear, zfar)
    if not all(math.isfinite(p) for p in params):
        raise DegenerateInputError(f"non-finite projection parameters {params}")
    if not 0.0 < fovy_rad < math.pi:
        raise DegenerateInputError(f"field of view {fovy_rad} outside (0, pi)")
    if aspect <= 0.0:
        raise DegenerateInputError(f"aspect ratio must be positive, got {aspect}")
    if not 0.0 < znear < zfar:
        raise DegenerateInputError(f"need 0 < near < far, got near={znear} far={zfar}")

    f = 1.0 / math.tan(fovy_rad / 2.0)
    M = np.zeros((4, 4), dtype=np.float32)
    M[0, 0] = f / aspect; M[1, 1] = f
    M[2, 2] = (zfar + znear) / (znear - zfar)
    M[2, 3] = (2.0 * zfar * znear) / (znear - zfar)
    M[3, 2] = -1.0
    return M


def look_at(eye, target, up):
    eye = as_vec(eye, 3)
    target = as_vec(target, 3)
    f = normalize(target - eye)
    if length(f) == 0.0:
        raise DegenerateInputError("eye and target coincide")
    s = normalize(cross(f, up))
    if length(s) == 0.0:
        raise DegenerateInputError("up vector is parallel to the view direction")
    u = cross(s, f)
    M = np.eye(4, dtype=np.float32)
    M[0, 0:3] = s; M[1, 0:3] = u; M[2, 0:3] = -f
    M[0, 3] = -np.dot(s, eye)
    M[1, 3] = -np.dot(u, eye)
    M[2, 3] = np.dot(f, eye)
    return M


def normal_matrix(M):
    """3x3 inverse-transpose of the model matrix, for lighting normals.

    Skips the inversion for the identity, which is what most drawables carry.
    """
    if is_identity(M):
        return identity33()
    return upper_left33(transpose(invert(M)))
