"""Vector and matrix primitives on float32 numpy arrays.

Storage convention: matrices are row-major. ``M[row, col]`` is element
(row, col), vectors are columns multiplied on the right (``M @ v``) and the
translation of an affine matrix lives in the last column. OpenGL expects
column-major data, so every matrix upload passes ``transpose=GL_TRUE``.
"""
import math
import numpy as np

from errors import DegenerateInputError

EPSILON = 1e-6
# largest condition number a float32 inverse can be trusted with
MAX_CONDITION = 1.0 / float(np.finfo(np.float32).eps)


def as_vec(v, size):
    a = np.asarray(v, dtype=np.float32)
    if a.shape != (size,):
        raise DegenerateInputError(f"expected a {size}-vector, got shape {a.shape}")
    return a


def vec3(x, y, z):
    return np.array([x, y, z], dtype=np.float32)


def vec4(x, y, z, w=1.0):
    return np.array([x, y, z, w], dtype=np.float32)


def add(a, b):
    return np.add(a, b, dtype=np.float32)


def sub(a, b):
    return np.subtract(a, b, dtype=np.float32)


def scale(v, k):
    return np.multiply(v, k, dtype=np.float32)


def dot(a, b) -> float:
    return float(np.dot(a, b))


def cross(a, b):
    return np.cross(as_vec(a, 3), as_vec(b, 3)).astype(np.float32)


def length(v) -> float:
    return math.sqrt(dot(v, v))


def normalize(v, strict=False):
    """Unit vector along ``v``.

    Below EPSILON the result is the zero vector, or DegenerateInputError when
    ``strict`` is set.
    """
    a = np.asarray(v, dtype=np.float32)
    n = length(a)
    if n < EPSILON:
        if strict:
            raise DegenerateInputError(f"cannot normalize zero-length vector {a.tolist()}")
        return np.zeros_like(a)
    return (a / n).astype(np.float32)


def identity44():
    return np.eye(4, dtype=np.float32)


def identity33():
    return np.eye(3, dtype=np.float32)


IDENTITY44 = identity44()
IDENTITY44.setflags(write=False)


def _mat(rows, n):
    M = np.array(rows, dtype=np.float32)
    if M.shape != (n, n):
        raise DegenerateInputError(f"expected a {n}x{n} matrix, got shape {M.shape}")
    return M


def mat44(rows):
    return _mat(rows, 4)


def mat33(rows):
    return _mat(rows, 3)


def multiply(A, B):
    return np.matmul(A, B).astype(np.float32)


def apply(A, v):
    return np.matmul(A, v).astype(np.float32)


def transpose(A):
    return np.array(A, dtype=np.float32).T.copy()


def invert(A):
    """Inverse of a square matrix.

    Raises DegenerateInputError when the matrix is singular or too badly
    conditioned for float32, judged by its condition number so the test does
    not depend on the scale of the entries.
    """
    M = np.asarray(A, dtype=np.float64)
    if M.ndim != 2 or M.shape[0] != M.shape[1]:
        raise DegenerateInputError(f"cannot invert a matrix of shape {M.shape}")
    if not np.isfinite(M).all():
        raise DegenerateInputError("matrix has non-finite entries")
    with np.errstate(divide="ignore", invalid="ignore"):
        cond = np.linalg.cond(M)
    if not np.isfinite(cond) or cond > MAX_CONDITION:
        raise DegenerateInputError(f"matrix is singular (condition number {cond:g})")
    try:
        inv = np.linalg.inv(M)
    except np.linalg.LinAlgError as e:
        raise DegenerateInputError(str(e)) from e
    if not np.isfinite(inv).all():
        raise DegenerateInputError("inverse has non-finite entries")
    return inv.astype(np.float32)


def upper_left33(M):
    return np.array(M[:3, :3], dtype=np.float32)


def is_identity(M) -> bool:
    M = np.asarray(M)
    return M.shape == (4, 4) and np.array_equal(M, IDENTITY44)


def perspective_divide(v):
    # owned by the render boundary; used here for checks and tests
    w = float(v[3])
    if abs(w) < EPSILON:
        raise DegenerateInputError("w is zero, point lies on the eye plane")
    return (np.asarray(v[:3], dtype=np.float32) / w).astype(np.float32)
