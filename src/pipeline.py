"""
Model/view/projection composition.

The only place where camera, projection and per-object matrices meet before
they are handed to the shader. Per frame:

    PV  = P @ V           (once)
    PVM = PV @ M          (per drawable)
    N   = inverse-transpose of M, upper-left 3x3  (per drawable)

P is cached and rebuilt only when the viewport aspect ratio changes. All
matrices are row-major (see vecmath), so uploads use transpose=GL_TRUE.
"""
import logging
import math
from collections import namedtuple

from config import FOV_DEG, Z_FAR, Z_NEAR
from transform import normal_matrix, perspective
from vecmath import IDENTITY44, multiply

logger = logging.getLogger(__name__)

FrameTransforms = namedtuple("FrameTransforms", "projection view pv")
ObjectTransforms = namedtuple("ObjectTransforms", "pvm model normal")


class TransformPipeline:
    def __init__(self, fov_rad=math.radians(FOV_DEG), znear=Z_NEAR, zfar=Z_FAR, aspect=1.0):
        # fail at construction instead of on the first frame
        perspective(fov_rad, aspect, znear, zfar)
        self.fov = fov_rad
        self.znear = znear
        self.zfar = zfar
        self.aspect = aspect
        self.rebuild_count = 0
        self._projection = None

    def set_viewport(self, width, height):
        """Record the drawable size. Returns False for a minimized (zero) surface."""
        if width <= 0 or height <= 0:
            return False
        aspect = width / height
        if aspect != self.aspect:
            logger.debug("aspect ratio %.4f -> %.4f", self.aspect, aspect)
            self.aspect = aspect
            self._projection = None
        return True

    def projection(self):
        if self._projection is None:
            self._projection = perspective(self.fov, self.aspect, self.znear, self.zfar)
            self.rebuild_count += 1
        return self._projection

    def begin_frame(self, view_source):
        """Compose P @ V for this frame. ``view_source`` is anything with view_matrix()."""
        P = self.projection()
        V = view_source.view_matrix()
        return FrameTransforms(P, V, multiply(P, V))

    def object_transforms(self, frame, model=None):
        """PVM and normal matrix for one drawable.

        Raises DegenerateInputError when ``model`` is singular; the caller
        decides whether to skip the draw.
        """
        M = IDENTITY44 if model is None else model
        return ObjectTransforms(multiply(frame.pv, M), M, normal_matrix(M))
