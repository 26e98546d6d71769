import ctypes
import os
import logging
import numpy as np
from PIL import Image
from OpenGL.GL import *

from obj_loader import VERTEX_STRIDE

logger = logging.getLogger(__name__)

# shader location, float count, float offset: position, normal, texcoord
VERTEX_LAYOUT = ((0, 3, 0), (1, 3, 3), (2, 2, 6))


class Mesh:
    def __init__(self, vertices, indices, texture_id=None):
        # vertices: float32 interleaved x y z nx ny nz u v
        # indices: uint32
        self.count = indices.size
        self.texture_id = texture_id

        self.vao = glGenVertexArrays(1)
        self.vbo = glGenBuffers(1)
        self.ebo = glGenBuffers(1)

        glBindVertexArray(self.vao)

        glBindBuffer(GL_ARRAY_BUFFER, self.vbo)
        glBufferData(GL_ARRAY_BUFFER, vertices.nbytes, vertices, GL_STATIC_DRAW)

        glBindBuffer(GL_ELEMENT_ARRAY_BUFFER, self.ebo)
        glBufferData(GL_ELEMENT_ARRAY_BUFFER, indices.nbytes, indices, GL_STATIC_DRAW)

        stride = VERTEX_STRIDE * 4
        for loc, size, offset in VERTEX_LAYOUT:
            glEnableVertexAttribArray(loc)
            glVertexAttribPointer(loc, size, GL_FLOAT, GL_FALSE, stride, ctypes.c_void_p(offset * 4))

        glBindVertexArray(0)

    @classmethod
    def from_obj(cls, model, texture_id=None):
        vertices = model.interleaved()
        indices = np.arange(len(vertices) // VERTEX_STRIDE, dtype=np.uint32)
        return cls(vertices, indices, texture_id=texture_id)

    def draw(self):
        glBindVertexArray(self.vao)
        glDrawElements(GL_TRIANGLES, self.count, GL_UNSIGNED_INT, ctypes.c_void_p(0))
        glBindVertexArray(0)

    def destroy(self):
        glDeleteVertexArrays(1, [self.vao])
        glDeleteBuffers(1, [self.vbo])
        glDeleteBuffers(1, [self.ebo])
        if self.texture_id is not None:
            glDeleteTextures(1, [self.texture_id])


class Drawable:
    """A mesh with its own model matrix. No parents, no children."""

    def __init__(self, name, mesh, model=None, material_color=(0.8, 0.8, 0.8)):
        self.name = name
        self.mesh = mesh
        self.model = np.array(model if model is not None else np.eye(4, dtype=np.float32), dtype=np.float32)
        self.material_color = material_color

    def draw(self, shader, transforms):
        shader.set_transform_uniforms(transforms.pvm, transforms.model, transforms.normal)
        shader.set_material(self.material_color, self.mesh.texture_id)
        self.mesh.draw()


def create_grid_mesh(size=100, tiles=20):
    # vertices: x, y, z, nx, ny, nz, u, v
    verts = []
    step = size / tiles

    for i in range(tiles):
        for j in range(tiles):
            x0 = -size/2 + i*step
            z0 = -size/2 + j*step
            x1 = x0 + step
            z1 = z0 + step

            # normal always up, uv repeats once per tile
            verts.extend([x0, 0, z0, 0, 1, 0, i, j])
            verts.extend([x0, 0, z1, 0, 1, 0, i, j+1])
            verts.extend([x1, 0, z0, 0, 1, 0, i+1, j])

            verts.extend([x1, 0, z0, 0, 1, 0, i+1, j])
            verts.extend([x0, 0, z1, 0, 1, 0, i, j+1])
            verts.extend([x1, 0, z1, 0, 1, 0, i+1, j+1])

    vertices = np.array(verts, dtype=np.float32)
    indices = np.arange(len(verts) // VERTEX_STRIDE, dtype=np.uint32)

    return Mesh(vertices, indices)


# (normal, u axis, v axis) per face; u x v == normal keeps the winding CCW from outside
CUBE_FACES = (
    ((0, 0, 1), (1, 0, 0), (0, 1, 0)),
    ((0, 0, -1), (-1, 0, 0), (0, 1, 0)),
    ((0, 1, 0), (1, 0, 0), (0, 0, -1)),
    ((0, -1, 0), (1, 0, 0), (0, 0, 1)),
    ((1, 0, 0), (0, 0, -1), (0, 1, 0)),
    ((-1, 0, 0), (0, 0, 1), (0, 1, 0)),
)


def create_cube_mesh(size=1.0):
    s = size * 0.5
    verts = []
    indices = []
    for face, (n, u, v) in enumerate(CUBE_FACES):
        n, u, v = np.array(n), np.array(u), np.array(v)
        for cu, cv in ((0, 0), (1, 0), (1, 1), (0, 1)):
            p = (n + (2*cu - 1) * u + (2*cv - 1) * v) * s
            verts.extend([*p, *n, cu, cv])
        b = face * 4
        indices.extend([b, b+1, b+2, b, b+2, b+3])

    return Mesh(np.array(verts, dtype=np.float32), np.array(indices, dtype=np.uint32))


def load_texture(path):
    """Upload an image as a mipmapped, repeating RGBA texture. None if it can't be read."""
    if not path or not os.path.isfile(path):
        logger.warning("Texture not found: %s", path)
        return None
    try:
        img = Image.open(path)
        img = img.transpose(Image.Transpose.FLIP_TOP_BOTTOM).convert("RGBA")
    except OSError as e:
        logger.warning("Texture error %s: %s", path, e)
        return None
    data = img.tobytes()
    w, h = img.size

    tex_id = glGenTextures(1)
    glBindTexture(GL_TEXTURE_2D, tex_id)
    glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_MIN_FILTER, GL_LINEAR_MIPMAP_LINEAR)
    glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_MAG_FILTER, GL_LINEAR)
    glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_WRAP_S, GL_REPEAT)
    glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_WRAP_T, GL_REPEAT)
    glTexImage2D(GL_TEXTURE_2D, 0, GL_RGBA, w, h, 0, GL_RGBA, GL_UNSIGNED_BYTE, data)
    glGenerateMipmap(GL_TEXTURE_2D)
    logger.info("Loaded texture %s (%dx%d)", path, w, h)
    return tex_id
