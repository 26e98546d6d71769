import os
import logging
import numpy as np

logger = logging.getLogger(__name__)

# floats per vertex: x y z nx ny nz u v
VERTEX_STRIDE = 8


def _resolve(token, count):
    """OBJ index (1-based, negative from the end) to 0-based; -1 when absent."""
    if not token:
        return -1
    idx = int(token)
    if idx > 0:
        return idx - 1
    if idx < 0:
        return count + idx
    return -1


class OBJModel:
    """Wavefront OBJ reader producing one interleaved vertex stream.

    Only parsing happens here; scene.Mesh.from_obj uploads the result.
    Faces are fan-triangulated, negative indices count from the end, and
    faces without normals get their flat face normal.
    """

    def __init__(self, filename):
        self.filename = filename
        self.vertices = []
        self.normals = []
        self.texcoords = []
        self.faces = []
        self.materials = {}
        self._material = None
        self._load_obj(filename)

    @property
    def vertex_count(self):
        return len(self.faces) * 3

    def get_bounds(self):
        if not self.vertices: return (0, 0, 0), (0, 0, 0)
        pts = np.asarray(self.vertices)
        return pts.min(axis=0), pts.max(axis=0)

    def get_center(self):
        lo, hi = self.get_bounds()
        return (np.asarray(lo) + np.asarray(hi)) / 2.0

    def texture_path(self):
        """map_Kd of the first material that has one, or None."""
        for mat in self.materials.values():
            if mat["texture"]:
                return mat["texture"]
        return None

    def _load_obj(self, filename):
        base_dir = os.path.dirname(filename) or "."
        with open(filename, "r", errors="ignore") as f:
            for lineno, line in enumerate(f, 1):
                tag, _, rest = line.strip().partition(" ")
                rest = rest.strip()
                if tag == "v":
                    self.vertices.append([float(x) for x in rest.split()[:3]])
                elif tag == "vt":
                    self.texcoords.append([float(x) for x in rest.split()[:2]])
                elif tag == "vn":
                    self.normals.append([float(x) for x in rest.split()[:3]])
                elif tag == "f":
                    self._add_face(rest.split(), f"{filename}:{lineno}")
                elif tag == "mtllib":
                    self._load_mtl(os.path.join(base_dir, rest))
                elif tag == "usemtl":
                    self._material = rest
        logger.info("Loaded %s: %d vertices, %d triangles", filename, len(self.vertices), len(self.faces))

    def _add_face(self, corners, where):
        refs = []
        for corner in corners:
            tokens = corner.split("/") + ["", ""]
            v = _resolve(tokens[0], len(self.vertices))
            if not 0 <= v < len(self.vertices):
                raise ValueError(f"{where}: vertex index {tokens[0]} out of range")
            vt = _resolve(tokens[1], len(self.texcoords))
            if tokens[1] and not 0 <= vt < len(self.texcoords):
                raise ValueError(f"{where}: texcoord index {tokens[1]} out of range")
            vn = _resolve(tokens[2], len(self.normals))
            if tokens[2] and not 0 <= vn < len(self.normals):
                raise ValueError(f"{where}: normal index {tokens[2]} out of range")
            refs.append((v, vt, vn))
        if len(refs) < 3:
            logger.warning("%s: skipping face with %d vertices", where, len(refs))
            return
        # fan from the first corner
        for a, b in zip(refs[1:], refs[2:]):
            self.faces.append({"material": self._material, "verts": [refs[0], a, b]})

    def _load_mtl(self, filename):
        base_dir = os.path.dirname(filename)
        current = None
        try:
            with open(filename, "r") as f:
                for line in f:
                    tag, _, rest = line.strip().partition(" ")
                    rest = rest.strip()
                    if tag == "newmtl":
                        current = {"name": rest, "diffuse": (0.8, 0.8, 0.8), "texture": None}
                        self.materials[rest] = current
                    elif current is None:
                        continue
                    elif tag == "Kd":
                        current["diffuse"] = tuple(float(x) for x in rest.split()[:3])
                    elif tag == "map_Kd":
                        current["texture"] = os.path.join(base_dir, rest)
        except OSError as e:
            logger.warning("Could not read material library %s: %s", filename, e)

    def _face_normal(self, verts):
        p0, p1, p2 = (np.asarray(self.vertices[v[0]], dtype=np.float32) for v in verts)
        n = np.cross(p1 - p0, p2 - p0)
        nl = np.linalg.norm(n)
        if nl == 0:
            return (0.0, 1.0, 0.0)
        return tuple(n / nl)

    def interleaved(self):
        """float32 array of VERTEX_STRIDE floats per vertex, three vertices per triangle."""
        out = np.zeros((self.vertex_count, VERTEX_STRIDE), dtype=np.float32)
        row = 0
        for face in self.faces:
            verts = face["verts"]
            flat = None
            for v_idx, vt_idx, vn_idx in verts:
                if vn_idx >= 0:
                    normal = self.normals[vn_idx]
                else:
                    if flat is None: flat = self._face_normal(verts)
                    normal = flat
                out[row, 0:3] = self.vertices[v_idx]
                out[row, 3:6] = normal
                out[row, 6:8] = self.texcoords[vt_idx] if vt_idx >= 0 else (0.0, 0.0)
                row += 1
        return out.reshape(-1)
