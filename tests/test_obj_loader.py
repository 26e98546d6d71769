"""Tests for obj_loader.py: OBJ parsing into an interleaved vertex stream."""

import logging
import numpy as np
import pytest

from obj_loader import VERTEX_STRIDE, OBJModel

QUAD = """\
# unit quad on the ground plane
v 0 0 0
v 1 0 0
v 1 0 -1
v 0 0 -1
vt 0 0
vt 1 0
vt 1 1
vt 0 1
f 1/1 2/2 3/3 4/4
"""


def write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text)
    return str(path)


class TestParsing:
    def test_quad_is_fan_triangulated(self, tmp_path):
        model = OBJModel(write(tmp_path, "quad.obj", QUAD))
        assert len(model.vertices) == 4
        assert len(model.faces) == 2
        assert model.vertex_count == 6
        data = model.interleaved()
        assert data.dtype == np.float32
        assert data.shape == (6 * VERTEX_STRIDE,)

    def test_fan_shares_first_vertex(self, tmp_path):
        model = OBJModel(write(tmp_path, "quad.obj", QUAD))
        first, second = model.faces
        assert [v[0] for v in first["verts"]] == [0, 1, 2]
        assert [v[0] for v in second["verts"]] == [0, 2, 3]

    def test_missing_normals_get_face_normal(self, tmp_path):
        data = OBJModel(write(tmp_path, "quad.obj", QUAD)).interleaved()
        vertices = data.reshape(-1, VERTEX_STRIDE)
        np.testing.assert_allclose(vertices[:, 3:6], np.tile([0, 1, 0], (6, 1)), atol=1e-6)

    def test_texcoords_interleaved(self, tmp_path):
        vertices = OBJModel(write(tmp_path, "quad.obj", QUAD)).interleaved().reshape(-1, VERTEX_STRIDE)
        assert vertices[1, 6:8].tolist() == [1, 0]
        assert vertices[5, 6:8].tolist() == [0, 1]

    def test_explicit_normals_and_negative_indices(self, tmp_path):
        text = "v 0 0 0\nv 1 0 0\nv 0 1 0\nvn 0 0 1\nf -3//-1 -2//-1 -1//-1\n"
        vertices = OBJModel(write(tmp_path, "tri.obj", text)).interleaved().reshape(-1, VERTEX_STRIDE)
        assert vertices[:, 0:3].tolist() == [[0, 0, 0], [1, 0, 0], [0, 1, 0]]
        assert vertices[:, 3:6].tolist() == [[0, 0, 1]] * 3
        assert vertices[:, 6:8].tolist() == [[0, 0]] * 3

    def test_out_of_range_index(self, tmp_path):
        path = write(tmp_path, "bad.obj", "v 0 0 0\nv 1 0 0\nf 1 2 7\n")
        with pytest.raises(ValueError, match="out of range"):
            OBJModel(path)

    @pytest.mark.parametrize("face, kind", [
        ("f 1/5 2/5 3/5", "texcoord"),
        ("f 1//3 2//1 3//1", "normal"),
        ("f 1/1/-4 2/1/1 3/1/1", "normal"),
    ])
    def test_bad_texcoord_or_normal_index(self, tmp_path, face, kind):
        text = "v 0 0 0\nv 1 0 0\nv 0 1 0\nvt 0 0\nvn 0 0 1\n" + face + "\n"
        with pytest.raises(ValueError, match=f"{kind} index .* out of range"):
            OBJModel(write(tmp_path, "bad.obj", text))

    def test_degenerate_face_skipped(self, tmp_path, caplog):
        path = write(tmp_path, "line.obj", "v 0 0 0\nv 1 0 0\nf 1 2\n")
        with caplog.at_level(logging.WARNING, logger="obj_loader"):
            model = OBJModel(path)
        assert model.faces == []
        assert "skipping face" in caplog.text

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            OBJModel(str(tmp_path / "nope.obj"))


class TestMaterials:
    def test_texture_path_resolved_next_to_mtl(self, tmp_path):
        write(tmp_path, "ground.mtl", "newmtl ground\nKd 0.5 0.6 0.7\nmap_Kd grass.jpg\n")
        model = OBJModel(write(tmp_path, "quad.obj", "mtllib ground.mtl\nusemtl ground\n" + QUAD))
        assert model.materials["ground"]["diffuse"] == (0.5, 0.6, 0.7)
        assert model.texture_path() == str(tmp_path / "grass.jpg")
        assert all(face["material"] == "ground" for face in model.faces)

    def test_missing_mtl_only_warns(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING, logger="obj_loader"):
            model = OBJModel(write(tmp_path, "quad.obj", "mtllib gone.mtl\n" + QUAD))
        assert model.texture_path() is None
        assert model.vertex_count == 6
        assert "material library" in caplog.text


class TestBounds:
    def test_bounds_and_center(self, tmp_path):
        model = OBJModel(write(tmp_path, "quad.obj", QUAD))
        lo, hi = model.get_bounds()
        assert list(lo) == [0, 0, -1]
        assert list(hi) == [1, 0, 0]
        np.testing.assert_allclose(model.get_center(), [0.5, 0, -0.5])

    def test_empty_model(self, tmp_path):
        model = OBJModel(write(tmp_path, "empty.obj", "# nothing\n"))
        assert model.get_bounds() == ((0, 0, 0), (0, 0, 0))
        assert model.interleaved().shape == (0,)
