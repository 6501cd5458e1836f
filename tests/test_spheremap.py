import os

import numpy as np
import pytest
from PIL import Image

import spheremap
from colors import colors_to_rgba, make_color, unpack_colors
from cubemap import Cubemap, CubeFace
from errors import ConfigError
from settings import SpheremapSettings
from spheremap import BACK_POLE, project, project_grid, render, truncating_average

from conftest import FACE_COLORS, checker_face, cubemap_from_arrays


def test_project_center_looks_forward():
    assert project(0.5, 0.5) == (0.0, 0.0, 1.0)


def test_project_disk_edge_looks_backward():
    assert project(0.5, 0.0) == (0.0, 0.0, -1.0)
    assert project(1.0, 0.5) == (0.0, 0.0, -1.0)


def test_project_corners_clamp_to_back_pole():
    for s, t in [(0.0, 0.0), (1.0, 0.0), (0.0, 1.0), (1.0, 1.0), (0.05, 0.1)]:
        assert project(s, t) == BACK_POLE


def test_project_side():
    x, y, z = project(0.75, 0.5)
    assert x == pytest.approx(np.sqrt(3) / 2)
    assert y == pytest.approx(0.0)
    assert z == pytest.approx(0.5)


def test_project_grid_matches_scalar():
    s, t = np.meshgrid(np.linspace(0, 1, 33), np.linspace(0, 1, 33))
    x, y, z = project_grid(s, t)
    for j in range(33):
        for i in range(33):
            expected = project(float(s[j, i]), float(t[j, i]))
            assert (x[j, i], y[j, i], z[j, i]) == pytest.approx(expected, abs=1e-5)


def test_projected_directions_resolve_inside_faces():
    for s in np.linspace(0, 1, 81):
        for t in np.linspace(0, 1, 81):
            face, tex_s, tex_t = Cubemap.resolve_direction(project(float(s), float(t)))
            assert face in CubeFace
            assert 0.0 <= tex_s <= 1.0
            assert 0.0 <= tex_t <= 1.0


def test_truncating_average():
    assert truncating_average(7, 5) == 1
    assert truncating_average(9, 5) == 1
    assert truncating_average(1275, 5) == 255
    sums = np.array([0, 4, 5, 7, 14], dtype=np.uint32)
    assert truncating_average(sums, 5).tolist() == [0, 0, 1, 1, 2]


def test_solid_faces_never_blend(solid_cubemap):
    out = render(solid_cubemap, SpheremapSettings(output_size=64))
    assert out.shape == (64, 64)
    assert out.dtype == np.uint32

    allowed = {make_color(*rgb) for rgb in FACE_COLORS.values()}
    assert set(np.unique(out).tolist()) <= allowed

    assert out[32, 32] == make_color(*FACE_COLORS["front"])
    assert out[0, 0] == make_color(*FACE_COLORS["back"])
    # Left, right, above and below the center
    assert out[32, 12] == make_color(*FACE_COLORS["left"])
    assert out[32, 52] == make_color(*FACE_COLORS["right"])
    assert out[12, 32] == make_color(*FACE_COLORS["top"])
    assert out[52, 32] == make_color(*FACE_COLORS["bottom"])


def test_alpha_always_opaque(solid_cubemap):
    out = render(solid_cubemap, SpheremapSettings(output_size=16, aa_samples=5))
    assert np.all(out & 0xFF000000 == 0xFF000000)


CHECKER_A = (7, 254, 99)
CHECKER_B = (0, 0, 0)


@pytest.fixture
def checker_cubemap():
    return cubemap_from_arrays({name: checker_face(CHECKER_A, CHECKER_B) for name in FACE_COLORS})


def test_antialiasing_averages_at_edges(checker_cubemap):
    single = render(checker_cubemap, SpheremapSettings(output_size=64, aa_samples=1))
    multi = render(checker_cubemap, SpheremapSettings(output_size=64, aa_samples=5))

    assert np.count_nonzero(single != multi) > 0
    # Center pixel lands well inside the middle cell of the front face
    assert multi[32, 32] == single[32, 32] == make_color(*CHECKER_A)

    # Every pixel is n of 5 samples on color A, averaged with truncation
    allowed = {tuple(c * n // 5 for c in CHECKER_A) for n in range(6)}
    r, g, b = unpack_colors(multi)
    seen = set(zip(r.ravel().tolist(), g.ravel().tolist(), b.ravel().tolist()))
    assert seen <= allowed
    assert len(seen) > 2


def test_workers_do_not_change_result(checker_cubemap):
    serial = render(checker_cubemap, SpheremapSettings(output_size=300))
    threaded = render(checker_cubemap, SpheremapSettings(output_size=300, workers=3))
    assert np.array_equal(serial, threaded)


def test_faces_of_different_sizes():
    arrays = {name: checker_face(CHECKER_A, CHECKER_B, cells=3, cell_size=2) for name in FACE_COLORS}
    arrays["front"] = checker_face(CHECKER_A, CHECKER_B, cells=5, cell_size=7)
    out = render(cubemap_from_arrays(arrays), SpheremapSettings(output_size=32))
    assert out.shape == (32, 32)


def test_convert_writes_default_path(write_faces):
    prefix = write_faces()
    settings = SpheremapSettings(output_size=32)

    output_path = spheremap.convert(prefix, "png", settings)
    assert output_path == prefix + "_spheremap.bmp"
    assert os.path.exists(output_path)

    expected = colors_to_rgba(render(Cubemap.load(prefix, "png"), settings))[..., :3]
    with Image.open(output_path) as img:
        assert img.size == (32, 32)
        assert np.array_equal(np.array(img.convert("RGB")), expected)


def test_convert_explicit_output(write_faces, tmp_path):
    prefix = write_faces()
    target = str(tmp_path / "sphere.png")
    settings = SpheremapSettings(output_size=16, aa_samples=5, output_path=target)

    assert spheremap.convert(prefix, "png", settings) == target
    with Image.open(target) as img:
        assert img.format == "PNG"
        assert img.size == (16, 16)


def test_convert_to_format_without_alpha(write_faces, tmp_path):
    prefix = write_faces()
    target = str(tmp_path / "sphere.jpg")
    settings = SpheremapSettings(output_size=16, output_path=target)

    assert spheremap.convert(prefix, "png", settings) == target
    with Image.open(target) as img:
        assert img.format == "JPEG"
        assert img.mode == "RGB"
        assert img.size == (16, 16)


def test_unknown_output_extension_rejected_before_loading(monkeypatch, tmp_path):
    def fail_load(prefix, extension):
        raise AssertionError("faces must not be loaded")

    monkeypatch.setattr(Cubemap, "load", staticmethod(fail_load))
    with pytest.raises(ConfigError, match="sphere.xyz"):
        spheremap.convert("sky", "png", SpheremapSettings(output_path=str(tmp_path / "sphere.xyz")))
