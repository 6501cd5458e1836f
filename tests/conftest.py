import numpy as np
import pytest
from PIL import Image

from cubemap import Cubemap, CubeFace, FaceTexture

FACE_COLORS = {
    "right": (255, 0, 0),
    "left": (0, 255, 0),
    "top": (0, 0, 255),
    "bottom": (255, 255, 0),
    "front": (255, 0, 255),
    "back": (0, 255, 255),
}


def solid_face(rgb, size=8):
    img = np.empty((size, size, 4), dtype=np.uint8)
    img[..., :3] = rgb
    img[..., 3] = 255
    return img


def checker_face(color_a, color_b, cells=3, cell_size=4):
    size = cells * cell_size
    yy, xx = np.mgrid[0:size, 0:size]
    odd = ((xx // cell_size + yy // cell_size) % 2).astype(bool)
    img = solid_face(color_a, size)
    img[odd, :3] = color_b
    return img


def cubemap_from_arrays(arrays):
    """arrays: mapping face suffix -> RGBA uint8 array."""
    return Cubemap({face: FaceTexture(arrays[face.suffix]) for face in CubeFace})


@pytest.fixture
def solid_cubemap():
    return cubemap_from_arrays({name: solid_face(rgb) for name, rgb in FACE_COLORS.items()})


@pytest.fixture
def write_faces(tmp_path):
    """Writes six face PNGs and returns the file name prefix."""

    def _write(arrays=None, prefix="sky", extension="png"):
        if arrays is None:
            arrays = {name: solid_face(rgb) for name, rgb in FACE_COLORS.items()}
        for name, pixels in arrays.items():
            Image.fromarray(pixels).save(tmp_path / f"{prefix}_{name}.{extension}")
        return str(tmp_path / prefix)

    return _write
