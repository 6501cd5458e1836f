# cubemap.py – six-face environment map with direction lookup and point sampling
# Face order and per-face (s, t) formulas follow the OpenGL cube map convention.

import logging
from enum import IntEnum
from typing import NamedTuple

import cv2
import numpy as np

import codec
from errors import LoadError

logger = logging.getLogger(__name__)


class CubeFace(IntEnum):
    POSITIVE_X = 0
    NEGATIVE_X = 1
    POSITIVE_Y = 2
    NEGATIVE_Y = 3
    POSITIVE_Z = 4
    NEGATIVE_Z = 5

    @property
    def suffix(self):
        return FACE_SUFFIXES[self]


FACE_SUFFIXES = {
    CubeFace.POSITIVE_X: "right",
    CubeFace.NEGATIVE_X: "left",
    CubeFace.POSITIVE_Y: "top",
    CubeFace.NEGATIVE_Y: "bottom",
    CubeFace.POSITIVE_Z: "front",
    CubeFace.NEGATIVE_Z: "back",
}


class FaceTexCoord(NamedTuple):
    face: CubeFace
    s: float
    t: float


class FaceTexture:
    """Read-only RGBA8 face image."""

    def __init__(self, pixels: np.ndarray, source=None):
        if pixels.dtype != np.uint8 or pixels.ndim != 3 or pixels.shape[2] != 4:
            raise LoadError(source, f"expected an RGBA8 buffer, got {pixels.dtype} {pixels.shape}")
        height, width = pixels.shape[:2]
        if width == 0 or height == 0:
            raise LoadError(source, "image has no pixels")
        if width != height:
            raise LoadError(source, f"cube face must be square, got {width}x{height}")

        self._pixels = np.array(pixels, dtype=np.uint8, order="C")

    @property
    def pixels(self):
        view = self._pixels.view()
        view.flags.writeable = False
        return view

    @property
    def width(self):
        return self._pixels.shape[1]

    @property
    def height(self):
        return self._pixels.shape[0]

    def texel(self, x, y) -> int:
        return int(self._pixels[y, x].view("<u4")[0])

    def remap_nearest(self, map_x, map_y):
        """cv2.remap with integer texel maps; returns RGBA of the maps' shape."""
        return cv2.remap(
            self._pixels,
            map_x.astype(np.float32),
            map_y.astype(np.float32),
            interpolation=cv2.INTER_NEAREST,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=0,
        )

    @classmethod
    def load(cls, source):
        return cls(codec.load_rgba(source), source=codec.describe_source(source))


class Cubemap:
    def __init__(self, faces):
        """faces: mapping CubeFace -> FaceTexture, all six required."""
        missing = [f.suffix for f in CubeFace if f not in faces]
        if missing:
            raise LoadError("cubemap", f"missing faces: {', '.join(missing)}")

        self.faces = tuple(faces[f] for f in CubeFace)

        sizes = {(tex.width, tex.height) for tex in self.faces}
        if len(sizes) > 1:
            logger.warning(
                "Cube faces differ in size: %s",
                ", ".join(f"{f.suffix}={tex.width}x{tex.height}" for f, tex in zip(CubeFace, self.faces)),
            )

    @classmethod
    def load(cls, prefix, extension):
        """Loads {prefix}_{right,left,top,bottom,front,back}.{extension}."""
        faces = {}
        for face in CubeFace:
            faces[face] = FaceTexture.load(f"{prefix}_{face.suffix}.{extension}")
        return cls(faces)

    @classmethod
    def from_sources(cls, sources):
        """sources: mapping face suffix (or CubeFace) -> path or file object."""
        faces = {}
        for face in CubeFace:
            source = sources.get(face, sources.get(face.suffix))
            if source is None:
                raise LoadError(face.suffix, "face image not provided")
            faces[face] = FaceTexture.load(source)
        return cls(faces)

    # ------------------------------------------------------------------ #
    # Scalar lookups
    # ------------------------------------------------------------------ #

    def read_texel(self, face, x, y) -> int:
        tex = self.faces[face]
        assert 0 <= x < tex.width, f"texel x={x} out of range for {CubeFace(face).name}"
        assert 0 <= y < tex.height, f"texel y={y} out of range for {CubeFace(face).name}"
        return tex.texel(x, y)

    @staticmethod
    def resolve_direction(direction) -> FaceTexCoord:
        x, y, z = direction
        v = (x, y, z)
        a = (abs(x), abs(y), abs(z))

        # >= comparisons: ties go to the lower axis
        if a[0] >= a[1] and a[0] >= a[2]:
            major_axis = 0
        elif a[1] >= a[2]:
            major_axis = 1
        else:
            major_axis = 2

        m = a[major_axis]
        assert m > 0, "direction vector must be non-zero"

        if v[major_axis] < 0:
            face = CubeFace(major_axis * 2 + 1)
        else:
            face = CubeFace(major_axis * 2)

        if face == CubeFace.POSITIVE_X:
            tmp_s, tmp_t = -z, -y
        elif face == CubeFace.NEGATIVE_X:
            tmp_s, tmp_t = z, -y
        elif face == CubeFace.POSITIVE_Y:
            tmp_s, tmp_t = x, z
        elif face == CubeFace.NEGATIVE_Y:
            tmp_s, tmp_t = x, -z
        elif face == CubeFace.POSITIVE_Z:
            tmp_s, tmp_t = x, -y
        else:
            tmp_s, tmp_t = -x, -y

        return FaceTexCoord(face, 0.5 * (tmp_s / m + 1), 0.5 * (tmp_t / m + 1))

    def sample_face(self, face, s, t) -> int:
        # Point sampling, no filtering across face edges
        tex = self.faces[face]
        x = min(int(s * tex.width), tex.width - 1)
        y = min(int(t * tex.height), tex.height - 1)
        return self.read_texel(face, x, y)

    # ------------------------------------------------------------------ #
    # Vectorized lookups (same rules as above, over whole arrays)
    # ------------------------------------------------------------------ #

    @staticmethod
    def resolve_directions(x, y, z):
        """
        Arrays of direction components -> (face_idx int8, s, t), all with the
        shape of the inputs.
        """
        x = np.asarray(x, dtype=np.float32)
        y = np.asarray(y, dtype=np.float32)
        z = np.asarray(z, dtype=np.float32)

        abs_x = np.abs(x)
        abs_y = np.abs(y)
        abs_z = np.abs(z)

        is_x = (abs_x >= abs_y) & (abs_x >= abs_z)
        is_y = ~is_x & (abs_y >= abs_z)
        is_z = ~is_x & ~is_y

        m = np.where(is_x, abs_x, np.where(is_y, abs_y, abs_z))
        assert np.all(m > 0), "direction vectors must be non-zero"

        face_idx = np.zeros(x.shape, dtype=np.int8)
        tmp_s = np.zeros(x.shape, dtype=np.float32)
        tmp_t = np.zeros(x.shape, dtype=np.float32)

        masks = (
            (CubeFace.POSITIVE_X, is_x & ~(x < 0), -z, -y),
            (CubeFace.NEGATIVE_X, is_x & (x < 0), z, -y),
            (CubeFace.POSITIVE_Y, is_y & ~(y < 0), x, z),
            (CubeFace.NEGATIVE_Y, is_y & (y < 0), x, -z),
            (CubeFace.POSITIVE_Z, is_z & ~(z < 0), x, -y),
            (CubeFace.NEGATIVE_Z, is_z & (z < 0), -x, -y),
        )
        for face, mask, face_s, face_t in masks:
            if not np.any(mask):
                continue
            face_idx[mask] = face
            tmp_s[mask] = face_s[mask]
            tmp_t[mask] = face_t[mask]

        s = np.float32(0.5) * (tmp_s / m + np.float32(1))
        t = np.float32(0.5) * (tmp_t / m + np.float32(1))
        return face_idx, s, t

    def sample_faces(self, face_idx, s, t) -> np.ndarray:
        """
        Point-samples every (face, s, t) triple. Inputs are 2-D arrays of the
        same shape; returns RGBA uint8 of shape (*shape, 4).
        """
        out = np.zeros(face_idx.shape + (4,), dtype=np.uint8)

        for face, tex in zip(CubeFace, self.faces):
            mask = face_idx == face
            if not np.any(mask):
                continue

            # Integer-valued maps, so nearest-neighbor remap reads exactly those texels
            map_x = np.minimum((s * tex.width).astype(np.int32), tex.width - 1)
            map_y = np.minimum((t * tex.height).astype(np.int32), tex.height - 1)
            map_x[~mask] = 0
            map_y[~mask] = 0
            assert map_x.min() >= 0 and map_y.min() >= 0, "texel coordinates out of range"

            remapped = tex.remap_nearest(map_x, map_y)
            out[mask] = remapped[mask]

        return out
