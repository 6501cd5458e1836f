# Packed color layout: R in bits 0-7, G in 8-15, B in 16-23, alpha 0xFF in 24-31.
# Same byte order as an RGBA8 texel read as a little-endian uint32.

import numpy as np

ALPHA_OPAQUE = 0xFF << 24


def make_color(r: int, g: int, b: int) -> int:
    return (r & 0xFF) | (g & 0xFF) << 8 | (b & 0xFF) << 16 | ALPHA_OPAQUE


def split_color(color: int) -> tuple[int, int, int]:
    return color & 0xFF, color >> 8 & 0xFF, color >> 16 & 0xFF


def pack_colors(r, g, b) -> np.ndarray:
    """Vectorized make_color. Channels must already be in 0..255."""
    r = np.asarray(r, dtype=np.uint32)
    g = np.asarray(g, dtype=np.uint32)
    b = np.asarray(b, dtype=np.uint32)
    return r | (g << 8) | (b << 16) | np.uint32(ALPHA_OPAQUE)


def unpack_colors(colors: np.ndarray):
    colors = np.asarray(colors, dtype=np.uint32)
    return colors & 0xFF, (colors >> 8) & 0xFF, (colors >> 16) & 0xFF


def texels_to_colors(rgba: np.ndarray) -> np.ndarray:
    """(H, W, 4) uint8 RGBA -> (H, W) packed uint32."""
    rgba = np.ascontiguousarray(rgba, dtype=np.uint8)
    return rgba.view("<u4")[..., 0].astype(np.uint32)


def colors_to_rgba(colors: np.ndarray) -> np.ndarray:
    """(H, W) packed uint32 -> (H, W, 4) uint8 RGBA."""
    colors = np.ascontiguousarray(colors, dtype="<u4")
    return colors.view(np.uint8).reshape(colors.shape + (4,))
