import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor

import numpy as np

import codec
from colors import pack_colors, texels_to_colors, unpack_colors
from cubemap import Cubemap
from settings import SpheremapSettings, default_output_path

logger = logging.getLogger(__name__)

# Rows per strip; keeps the float32 work arrays small for large outputs
CHUNK_ROWS = 128

BACK_POLE = (0.0, 0.0, -1.0)


def project(s, t):
    """
    Inverse light-probe (paraboloid) mapping: spheremap coordinates in
    [0, 1] x [0, 1] -> direction (x, y, z). Points outside the disk, where
    the radicand goes negative, all map to the back pole.
    """
    q = s - s * s + t - t * t
    p = 16.0 * q - 4.0
    if p < 0.0:
        return BACK_POLE
    r = math.sqrt(p)
    return r * (2.0 * s - 1.0), r * -(2.0 * t - 1.0), 8.0 * q - 3.0


def project_grid(s, t):
    """Vectorized :func:`project` over float32 arrays of equal shape."""
    s = np.asarray(s, dtype=np.float32)
    t = np.asarray(t, dtype=np.float32)

    q = s - s * s + t - t * t
    p = np.float32(16) * q - np.float32(4)
    outside = p < 0

    r = np.sqrt(np.where(outside, np.float32(0), p))
    x = np.where(outside, np.float32(0), r * (np.float32(2) * s - np.float32(1)))
    y = np.where(outside, np.float32(0), r * -(np.float32(2) * t - np.float32(1)))
    z = np.where(outside, np.float32(-1), np.float32(8) * q - np.float32(3))
    return x, y, z


def pixel_centers(size):
    """(index + 0.5) / size for every output row/column, float32."""
    return (np.arange(size, dtype=np.float32) + np.float32(0.5)) / np.float32(size)


def truncating_average(channel_sum, count):
    """Integer channel sum / sample count, rounded toward zero (7 / 5 -> 1)."""
    return channel_sum // count


def _render_rows(cubemap: Cubemap, out, y0, y1, pattern):
    size = out.shape[1]
    pixel_size = np.float32(1) / np.float32(size)
    centers = pixel_centers(size)

    center_s = np.broadcast_to(centers[np.newaxis, :], (y1 - y0, size))
    center_t = np.broadcast_to(centers[y0:y1, np.newaxis], (y1 - y0, size))

    sum_r = np.zeros((y1 - y0, size), dtype=np.uint32)
    sum_g = np.zeros_like(sum_r)
    sum_b = np.zeros_like(sum_r)

    for dx, dy in pattern:
        s = center_s + np.float32(dx) * pixel_size
        t = center_t + np.float32(dy) * pixel_size

        face_idx, tex_s, tex_t = cubemap.resolve_directions(*project_grid(s, t))
        samples = texels_to_colors(cubemap.sample_faces(face_idx, tex_s, tex_t))

        r, g, b = unpack_colors(samples)
        sum_r += r
        sum_g += g
        sum_b += b

    k = len(pattern)
    out[y0:y1] = pack_colors(
        truncating_average(sum_r, k),
        truncating_average(sum_g, k),
        truncating_average(sum_b, k),
    )


def render(cubemap: Cubemap, settings: SpheremapSettings) -> np.ndarray:
    """Renders the spheremap as an (N, N) array of packed uint32 colors."""
    size = settings.output_size
    pattern = settings.aa_pattern
    out = np.zeros((size, size), dtype=np.uint32)

    strips = [(y0, min(size, y0 + CHUNK_ROWS)) for y0 in range(0, size, CHUNK_ROWS)]

    logger.info(
        "Rendering %dx%d spheremap, %d AA sample(s), %d strip(s) on %d worker(s)",
        size, size, len(pattern), len(strips), settings.workers,
    )
    started = time.perf_counter()

    if settings.workers == 1 or len(strips) == 1:
        for y0, y1 in strips:
            _render_rows(cubemap, out, y0, y1, pattern)
    else:
        # Strips write disjoint rows of ``out``
        with ThreadPoolExecutor(max_workers=settings.workers) as pool:
            futures = [pool.submit(_render_rows, cubemap, out, y0, y1, pattern) for y0, y1 in strips]
            for future in futures:
                future.result()

    logger.info("Rendered in %.2fs", time.perf_counter() - started)
    return out


def convert(prefix, extension, settings: SpheremapSettings = None):
    """Loads the six faces, renders the spheremap and writes it. Returns the output path."""
    if settings is None:
        settings = SpheremapSettings()
    output_path = settings.output_path or default_output_path(prefix)

    cubemap = Cubemap.load(prefix, extension)
    colors = render(cubemap, settings)
    codec.save_colors(colors, output_path)

    logger.info("Wrote %s", output_path)
    return output_path
