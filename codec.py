import logging
import os

import numpy as np
from PIL import Image, UnidentifiedImageError

from colors import colors_to_rgba
from errors import LoadError, SaveError

logger = logging.getLogger(__name__)


def describe_source(source):
    if isinstance(source, (str, os.PathLike)):
        return os.fspath(source)
    return getattr(source, "filename", None) or getattr(source, "name", None) or repr(source)


def load_rgba(source) -> np.ndarray:
    """
    Decodes an image file (path or binary file object) into an
    (height, width, 4) uint8 RGBA array. Grayscale, RGB and palette images
    are expanded to four channels.
    """
    name = describe_source(source)
    try:
        with Image.open(source) as img:
            rgba = np.array(img.convert("RGBA"), dtype=np.uint8)
    except FileNotFoundError:
        raise LoadError(name, "file not found") from None
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise LoadError(name, str(e) or type(e).__name__) from e

    if rgba.ndim != 3 or rgba.shape[0] == 0 or rgba.shape[1] == 0:
        raise LoadError(name, "image has no pixels")

    logger.debug("Loaded %s (%dx%d)", name, rgba.shape[1], rgba.shape[0])
    return rgba


# Formats that keep the RGBA buffer as is; everything else gets RGB (alpha is always opaque)
ALPHA_FORMATS = {"BMP", "PNG", "TIFF", "WEBP", "TGA"}


def output_format(path):
    """
    Pillow format name Pillow will write for ``path``, from its extension.
    Paths without an extension are written as BMP. Returns None when no
    installed encoder handles the extension.
    """
    ext = os.path.splitext(os.fspath(path))[1].lower()
    if not ext:
        return "BMP"
    format = Image.registered_extensions().get(ext)
    if format is None or format not in Image.SAVE:
        return None
    return format


def save_colors(colors: np.ndarray, target, format=None):
    """
    Writes an (N, N) array of packed colors. ``target`` is a path or a
    binary file object; the format comes from the path extension unless given,
    and defaults to BMP.
    """
    if format is None and not isinstance(target, (str, os.PathLike)):
        format = "BMP"
    elif format is None:
        format = output_format(target)
        if format is None:
            raise SaveError(f"Could not write {describe_source(target)}: unsupported file extension")

    img = Image.fromarray(colors_to_rgba(colors))
    if format.upper() not in ALPHA_FORMATS:
        img = img.convert("RGB")
    try:
        img.save(target, format=format)
    except (KeyError, ValueError, OSError) as e:
        raise SaveError(f"Could not write {describe_source(target)}: {e}") from e
    logger.debug("Wrote %s", describe_source(target))
