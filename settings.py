from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional

import codec
from errors import ConfigError

# Sub-pixel sample offsets, in units of one output pixel.
AA_PATTERN_NONE = ((0.0, 0.0),)
AA_PATTERN_5X = (
    (0.0, 0.0),
    (-0.1875, -0.375),
    (0.375, -0.1875),
    (0.1875, 0.375),
    (-0.375, 0.1875),
)

AA_PATTERNS = MappingProxyType({1: AA_PATTERN_NONE, 5: AA_PATTERN_5X})

DEFAULT_OUTPUT_SIZE = 1024
# cv2.remap needs image and map sides below SHRT_MAX
MAX_OUTPUT_SIZE = 32766
DEFAULT_OUTPUT_EXTENSION = "bmp"


def default_output_path(prefix: str, extension: str = DEFAULT_OUTPUT_EXTENSION) -> str:
    return f"{prefix}_spheremap.{extension}"


def _parse_int(name, value):
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None


@dataclass(frozen=True)
class SpheremapSettings:
    aa_samples: int = 1
    output_size: int = DEFAULT_OUTPUT_SIZE
    output_path: Optional[str] = None
    workers: int = 1

    def __post_init__(self):
        for name in ("aa_samples", "output_size", "workers"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} must be an integer, got {value!r}")

        if self.aa_samples not in AA_PATTERNS:
            raise ConfigError(
                f"Invalid AA sample pattern {self.aa_samples}, expected one of "
                f"{', '.join(str(k) for k in AA_PATTERNS)}"
            )
        if self.output_size <= 0:
            raise ConfigError(f"Output size must be positive, got {self.output_size}")
        if self.output_size > MAX_OUTPUT_SIZE:
            raise ConfigError(f"Output size must be at most {MAX_OUTPUT_SIZE}, got {self.output_size}")
        if self.workers <= 0:
            raise ConfigError(f"Worker count must be positive, got {self.workers}")
        if self.output_path and codec.output_format(self.output_path) is None:
            raise ConfigError(f"Unsupported output file type: {self.output_path}")

    @property
    def aa_pattern(self):
        return AA_PATTERNS[self.aa_samples]

    @classmethod
    def from_strings(cls, aa=None, size=None, output_path=None, workers=None):
        """Build settings from textual values (CLI arguments, form fields).

        ``None`` or an empty string keeps the default for that field.
        """
        kwargs = {}
        if aa not in (None, ""):
            kwargs["aa_samples"] = _parse_int("AA sample count", aa)
        if size not in (None, ""):
            kwargs["output_size"] = _parse_int("Output size", size)
        if workers not in (None, ""):
            kwargs["workers"] = _parse_int("Worker count", workers)
        if output_path:
            kwargs["output_path"] = output_path
        return cls(**kwargs)
