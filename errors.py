class SpheremapError(Exception):
    """Base class for errors reported to the user."""


class LoadError(SpheremapError):
    """A cube face image could not be decoded."""

    def __init__(self, source, reason):
        self.source = source
        self.reason = reason
        super().__init__(f"Could not load {source}: {reason}")


class ConfigError(SpheremapError):
    """Invalid conversion parameters (AA sample count, output size, ...)."""


class SaveError(SpheremapError):
    """The spheremap could not be encoded or written."""
