"""Exception taxonomy for fadupes.

Configuration errors are fatal and raised before any scanning starts.
Everything else is recoverable: per-file problems become outcome values
and state-file problems become warnings.
"""


class FadupesError(Exception):
    """Base class for all fadupes errors."""


class ConfigurationError(FadupesError):
    """Invalid invocation detected at startup."""


class InvalidFilterExpression(ConfigurationError, ValueError):
    """Malformed --ignore-size expression."""


class InputPathError(ConfigurationError):
    """An input path does not exist."""


class StateDirectoryError(ConfigurationError):
    """The directory holding the resume state is not usable."""


class DecodeError(FadupesError):
    """Audio content is corrupt or unsupported."""


class StateLoadCorrupt(FadupesError):
    """The resume state file could not be parsed."""


class StateSaveFailed(FadupesError):
    """A checkpoint could not be written."""
