"""
Exception hierarchy for the neuro-evolution engine.

Every error raised on purpose by this package derives from
NeuroArcadeError. Errors describing a bad value also derive from
ValueError so existing `except ValueError` handlers keep working.
"""


class NeuroArcadeError(Exception):
    """Base class for all package errors."""


class ShapeMismatchError(NeuroArcadeError, ValueError):
    """An input vector does not match the network's input layer."""

    def __init__(self, expected: int, got):
        self.expected = expected
        self.got = got
        super().__init__(
            f"Expected an input vector of length {expected}, got {got}"
        )


class NetworkFormatError(NeuroArcadeError, ValueError):
    """A serialized network record or export envelope is malformed."""


class IncompatibleNetworksError(NeuroArcadeError, ValueError):
    """Two networks cannot be combined because their layer sizes differ."""


class ConfigurationError(NeuroArcadeError, ValueError):
    """A configuration value is out of range or of the wrong type."""


class StorageError(NeuroArcadeError):
    """A persistence operation could not be completed."""
