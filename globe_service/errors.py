"""
Error types raised by the satellite globe service.

ParseError and PropagationFailure are absorbed where they occur: a malformed
record or a failed sample is skipped. LoadFailure ends the data load for the
session.
"""


class GlobeServiceError(Exception):
    """Base class for satellite globe errors."""


class ParseError(GlobeServiceError, ValueError):
    """Malformed element-set record or international designator."""


class PropagationFailure(GlobeServiceError, RuntimeError):
    """The propagator could not produce a position for a sample."""


class LoadFailure(GlobeServiceError):
    """The element text could not be fetched or was empty."""
