"""Exceptions raised by the orientation engine's control surface.

Nothing inside the per-sample fusion path raises: malformed samples are
dropped and degenerate timing is skipped. These exceptions cover the
one-shot permission gate and invalid configuration only.
"""


class FieldCompassError(Exception):
    """Base class for all fieldcompass errors."""


class PermissionDeniedError(FieldCompassError):
    """The platform permission gate returned 'denied'.

    The engine stays uninitialized. It does not retry; the caller decides
    whether to prompt the user again.
    """


class ConfigurationError(FieldCompassError, ValueError):
    """An EngineConfig value, preset, or profile is invalid."""
