"""
Error types raised by tsam.

Every failure a run can hit is a TsamError subclass. Nothing below the
entry point exits the process; the message of the first error raised
becomes the `msg` of the failure envelope.
"""


class TsamError(Exception):
    """Base class for all tsam failures."""
    pass


class ArgumentError(TsamError):
    """Invocation or argument-file problem."""
    pass


class LookupFormatError(TsamError):
    """A retrieve expression is malformed."""
    pass


class ConfigurationError(TsamError):
    """The Terraform configuration cannot be loaded or has no usable backend."""
    pass


class BackendError(TsamError):
    """Backend selection, configuration or workspace access failed."""
    pass


class RetrievalError(TsamError):
    """A requested value is missing and require_all is set."""
    pass


class ResponseShapeError(TsamError):
    """Two response keys claim the same position as both a value and an object."""
    pass


class SerializationError(TsamError):
    """Response data could not be encoded as JSON."""
    pass
