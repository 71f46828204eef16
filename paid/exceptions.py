"""
Exception classes for the Paid tracing SDK.

- PaidError: Base exception for all SDK errors
- ConfigurationError: Tracing is not initialized (missing token or tracer)
- PreconditionFailed: Call made outside an active tracing context
- InvalidArgument: Caller supplied an invalid value
- InstrumentationFailure: One vendor library could not be instrumented
"""

from typing import Iterable, Optional


class PaidError(Exception):
    """Base exception for all Paid SDK errors."""

    pass


class ConfigurationError(PaidError):
    """
    Tracing has not been initialized.

    Raised when an operation needs the process-wide tracer or API token and
    ``initialize_tracing()`` has not run (or could not find an API key).
    """

    pass


class PreconditionFailed(PaidError):
    """
    A required value is missing from the ambient tracing context.

    The message names the missing fields, never their values.
    """

    def __init__(self, message: str, missing: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.missing = list(missing or [])


class InvalidArgument(PaidError, ValueError):
    """Caller supplied an invalid argument (e.g. an empty event name)."""

    pass


class InstrumentationFailure(PaidError):
    """
    A vendor library could not be instrumented.

    Never raised out of ``bootstrap_instrumentation()``; recorded in the
    instrumentation registry and logged instead.
    """

    def __init__(self, library: str, reason: str):
        super().__init__(f"Failed to instrument {library}: {reason}")
        self.library = library
        self.reason = reason
