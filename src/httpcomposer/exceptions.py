"""Exception hierarchy for httpcomposer.

All exceptions inherit from :class:`ComposerError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`httpcomposer.exit_codes`.  The CLI entry point catches
``ComposerError`` and exits with the appropriate code.

Subclass hierarchy::

    ComposerError (exit 1)
    +-- ConfigurationError          (exit 1)
    +-- RequestError                (exit 8)
    |   +-- MissingFieldError       (exit 2)
    |   +-- MissingParameterError   (exit 2)
    +-- TransportError              (exit 6)
    |   +-- TransientTransportError (exit 6)
    |   +-- PermanentTransportError (exit 6)
    +-- TransportStateError         (exit 1)
    +-- SeedUnavailableError        (exit 1)

Transport adapters raise :class:`TransportError` subclasses only.  The
:class:`~httpcomposer.composer.Composer` never lets them escape directly:
they are wrapped in a :class:`RequestError` whose :attr:`RequestError.cause`
is the original transport error.
"""

from __future__ import annotations

import enum
from typing import Optional

from httpcomposer.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_REQUEST_ERROR,
    EXIT_TRANSPORT_ERROR,
)


class ComposerError(Exception):
    """Base exception for all httpcomposer errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigurationError(ComposerError):
    """Raised for configuration problems (seeds enabled without a directory, invalid config file)."""

    exit_code = EXIT_GENERIC_FAILURE


class RequestError(ComposerError):
    """Raised when a request cannot be executed.

    This is the single error shape callers of the terminal verbs need to
    catch.  When the failure originated in the transport layer the
    original :class:`TransportError` is available as :attr:`cause` (and as
    ``__cause__`` since it is raised with ``from``).

    Args:
        message: Human-readable error description.
        cause: The underlying exception, if any.
    """

    exit_code = EXIT_REQUEST_ERROR

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class MissingFieldError(RequestError):
    """Raised when ``execute()`` is called with no method or no URI."""

    exit_code = EXIT_INVALID_USAGE


class MissingParameterError(RequestError):
    """Raised when ``post()`` is called without request parameters."""

    exit_code = EXIT_INVALID_USAGE


class FailureKind(str, enum.Enum):
    """Classification of a transient transport failure."""

    SOCKET = "socket"
    DNS = "dns"
    TIMEOUT = "timeout"


class TransportError(ComposerError):
    """Base class for faults raised by a transport adapter."""

    exit_code = EXIT_TRANSPORT_ERROR


class TransientTransportError(TransportError):
    """A transport fault presumed temporary: socket error, DNS failure or timeout.

    Transient failures are retried once and, when the retry budget is
    exhausted, trigger the seed fallback.

    Args:
        message: Human-readable error description.
        kind: Which transient class the fault belongs to.
    """

    def __init__(self, message: str, kind: FailureKind = FailureKind.SOCKET):
        super().__init__(message)
        self.kind = kind


class PermanentTransportError(TransportError):
    """A transport fault that is not worth retrying.

    Also raised by the orchestrator when a transient failure has used up
    its retry budget and no seed could stand in for the response.
    """


class TransportStateError(ComposerError):
    """Raised when a response accessor is used before any request was sent."""


class SeedUnavailableError(ComposerError):
    """No usable seed exists for a key.  Internal; never escapes ``execute()``."""
