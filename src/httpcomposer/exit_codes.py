"""Numeric process exit codes used by the ``httpcomposer`` CLI.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~httpcomposer.exceptions.ComposerError` subclass.
Shell wrappers can inspect the exit code to determine the failure class
without parsing stderr.

Example::

    $ httpcomposer request https://api.example.com/x
    $ echo $?
    6   # EXIT_TRANSPORT_ERROR -- the host could not be reached
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""A request was executed without a required field or parameter."""

EXIT_TRANSPORT_ERROR = 6
"""A transport-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_REQUEST_ERROR = 8
"""The request could not be executed and no fallback was available."""
