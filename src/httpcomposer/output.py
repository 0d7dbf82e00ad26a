"""Terminal output for composer results and diagnostics.

Results go to stdout and nothing else does, so ``httpcomposer request``
can be piped into ``jq``.  Cache hits, seed hits, retries and errors go
to stderr through the same manager.

Three renderings exist for a result:

* ``json`` -- indented JSON, always.
* ``plain`` -- one ``key<TAB>value`` line per top-level field.
* ``rich`` -- highlighted JSON; picked automatically on an interactive
  terminal unless colour is off (``NO_COLOR``, ``TERM=dumb`` or
  ``--no-color``).

Library code only calls ``get_output().debug(...)``; the default manager
is not verbose, so embedding applications see nothing unless they
install one with :func:`set_output`.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.json import JSON

from httpcomposer.formatter import to_plain


class OutputFormat(str, Enum):
    """How results are rendered on stdout."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Writes results to stdout and diagnostics to stderr.

    Args:
        format: Result rendering.  ``AUTO`` becomes ``RICH`` on a colour
            TTY and ``PLAIN`` everywhere else.
        no_color: Print without markup or colour.
        quiet: Drop ``info`` messages.
        verbose: Show ``debug`` messages.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _color_disabled_by_env()
        self._quiet = quiet
        self._verbose = verbose

        if format != OutputFormat.AUTO:
            self._format = format
        elif sys.stdout.isatty() and not self._no_color:
            self._format = OutputFormat.RICH
        else:
            self._format = OutputFormat.PLAIN

        self._console = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=self._format == OutputFormat.RICH,
        )
        self._err_console = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # --- results (stdout) ---

    def print_result(self, result: Any) -> None:
        """Render a composer result.

        Accepts every shape a composer returns: a raw dict, a structured
        view, or JSON text.  JSON text is parsed first so it renders like
        the other two.
        """
        data = to_plain(result)
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except json.JSONDecodeError:
                self.write(data)
                return

        if self._format == OutputFormat.RICH:
            self._console.print(JSON.from_data(data, ensure_ascii=False, default=str))
        elif self._format == OutputFormat.PLAIN and isinstance(data, dict):
            for key, value in data.items():
                if isinstance(value, (dict, list)):
                    value = json.dumps(value, ensure_ascii=False, default=str)
                self.write(f"{key}\t{value}")
        else:
            self.write(json.dumps(data, indent=2, ensure_ascii=False, default=str))

    def write(self, text: str) -> None:
        """Write one line of text to stdout, unformatted."""
        print(text, file=sys.stdout, flush=True)

    # --- diagnostics (stderr) ---

    def info(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic("", "", message)

    def warning(self, message: str) -> None:
        self._diagnostic("Warning: ", "yellow", message)

    def error(self, message: str) -> None:
        """Report an error.  Shown even in quiet mode."""
        self._diagnostic("Error: ", "bold red", message)

    def debug(self, message: str) -> None:
        if self._verbose:
            self._diagnostic("[debug] ", "dim", message)

    def _diagnostic(self, prefix: str, style: str, message: str) -> None:
        if self._no_color:
            print(f"{prefix}{message}", file=sys.stderr, flush=True)
        else:
            self._err_console.print(f"{prefix}{message}", style=style or None, markup=False)


def _color_disabled_by_env() -> bool:
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


# --- process-wide manager ---

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager.  Tests call this between cases."""
    global _output
    _output = None
