"""Typer application and CLI entry point for httpcomposer.

``httpcomposer request URI`` runs one composed request and prints the
result: response data on stdout, diagnostics on stderr.  Configuration is
resolved by :func:`~httpcomposer.config.resolve_config`; the response
cache lives in the XDG cache directory.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.  :class:`~httpcomposer.exceptions.ComposerError`
instances exit with their ``exit_code``.
"""

from __future__ import annotations

import json
import signal
import sys
from typing import Any, Optional

import typer

from httpcomposer import __version__
from httpcomposer.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="httpcomposer",
    help="Compose HTTP requests with caching, offline seeds and retries.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"httpcomposer {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Install the global :class:`~httpcomposer.output.OutputManager` from CLI flags."""
    from httpcomposer.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))


@app.command("request")
def request_command(
    uri: str = typer.Argument(..., help="Absolute request URI."),
    method: str = typer.Option("GET", "--method", "-X", help="GET, POST, PUT or DELETE."),
    param: list[str] = typer.Option(
        [], "--param", "-d", help="Body parameter as key=value (value parsed as JSON if possible)."
    ),
    header: list[str] = typer.Option([], "--header", "-H", help="Request header as 'Name: value'."),
    auth_token: Optional[str] = typer.Option(None, "--auth-token", help="Token for the Authorization header."),
    with_header: list[str] = typer.Option(
        [], "--with-header", help="Response header to include in the result."
    ),
    use_cache: bool = typer.Option(False, "--cache", help="Read and write the response cache."),
    ttl: Optional[int] = typer.Option(None, "--ttl", help="Cache TTL in seconds."),
    seeds_dir: Optional[str] = typer.Option(None, "--seeds-dir", help="Enable seeds in this directory."),
    adapter: Optional[str] = typer.Option(None, "--adapter", help="Transport: sync or async."),
    result_format: str = typer.Option("raw", "--format", help="Result shape: raw, structured or json."),
    debug_request: bool = typer.Option(
        False, "--debug-request", help="Print the request configuration without sending it."
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to a JSON config file."),
) -> None:
    """Execute one request and print the result."""
    from httpcomposer.cache import DiskCache
    from httpcomposer.composer import Composer
    from httpcomposer.config import get_cache_dir, resolve_config
    from httpcomposer.exceptions import ComposerError
    from httpcomposer.models import HTTPMethod, ResultFormat
    from httpcomposer.output import get_output

    output = get_output()
    cache: Optional[DiskCache] = None
    try:
        config = resolve_config(config_path, seeds_dir, adapter)
        fmt = _parse_format(result_format)
        verb = HTTPMethod(method.upper())
        if use_cache:
            cache = DiskCache(get_cache_dir())

        with Composer(config, cache=cache) as composer:
            composer.set_uri(uri)
            for raw in header:
                name, value = _parse_header(raw)
                composer.add_header(name, value)
            if param:
                composer.set_params(_parse_params(param))
            if auth_token:
                composer.set_auth_token(auth_token)
            if with_header:
                composer.with_headers(with_header)
            if use_cache:
                composer.use_cache(ttl)
            if fmt == ResultFormat.STRUCTURED:
                composer.return_structured()
            elif fmt == ResultFormat.JSON:
                composer.return_json()
            if debug_request:
                composer.debug()

            result = getattr(composer, verb.value.lower())()
    except ComposerError as exc:
        output.error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    except ValueError as exc:
        output.error(str(exc))
        raise typer.Exit(code=2) from None
    finally:
        if cache is not None:
            cache.close()

    output.print_result(result)


def _parse_format(value: str) -> Any:
    from httpcomposer.models import ResultFormat

    try:
        return ResultFormat(value.lower())
    except ValueError:
        raise ValueError(
            f"Unknown format '{value}' (expected one of: "
            f"{', '.join(fmt.value for fmt in ResultFormat)})"
        ) from None


def _parse_header(raw: str) -> tuple[str, str]:
    """Split ``'Name: value'`` into its parts."""
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise ValueError(f"Invalid header '{raw}', expected 'Name: value'")
    return name.strip(), value.strip()


def _parse_params(pairs: list[str]) -> dict[str, Any]:
    """Turn ``key=value`` pairs into a dict, decoding JSON values where possible."""
    params: dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Invalid parameter '{pair}', expected key=value")
        try:
            params[key] = json.loads(value)
        except json.JSONDecodeError:
            params[key] = value
    return params


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``httpcomposer`` console script."""
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from httpcomposer.exceptions import ComposerError
        from httpcomposer.output import get_output

        get_output().error(str(exc))
        if isinstance(exc, ComposerError):
            sys.exit(exc.exit_code)
        sys.exit(EXIT_GENERIC_FAILURE)
