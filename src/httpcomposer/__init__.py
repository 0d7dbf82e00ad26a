"""httpcomposer -- compose HTTP requests with caching, offline seeds and retries.

Application code builds a request with chained setters on a
:class:`~httpcomposer.composer.Composer` and runs it with a terminal verb.
The composer answers from the cache, from a local seed file, or from the
network (retrying transient faults once), and shapes the result as a
dict, a read-only structured view, or JSON text.

Typical use::

    from httpcomposer import Composer, ComposerConfig

    with Composer(ComposerConfig()) as composer:
        result = composer.set_uri("https://httpbin.org/ip").get()

Modules:
    composer: The request orchestrator.
    models: Pydantic models for configuration, requests and responses.
    transport: httpx-based transport adapters.
    cache: Cache port protocol and the diskcache backend.
    seeds: Directory-backed seed store.
    keys: Cache key derivation.
    formatter: Result shaping.
    config: Configuration loading for host applications.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer command-line interface.
"""

__version__ = "0.1.0"

from httpcomposer.composer import Composer  # noqa: E402
from httpcomposer.exceptions import ComposerError, RequestError  # noqa: E402
from httpcomposer.models import ComposerConfig, ResultFormat, SeedsConfig  # noqa: E402

__all__ = [
    "Composer",
    "ComposerConfig",
    "SeedsConfig",
    "ResultFormat",
    "ComposerError",
    "RequestError",
    "__version__",
]
