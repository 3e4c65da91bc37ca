"""FastAPI dependencies resolving per-process resources from ``app.state``.

The lifespan handler in ``mistral_hub.api.app`` populates the state; tests
replace these callables through ``app.dependency_overrides``.
"""

from fastapi import Request

from mistral_hub.errors import UpstreamError
from mistral_hub.upstream import UpstreamClient


def get_upstream_client(request: Request) -> UpstreamClient:
    """Return the process-wide upstream client.

    Raises:
        UpstreamError: If the client could not be configured at startup.
    """
    client: UpstreamClient | None = getattr(request.app.state, "upstream", None)
    if client is None:
        reason = getattr(request.app.state, "upstream_error", None)
        raise UpstreamError(reason or "Mistral API client is not configured")
    return client
