from __future__ import annotations

from fastapi.responses import RedirectResponse, Response

from omclient.infra.storage.client import Redirect


def to_response(redirect: Redirect) -> Response:
    """Apply redirect instructions to a framework response."""
    if redirect.location is not None:
        return RedirectResponse(
            url=redirect.location,
            status_code=redirect.status_code,
            headers={k: v for k, v in redirect.headers.items() if k != "Location"},
        )
    return Response(status_code=redirect.status_code, headers=redirect.headers)
