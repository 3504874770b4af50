from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from omclient.api.deps import get_client
from omclient.api.responses import to_response
from omclient.infra.storage.signed_client import SignedRequestClient

router = APIRouter()


@router.get("/objects/{object_id}")
def stream_object(
    object_id: str, client: SignedRequestClient = Depends(get_client)
) -> Response:
    """Redirect the caller to the object URL (301), or answer 500."""
    return to_response(client.stream(object_id))
