from __future__ import annotations

from functools import lru_cache

from omclient.common.config import get_config
from omclient.infra.storage.signed_client import SignedRequestClient


@lru_cache(maxsize=1)
def get_client() -> SignedRequestClient:
    return SignedRequestClient(get_config())
