"""Request signing for the object manager protocol.

Every request carries a unix ``time`` and a hex HMAC-SHA256 ``signature``
computed over a canonical message: selected field values concatenated in a
fixed order with no separators. The server rebuilds the same message from the
plaintext fields, so the order and encoding here must not change.
"""

from __future__ import annotations

import hashlib
import hmac
import json
from enum import Enum
from os import PathLike
from typing import Any, Mapping

from omclient.infra.storage.client import SignedRequest

CHUNK_SIZE = 64 * 1024


def _as_bytes(value: str | bytes) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def sign(secret_key: str | bytes, message: str | bytes) -> str:
    """Return the lowercase hex HMAC-SHA256 of ``message``."""
    return hmac.new(_as_bytes(secret_key), _as_bytes(message), hashlib.sha256).hexdigest()


def md5_hex(data: str | bytes) -> str:
    return hashlib.md5(_as_bytes(data)).hexdigest()


def file_md5(path: str | PathLike[str], chunk_size: int = CHUNK_SIZE) -> str:
    """Digest of the whole file content, independent of ``chunk_size``."""
    digest = hashlib.md5()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def serialize_attributes(attributes: Mapping[str, Any] | None) -> str:
    """Compact JSON for the attributes field; ``{}`` when empty."""
    if not attributes:
        return "{}"
    normalized = {
        key: value.value if isinstance(value, Enum) else value
        for key, value in attributes.items()
    }
    return json.dumps(normalized, separators=(",", ":"), default=_json_default)


def store_message(time: int, collection: str, file_digest: str, attributes_json: str) -> str:
    return f"{time}{collection}{file_digest}{md5_hex(attributes_json)}"


def object_message(time: int, object_id: str) -> str:
    # delete.php and url.php share this layout
    return f"{time}{object_id}"


def build_signed_request(
    secret_key: str | bytes,
    time: int,
    fields: Mapping[str, Any],
    message: str,
) -> SignedRequest:
    """Attach the signature for ``message`` to ``fields``.

    ``fields`` are the plaintext values transmitted with the request; ``time``
    is always sent first.
    """
    ordered = {"time": str(time)}
    ordered.update({key: str(value) for key, value in fields.items()})
    return SignedRequest(time=time, fields=ordered, signature=sign(secret_key, message))
