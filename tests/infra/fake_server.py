"""In-memory object manager server for exercising the client end to end."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterator
from urllib.parse import parse_qs, urlencode, urlsplit

from omclient.infra.storage.signing import md5_hex, sign

DEFAULT_TTL = 3600


class FakeResponse:
    def __init__(self, status_code: int, content: bytes = b"") -> None:
        self.status_code = status_code
        self.content = content
        self.closed = False

    @classmethod
    def from_json(cls, status_code: int, payload: Any) -> "FakeResponse":
        return cls(status_code, json.dumps(payload).encode("utf-8"))

    def json(self) -> Any:
        return json.loads(self.content.decode("utf-8"))

    def iter_content(self, chunk_size: int = 1) -> Iterator[bytes]:
        for start in range(0, len(self.content), chunk_size):
            yield self.content[start : start + chunk_size]

    def close(self) -> None:
        self.closed = True


@dataclass
class FakeObjectServer:
    """Stands in for a ``requests.Session`` talking to the object manager.

    Signatures are recomputed from the plaintext fields exactly as the real
    server does, so a client that signs incorrectly is rejected with 401.
    """

    base_url: str
    secret_key: str
    now: int = 1_700_000_000
    objects: dict[str, dict[str, Any]] = field(default_factory=dict)
    requests: list[tuple[str, str]] = field(default_factory=list)
    closed_sessions: int = 0

    def close(self) -> None:
        self.closed_sessions += 1

    def request(
        self,
        method: str,
        url: str,
        *,
        timeout: float | None = None,
        params: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
        files: dict[str, Any] | None = None,
        stream: bool = False,
    ) -> FakeResponse:
        self.requests.append((method, url))
        parts = urlsplit(url)
        endpoint = f"{parts.scheme}://{parts.netloc}{parts.path}"
        query = {key: values[0] for key, values in parse_qs(parts.query).items()}
        if params:
            query.update(params)

        if method == "POST" and endpoint == f"{self.base_url}store.php":
            return self._store(data or {}, files or {})
        if method == "POST" and endpoint == f"{self.base_url}delete.php":
            return self._delete(data or {})
        if method == "GET" and endpoint == f"{self.base_url}url.php":
            return self._url(query)
        if method == "GET" and endpoint == f"{self.base_url}download.php":
            return self._download(query)
        return FakeResponse(404, b"not found")

    def _verify(self, message: str, signature: str | None) -> bool:
        return signature == sign(self.secret_key, message)

    def _store(self, data: dict[str, str], files: dict[str, Any]) -> FakeResponse:
        filename, fh = files["file"]
        content = fh.read()
        message = (
            data["time"]
            + data["collection"]
            + md5_hex(content)
            + md5_hex(data["attributes"])
        )
        if not self._verify(message, data.get("signature")):
            return FakeResponse.from_json(401, {"error": "invalid signature"})
        object_id = uuid.uuid4().hex
        self.objects[object_id] = {
            "collection": data["collection"],
            "filename": filename,
            "content": content,
            "attributes": json.loads(data["attributes"]),
        }
        return FakeResponse.from_json(200, {"object_id": object_id})

    def _delete(self, data: dict[str, str]) -> FakeResponse:
        object_id = data["id"]
        if not self._verify(data["time"] + object_id, data.get("signature")):
            return FakeResponse(401)
        if self.objects.pop(object_id, None) is None:
            return FakeResponse(404)
        return FakeResponse(200)

    def _url(self, query: dict[str, str]) -> FakeResponse:
        object_id = query["id"]
        if not self._verify(query["time"] + object_id, query.get("signature")):
            return FakeResponse.from_json(401, {"error": "invalid signature"})
        obj = self.objects.get(object_id)
        if obj is None:
            return FakeResponse.from_json(404, {"error": "object not found"})
        if obj["attributes"].get("access") == "public":
            object_url = f"{self.base_url}download.php?" + urlencode({"id": object_id})
        else:
            signed = {
                "time": str(self.now),
                "id": object_id,
                "signature": sign(self.secret_key, f"{self.now}{object_id}"),
            }
            object_url = f"{self.base_url}download.php?" + urlencode(signed)
        return FakeResponse.from_json(200, {"object_url": object_url})

    def _download(self, query: dict[str, str]) -> FakeResponse:
        obj = self.objects.get(query.get("id", ""))
        if obj is None:
            return FakeResponse(404, b"not found")
        if obj["attributes"].get("access") != "public":
            issued = query.get("time", "")
            if not self._verify(issued + query["id"], query.get("signature")):
                return FakeResponse(401, b"unauthorized")
            ttl = int(obj["attributes"].get("ttl", DEFAULT_TTL))
            if self.now - int(issued) > ttl:
                return FakeResponse(401, b"expired")
        return FakeResponse(200, obj["content"])
