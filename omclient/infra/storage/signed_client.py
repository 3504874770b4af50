"""HMAC-signed HTTP client for the object manager server.

Dependencies:
    - requests
"""

from __future__ import annotations

import contextlib
import logging
import os
import re
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any, Callable, Iterator, Mapping

import requests

from omclient.common.logging import redact_text
from omclient.infra.observability.metrics import LATENCY, REQUESTS
from omclient.infra.storage.client import (
    Err,
    ErrorKind,
    FileAccessError,
    InvalidArgumentError,
    Ok,
    Redirect,
    Result,
)
from omclient.infra.storage.signing import (
    CHUNK_SIZE,
    build_signed_request,
    file_md5,
    object_message,
    serialize_attributes,
    store_message,
)

if TYPE_CHECKING:
    from omclient.common.config import ClientConfig

logger = logging.getLogger("omclient.client")

COLLECTION_PATTERN = re.compile(r"[a-z0-9_-]+")
TEMP_PREFIX = "omclient"
USER_AGENT = "omclient"

_OUTCOMES = {
    ErrorKind.SERVER_UNREACHABLE: "unreachable",
    ErrorKind.SERVER_REJECTED: "rejected",
    ErrorKind.UNAUTHENTICATED: "unauthenticated",
    ErrorKind.MALFORMED_RESPONSE: "malformed",
}


def validate_collection(collection: str) -> str:
    if collection == "":
        raise InvalidArgumentError("collection name cannot be empty")
    if not isinstance(collection, str) or not COLLECTION_PATTERN.fullmatch(collection):
        raise InvalidArgumentError("invalid collection name format")
    return collection


def _rejection_kind(status_code: int) -> ErrorKind:
    if status_code == 401:
        return ErrorKind.UNAUTHENTICATED
    return ErrorKind.SERVER_REJECTED


def _remove_file(path: str) -> None:
    with contextlib.suppress(FileNotFoundError):
        os.remove(path)


class SignedRequestClient:
    """Object manager client signing every request with a shared secret.

    The instance holds only its immutable configuration. Each operation opens
    its own HTTP session and closes it before returning, so a client can be
    shared between threads.

    The plain methods (``store``, ``delete``, ``resolve_url``, ``fetch``)
    report remote failures as ``None``/``False``. The ``*_result`` variants
    return ``Ok``/``Err`` so callers can tell transport failures from
    rejections.
    """

    def __init__(
        self,
        config: "ClientConfig",
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._clock = clock

    @property
    def config(self) -> "ClientConfig":
        return self._config

    @staticmethod
    def _build_session(config: "ClientConfig") -> requests.Session:
        """Create the HTTP session used for a single operation."""
        session = requests.Session()
        session.headers["User-Agent"] = USER_AGENT
        return session

    @contextmanager
    def _session(self) -> Iterator[requests.Session]:
        session = self._build_session(self._config)
        try:
            yield session
        finally:
            session.close()

    def _now(self) -> int:
        return int(self._clock())

    def _execute(
        self,
        session: requests.Session,
        operation: str,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> Result[requests.Response]:
        logger.debug("Sending %s request: %s %s", operation, method, redact_text(url))
        start = time.perf_counter()
        try:
            response = session.request(
                method, url, timeout=self._config.timeout, **kwargs
            )
        except requests.RequestException as exc:
            logger.warning(
                "Object manager unreachable during %s: %s", operation, redact_text(str(exc))
            )
            return Err(
                ErrorKind.SERVER_UNREACHABLE,
                detail=f"{operation} request failed: {redact_text(str(exc))}",
            )
        finally:
            LATENCY.labels(operation=operation).observe(time.perf_counter() - start)
        return Ok(response)

    @staticmethod
    def _record(operation: str, result: Result[Any]) -> None:
        if result.ok:
            outcome = "ok"
        else:
            outcome = _OUTCOMES[result.kind]
            logger.warning(
                "Object manager %s failed: %s",
                operation,
                result.detail or result.kind.value,
                extra={
                    "extra": {
                        "operation": operation,
                        "error_kind": result.kind.value,
                        "status_code": result.status_code,
                    }
                },
            )
        REQUESTS.labels(operation=operation, outcome=outcome).inc()

    @staticmethod
    def _json_field(response: requests.Response, key: str) -> Result[str]:
        status_code = response.status_code
        try:
            payload = response.json()
        except ValueError:
            return Err(
                ErrorKind.MALFORMED_RESPONSE,
                status_code,
                f"response body is not JSON (HTTP {status_code})",
            )
        if not isinstance(payload, dict) or payload.get(key) is None:
            return Err(
                _rejection_kind(status_code),
                status_code,
                f"response has no {key} (HTTP {status_code})",
            )
        value = payload[key]
        # bool is an int subclass; false is the server's failure sentinel
        if isinstance(value, bool) or not isinstance(value, (str, int)) or value == "":
            return Err(
                ErrorKind.MALFORMED_RESPONSE,
                status_code,
                f"response {key} is not a string (HTTP {status_code})",
            )
        return Ok(str(value))

    # -- store -----------------------------------------------------------

    def store_result(
        self,
        collection: str,
        file_path: str | os.PathLike[str],
        attributes: Mapping[str, Any] | None = None,
    ) -> Result[str]:
        validate_collection(collection)
        path = Path(file_path)
        try:
            file_digest = file_md5(path)
        except OSError as exc:
            raise FileAccessError(f"Cannot read file {path}: {exc}") from exc

        attributes_json = serialize_attributes(attributes)
        now = self._now()
        request = build_signed_request(
            self._config.secret_key,
            now,
            {"collection": collection, "attributes": attributes_json},
            store_message(now, collection, file_digest, attributes_json),
        )

        try:
            upload = path.open("rb")
        except OSError as exc:
            raise FileAccessError(f"Cannot read file {path}: {exc}") from exc

        with upload, self._session() as session:
            executed = self._execute(
                session,
                "store",
                "POST",
                self._config.endpoint("store.php"),
                data=request.as_params(),
                files={"file": (path.name, upload)},
            )
            result = executed if not executed.ok else self._json_field(executed.value, "object_id")

        self._record("store", result)
        return result

    def store(
        self,
        collection: str,
        file_path: str | os.PathLike[str],
        attributes: Mapping[str, Any] | None = None,
    ) -> str | None:
        return self.store_result(collection, file_path, attributes).value_or(None)

    # -- delete ----------------------------------------------------------

    def delete_result(self, object_id: str) -> Result[bool]:
        now = self._now()
        request = build_signed_request(
            self._config.secret_key,
            now,
            {"id": object_id},
            object_message(now, object_id),
        )

        with self._session() as session:
            executed = self._execute(
                session,
                "delete",
                "POST",
                self._config.endpoint("delete.php"),
                data=request.as_params(),
            )

        if not executed.ok:
            result: Result[bool] = executed
        elif executed.value.status_code == 200:
            result = Ok(True)
        else:
            status_code = executed.value.status_code
            result = Err(
                _rejection_kind(status_code),
                status_code,
                f"delete returned HTTP {status_code}",
            )

        self._record("delete", result)
        return result

    def delete(self, object_id: str) -> bool:
        return self.delete_result(object_id).ok

    # -- url -------------------------------------------------------------

    def resolve_url_result(self, object_id: str) -> Result[str]:
        now = self._now()
        request = build_signed_request(
            self._config.secret_key,
            now,
            {"id": object_id},
            object_message(now, object_id),
        )

        with self._session() as session:
            executed = self._execute(
                session,
                "url",
                "GET",
                self._config.endpoint("url.php"),
                params=request.as_params(),
            )
            result = executed if not executed.ok else self._json_field(executed.value, "object_url")

        self._record("url", result)
        return result

    def resolve_url(self, object_id: str) -> str | None:
        return self.resolve_url_result(object_id).value_or(None)

    def stream(self, object_id: str) -> Redirect:
        """Redirect instructions for serving ``object_id`` to a web request.

        Returns a 301 pointing at the object URL, or a bare 500 when the URL
        cannot be resolved. Applying them is left to the hosting framework.
        """
        object_url = self.resolve_url(object_id)
        if object_url is None:
            return Redirect(status_code=500)
        return Redirect(status_code=301, headers={"Location": object_url})

    # -- fetch -----------------------------------------------------------

    @staticmethod
    def _open_destination(destination_path: str | os.PathLike[str] | None) -> tuple[str, IO[bytes]]:
        try:
            if destination_path is None:
                fd, path = tempfile.mkstemp(prefix=TEMP_PREFIX)
                return path, os.fdopen(fd, "wb")
            path = os.fspath(destination_path)
            return path, open(path, "wb")
        except OSError as exc:
            raise FileAccessError(f"Cannot create destination file: {exc}") from exc

    def _download(
        self,
        session: requests.Session,
        object_url: str,
        destination: IO[bytes],
    ) -> Result[int]:
        executed = self._execute(session, "fetch", "GET", object_url, stream=True)
        if not executed.ok:
            return executed

        response = executed.value
        status_code = response.status_code
        try:
            if status_code != 200:
                return Err(
                    _rejection_kind(status_code),
                    status_code,
                    f"download returned HTTP {status_code}",
                )
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if chunk:
                    destination.write(chunk)
        except requests.RequestException as exc:
            return Err(
                ErrorKind.SERVER_UNREACHABLE,
                status_code,
                f"download interrupted: {redact_text(str(exc))}",
            )
        finally:
            response.close()
        destination.flush()
        return Ok(status_code)

    def fetch_result(
        self,
        object_id: str,
        destination_path: str | os.PathLike[str] | None = None,
    ) -> Result[str]:
        resolved = self.resolve_url_result(object_id)
        if not resolved.ok:
            self._record("fetch", resolved)
            return resolved

        try:
            path, destination = self._open_destination(destination_path)
        except FileAccessError:
            REQUESTS.labels(operation="fetch", outcome="file_access").inc()
            raise
        try:
            with destination, self._session() as session:
                downloaded = self._download(session, resolved.value, destination)
        except OSError as exc:
            _remove_file(path)
            REQUESTS.labels(operation="fetch", outcome="file_access").inc()
            raise FileAccessError(f"Cannot write destination file {path}: {exc}") from exc

        if not downloaded.ok:
            _remove_file(path)
            result: Result[str] = downloaded
        else:
            result = Ok(path)

        self._record("fetch", result)
        return result

    def fetch(
        self,
        object_id: str,
        destination_path: str | os.PathLike[str] | None = None,
    ) -> str | None:
        return self.fetch_result(object_id, destination_path).value_or(None)
