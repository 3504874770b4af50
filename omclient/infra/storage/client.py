"""Object manager protocol, data types and errors.

This module defines the interface shared by object manager clients together
with the value types passed across it: signed requests, typed results and
redirect instructions for a hosting web request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Mapping, Protocol, TypedDict, TypeVar, Union

T = TypeVar("T")


class StorageError(RuntimeError):
    """Raised when object manager operations fail."""


class InvalidArgumentError(StorageError, ValueError):
    """Raised for malformed arguments before any network activity."""


class FileAccessError(StorageError):
    """Raised when a local source or destination file cannot be used."""


class ServerUnreachableError(StorageError):
    """Raised when the transport could not complete a request at all."""


class ServerRejectedError(StorageError):
    """Raised when the server answered but did not accept the request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AccessLevel(str, Enum):
    PUBLIC = "public"
    PROTECTED = "protected"


class ObjectAttributes(TypedDict, total=False):
    """Attributes understood by the server.

    Keys outside this set are forwarded unchanged.
    """

    access: str
    mime_type: str
    cache_age: int
    ttl: int


@dataclass(frozen=True, slots=True)
class SignedRequest:
    """Plaintext request fields plus the HMAC signature covering them."""

    time: int
    fields: dict[str, str]
    signature: str

    def as_params(self) -> dict[str, str]:
        params = dict(self.fields)
        params["signature"] = self.signature
        return params


class ErrorKind(str, Enum):
    SERVER_UNREACHABLE = "server_unreachable"
    SERVER_REJECTED = "server_rejected"
    UNAUTHENTICATED = "unauthenticated"
    MALFORMED_RESPONSE = "malformed_response"


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value

    def value_or(self, default: Any) -> T:
        return self.value


@dataclass(frozen=True, slots=True)
class Err:
    kind: ErrorKind
    status_code: int | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> Any:
        """Raise the typed error matching this failure."""
        message = self.detail or self.kind.value
        if self.kind is ErrorKind.SERVER_UNREACHABLE:
            raise ServerUnreachableError(message)
        raise ServerRejectedError(message, status_code=self.status_code)

    def value_or(self, default: Any) -> Any:
        return default


Result = Union[Ok[T], Err]


@dataclass(frozen=True, slots=True)
class Redirect:
    """Response instructions for a web request that streams an object."""

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def location(self) -> str | None:
        return self.headers.get("Location")


class ObjectManagerClient(Protocol):
    """Protocol defining the operations of an object manager client."""

    def store(
        self,
        collection: str,
        file_path: str,
        attributes: Mapping[str, Any] | None = None,
    ) -> str | None:
        """Upload a file and store it as an object.

        Args:
            collection: Collection name, lowercase alphanumerics, ``_`` and ``-``.
            file_path: Path of the file to upload.
            attributes: Optional object attributes (see ObjectAttributes).

        Returns:
            The new object ID, or None if the server did not return one.

        Raises:
            InvalidArgumentError: If the collection name is empty or malformed.
            FileAccessError: If the file cannot be read.
        """
        ...

    def delete(self, object_id: str) -> bool:
        """Delete an object.

        Returns:
            True only when the server answered with HTTP 200.
        """
        ...

    def resolve_url(self, object_id: str) -> str | None:
        """Get the accessible URL of an object.

        Returns:
            The object URL, or None on any failure.
        """
        ...

    def stream(self, object_id: str) -> Redirect:
        """Build the redirect that sends a web request to the object URL."""
        ...

    def fetch(self, object_id: str, destination_path: str | None = None) -> str | None:
        """Download an object to the local file system.

        Args:
            object_id: Object ID to download.
            destination_path: Target path, or None for a fresh temporary file.

        Returns:
            The path written, or None on failure. No file is left behind on
            failure.

        Raises:
            FileAccessError: If the destination cannot be created.
        """
        ...
