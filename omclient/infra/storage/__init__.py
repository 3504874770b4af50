"""Object manager client layer.

This package implements the signed request protocol of the object manager
server: HMAC signing, the HTTP client built on it and the typed results it
returns.
"""

from .client import (
    AccessLevel,
    Err,
    ErrorKind,
    FileAccessError,
    InvalidArgumentError,
    ObjectAttributes,
    ObjectManagerClient,
    Ok,
    Redirect,
    Result,
    ServerRejectedError,
    ServerUnreachableError,
    SignedRequest,
    StorageError,
)
from .signed_client import SignedRequestClient
from .signing import sign

__all__ = [
    "AccessLevel",
    "Err",
    "ErrorKind",
    "FileAccessError",
    "InvalidArgumentError",
    "ObjectAttributes",
    "ObjectManagerClient",
    "Ok",
    "Redirect",
    "Result",
    "ServerRejectedError",
    "ServerUnreachableError",
    "SignedRequest",
    "SignedRequestClient",
    "StorageError",
    "sign",
]
