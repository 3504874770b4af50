"""Client library for the object manager server."""

from omclient.common.config import ClientConfig, get_config
from omclient.infra.storage import (
    AccessLevel,
    Err,
    ErrorKind,
    FileAccessError,
    InvalidArgumentError,
    Ok,
    Redirect,
    ServerRejectedError,
    ServerUnreachableError,
    SignedRequestClient,
    StorageError,
    sign,
)

__version__ = "0.1.0"

__all__ = [
    "AccessLevel",
    "ClientConfig",
    "Err",
    "ErrorKind",
    "FileAccessError",
    "InvalidArgumentError",
    "Ok",
    "Redirect",
    "ServerRejectedError",
    "ServerUnreachableError",
    "SignedRequestClient",
    "StorageError",
    "get_config",
    "sign",
]
