from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from omclient.infra.storage.client import InvalidArgumentError

ENV_FILE = Path(".env")

DEFAULT_TIMEOUT_SECONDS = 30.0


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_timeout(value: str | None, default: float | None) -> float | None:
    if value is None:
        return default
    value = value.strip().lower()
    if value in {"", "0", "none", "off"}:
        return None
    try:
        timeout = float(value)
    except ValueError as exc:
        raise InvalidArgumentError(f"OM_TIMEOUT must be a number of seconds, got {value!r}") from exc
    if timeout < 0:
        raise InvalidArgumentError(f"OM_TIMEOUT cannot be negative, got {value!r}")
    return timeout or None


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings for one object manager server.

    ``server_url`` always ends with ``/`` so endpoint names such as
    ``store.php`` can be appended directly.
    """

    server_url: str
    secret_key: str | bytes
    timeout: float | None = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        server_url = (self.server_url or "").strip()
        if not server_url:
            raise InvalidArgumentError("server_url cannot be empty")
        if not self.secret_key:
            raise InvalidArgumentError("secret_key cannot be empty")
        if not server_url.endswith("/"):
            server_url += "/"
        object.__setattr__(self, "server_url", server_url)

    def endpoint(self, name: str) -> str:
        return f"{self.server_url}{name}"

    def __repr__(self) -> str:
        return (
            f"ClientConfig(server_url={self.server_url!r}, "
            f"secret_key='***', timeout={self.timeout!r})"
        )

    @classmethod
    def from_environment(cls) -> "ClientConfig":
        _load_env_file()
        return cls(
            server_url=os.environ.get("OM_SERVER_URL", ""),
            secret_key=os.environ.get("OM_SECRET_KEY", ""),
            timeout=_as_timeout(os.environ.get("OM_TIMEOUT"), cls.timeout),
        )


@lru_cache(maxsize=1)
def get_config() -> ClientConfig:
    return ClientConfig.from_environment()
