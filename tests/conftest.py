from __future__ import annotations

import pytest

from omclient.api.deps import get_client
from omclient.common.config import ClientConfig, get_config

SERVER_URL = "http://om.test/"
SECRET_KEY = "test-secret"


@pytest.fixture(autouse=True)
def clear_cached_config():
    get_config.cache_clear()  # type: ignore[attr-defined]
    get_client.cache_clear()  # type: ignore[attr-defined]
    yield
    get_config.cache_clear()  # type: ignore[attr-defined]
    get_client.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(server_url=SERVER_URL, secret_key=SECRET_KEY, timeout=5.0)


@pytest.fixture
def sample_file(tmp_path):
    path = tmp_path / "example.txt"
    path.write_bytes(b"object manager example payload\n" * 64)
    return path
