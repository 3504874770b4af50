import logging

import uvicorn
from fastapi import FastAPI

from omclient.api.deps import get_client
from omclient.api.routers.objects import router as objects_router
from omclient.common.config import ClientConfig, get_config
from omclient.common.logging import setup_logging
from omclient.infra.observability.metrics import metrics_app
from omclient.infra.storage.signed_client import SignedRequestClient


def create_app(config: ClientConfig | None = None) -> FastAPI:
    """Build an application that streams objects through redirects.

    Without ``config`` the client settings are read from the environment.
    """
    setup_logging()
    app = FastAPI(
        title="Object Manager Gateway",
        version="0.1.0",
        description="Redirects object requests to signed object manager URLs",
    )

    if config is not None:
        client = SignedRequestClient(config)
        app.dependency_overrides[get_client] = lambda: client
    else:
        config = get_config()

    app.include_router(objects_router, tags=["objects"])
    app.mount("/metrics", metrics_app)

    gateway_logger = logging.getLogger("omclient.gateway")
    gateway_logger.info(
        "Object manager gateway configured. [event=gateway_configured] (server_url=%s)",
        config.server_url,
    )
    return app


if __name__ == "__main__":
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
