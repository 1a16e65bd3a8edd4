from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from datastore.device_registry import DeviceRegistry
from logging_config import configure_logging
from server.api import get_registry, router


def create_app(registry: Optional[DeviceRegistry] = None) -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Mock Device Management Service",
        description="Local stand-in for an IoT device-management endpoint.",
        version="0.1.0",
    )
    app.include_router(router)
    if registry is not None:
        app.dependency_overrides[get_registry] = lambda: registry
    return app


app = create_app()
