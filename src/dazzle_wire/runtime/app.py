"""
FastAPI application factory for serving wire components standalone.
"""

from __future__ import annotations

from fastapi import FastAPI

from dazzle_wire import __version__
from dazzle_wire.config import WireConfig
from dazzle_wire.registry import ComponentRegistry
from dazzle_wire.runtime.exception_handlers import register_exception_handlers
from dazzle_wire.runtime.routes import create_wire_router


def create_app(registry: ComponentRegistry, config: WireConfig | None = None) -> FastAPI:
    """
    Create a FastAPI app exposing the wire endpoints for ``registry``.

    Existing applications can instead include ``create_wire_router()``
    and call ``register_exception_handlers()`` themselves.
    """
    config = config or WireConfig.from_env()
    app = FastAPI(title="dazzle-wire", version=__version__)
    register_exception_handlers(app)
    app.include_router(create_wire_router(registry, config))

    @app.get(f"{config.prefix}/components")
    async def list_components() -> dict[str, list[str]]:
        return {"components": registry.names()}

    return app
