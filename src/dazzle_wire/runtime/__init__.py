"""
dazzle-wire HTTP runtime.

FastAPI router, exception handlers and logging setup for serving wire
components.
"""

from dazzle_wire.runtime.app import create_app
from dazzle_wire.runtime.exception_handlers import register_exception_handlers
from dazzle_wire.runtime.routes import create_wire_router

__all__ = ["create_app", "create_wire_router", "register_exception_handlers"]
