"""
Wire update routes.

Two JSON endpoints drive every component:

    POST {prefix}/mount   create a component, return its first snapshot
    POST {prefix}/update  hydrate a snapshot, apply field updates, return
                          the new snapshot with query string and effects
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from dazzle_wire.component import Component
from dazzle_wire.computed import PersistentComputedCache
from dazzle_wire.config import WireConfig
from dazzle_wire.query_string import merge_url
from dazzle_wire.registry import ComponentRegistry
from dazzle_wire.runtime.htmx import HtmxDetails, wire_headers
from dazzle_wire.runtime.logging import get_logger, log_with_context
from dazzle_wire.snapshot import Snapshot, dehydrate, hydrate
from dazzle_wire.specs.effects import Effect, QueryStringEffect

logger = get_logger("routes")


class MountRequest(BaseModel):
    """Create a component by name."""

    name: str = Field(description="Registered component name")
    params: dict[str, Any] = Field(default_factory=dict, description="mount() parameters")
    query: dict[str, str | list[str]] = Field(
        default_factory=dict, description="Page URL query parameters"
    )


class UpdateRequest(BaseModel):
    """Field updates for one component."""

    snapshot: Snapshot
    updates: dict[str, Any] = Field(default_factory=dict, description="Field path -> value")


class ComponentResponse(BaseModel):
    """State returned to the client after a cycle."""

    snapshot: Snapshot
    query: dict[str, str | list[str]] = Field(default_factory=dict)
    dirty: list[str] = Field(default_factory=list)
    effects: list[Effect] = Field(default_factory=list)


def _finish_cycle(
    component: Component,
    config: WireConfig,
    details: HtmxDetails,
) -> ComponentResponse:
    serialized = component.serialize()
    dirty = component.state.dirty()
    effects: list[Effect] = list(component.effects)

    bindings = component.state.bindings
    bound_fields = {binding.field for binding in bindings}
    if bindings and bound_fields.intersection(dirty):
        url = None
        if details.current_url:
            url = merge_url(details.current_url, serialized.query, bindings)
        effects.append(
            QueryStringEffect(
                query=serialized.query,
                url=url,
                history=any(b.history for b in bindings if b.field in dirty),
            )
        )

    snapshot = dehydrate(component, config.secret_key, debounce_ms=config.debounce_ms)
    component.state.end_cycle()
    return ComponentResponse(
        snapshot=snapshot, query=serialized.query, dirty=dirty, effects=effects
    )


def create_wire_router(
    registry: ComponentRegistry,
    config: WireConfig | None = None,
    persistent_cache: PersistentComputedCache | None = None,
) -> APIRouter:
    """Create the wire mount/update router."""
    config = config or WireConfig.from_env()
    router = APIRouter(prefix=config.prefix, tags=["Wire"])
    cache = persistent_cache or PersistentComputedCache(
        config.redis_url, default_ttl=config.computed_ttl
    )

    if config.uses_dev_secret:
        logger.warning("Using the development snapshot secret; set DAZZLE_WIRE_SECRET_KEY")

    @router.post("/mount")
    async def mount_component(request: Request, body: MountRequest) -> JSONResponse:
        """Create and mount a component, applying bound URL parameters."""
        component_cls = registry.get(body.name)
        component = component_cls.create(
            body.params, body.query, persistent_cache=cache, from_client=True
        )
        details = HtmxDetails.from_request(request)
        response = _finish_cycle(component, config, details)
        log_with_context(
            logger, logging.INFO, "Mounted component", component=body.name, id=component.id
        )
        return JSONResponse(
            content=response.model_dump(mode="json"),
            headers=wire_headers(response.effects, details),
        )

    @router.post("/update")
    async def update_component(request: Request, body: UpdateRequest) -> JSONResponse:
        """Apply client field updates to a snapshot."""
        component = hydrate(registry, body.snapshot, config.secret_key, persistent_cache=cache)
        component.update(body.updates)
        details = HtmxDetails.from_request(request)
        response = _finish_cycle(component, config, details)
        log_with_context(
            logger,
            logging.DEBUG,
            "Updated component",
            component=component.spec.name,
            id=component.id,
            fields=list(body.updates),
            dirty=response.dirty,
        )
        triggers = {"wire:updated": {"id": component.id, "dirty": response.dirty}}
        return JSONResponse(
            content=response.model_dump(mode="json"),
            headers=wire_headers(response.effects, details, triggers=triggers),
        )

    return router
