"""
Component snapshots.

Between round trips the component lives in the browser as a snapshot:
its wire data plus a memo naming the component class and instance id.
Snapshots are signed with HMAC-SHA256 so the client cannot alter
locked properties or swap the component class.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from dazzle_wire.errors import CorruptSnapshotError

if TYPE_CHECKING:
    from dazzle_wire.component import Component
    from dazzle_wire.computed import PersistentComputedCache
    from dazzle_wire.registry import ComponentRegistry

logger = logging.getLogger(__name__)


class SnapshotMemo(BaseModel):
    """Metadata travelling with the snapshot."""

    name: str = Field(description="Registered component name")
    id: str = Field(description="Component instance id")
    debounce_ms: int | None = Field(default=None, description="Default wire:model debounce")


class Snapshot(BaseModel):
    """Signed component state held by the client between requests."""

    data: dict[str, Any] = Field(default_factory=dict)
    memo: SnapshotMemo
    checksum: str = ""


def _payload(data: dict[str, Any], memo: SnapshotMemo) -> bytes:
    body = {"data": data, "memo": memo.model_dump(mode="json")}
    return json.dumps(body, sort_keys=True, separators=(",", ":"), default=str).encode("utf-8")


def compute_checksum(data: dict[str, Any], memo: SnapshotMemo, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), _payload(data, memo), hashlib.sha256).hexdigest()


def dehydrate(component: Component, secret: str, *, debounce_ms: int | None = None) -> Snapshot:
    """Serialize a component into a signed snapshot."""
    memo = SnapshotMemo(name=component.spec.name, id=component.id, debounce_ms=debounce_ms)
    data = component.serialize().data
    return Snapshot(data=data, memo=memo, checksum=compute_checksum(data, memo, secret))


def verify(snapshot: Snapshot, secret: str) -> None:
    """
    Check the snapshot signature.

    Raises:
        CorruptSnapshotError: If the checksum does not match
    """
    expected = compute_checksum(snapshot.data, snapshot.memo, secret)
    if not snapshot.checksum or not hmac.compare_digest(snapshot.checksum, expected):
        logger.warning(
            "Snapshot checksum mismatch (tamper detected)",
            extra={"context": {"component": snapshot.memo.name, "id": snapshot.memo.id}},
        )
        raise CorruptSnapshotError("snapshot checksum mismatch", component=snapshot.memo.name)


def hydrate(
    registry: ComponentRegistry,
    snapshot: Snapshot,
    secret: str,
    *,
    persistent_cache: PersistentComputedCache | None = None,
) -> Component:
    """
    Rebuild a component from a verified snapshot and start a new cycle.

    ``mount()`` is not called again; state comes from the snapshot.
    """
    verify(snapshot, secret)
    component_cls = registry.get(snapshot.memo.name)
    component = component_cls(snapshot.memo.id, persistent_cache=persistent_cache)
    component.state.hydrate(snapshot.data)
    component.state.begin_cycle()
    return component
