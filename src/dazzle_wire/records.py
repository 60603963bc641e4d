"""
Opaque references to externally-owned records.

Components never put full database rows on the wire. They hold a
``RecordReference`` (model name + key) and the application registers a
loader per model to turn references back into records on the server.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from dazzle_wire.errors import NotFoundError

logger = logging.getLogger(__name__)

_WIRE_MARKER = "__record__"


@dataclass(frozen=True, slots=True)
class RecordReference:
    """Reference to a record owned by the application, e.g. ``Post#42``."""

    model: str
    key: str | int

    def to_wire(self) -> dict[str, Any]:
        return {_WIRE_MARKER: self.model, "key": self.key}

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> RecordReference:
        return cls(model=data[_WIRE_MARKER], key=data["key"])

    @staticmethod
    def is_wire_form(data: dict[str, Any]) -> bool:
        return set(data) == {_WIRE_MARKER, "key"}

    def __str__(self) -> str:
        return f"{self.model}#{self.key}"


Loader = Callable[[str | int], Any]
KeyOf = Callable[[Any], str | int]


class RecordResolver:
    """
    Registry of per-model loaders.

    Example:
        resolver = RecordResolver()
        resolver.register("Post", repo.get, key_of=lambda post: post.id)
        post = resolver.resolve(RecordReference("Post", 42))
    """

    def __init__(self) -> None:
        self._loaders: dict[str, Loader] = {}
        self._key_getters: dict[str, KeyOf] = {}

    def register(self, model: str, loader: Loader, key_of: KeyOf | None = None) -> None:
        """Register a loader (and optionally a key extractor) for a model."""
        self._loaders[model] = loader
        self._key_getters[model] = key_of or (lambda record: record.id)

    def has_model(self, model: str) -> bool:
        return model in self._loaders

    def resolve(self, ref: RecordReference) -> Any:
        """Load the record behind ``ref``."""
        loader = self._loaders.get(ref.model)
        if loader is None:
            raise NotFoundError(f"No record loader registered for model '{ref.model}'")
        record = loader(ref.key)
        if record is None:
            raise NotFoundError(f"Record {ref} not found")
        return record

    def reference(self, model: str, record: Any) -> RecordReference:
        """Build a reference for a loaded record."""
        key_of = self._key_getters.get(model)
        if key_of is None:
            raise NotFoundError(f"No record loader registered for model '{model}'")
        return RecordReference(model=model, key=key_of(record))
