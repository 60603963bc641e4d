"""
Component registry.

Maps the component names carried in snapshots back to Component
classes. Only registered components can be mounted or hydrated, so a
client cannot instantiate arbitrary classes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from dazzle_wire.component import Component
from dazzle_wire.errors import ConfigurationError, NotFoundError

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=type[Component])


class ComponentRegistry:
    """
    Registry of wire components by name.

    Example:
        registry = ComponentRegistry()

        @registry.component
        class PostList(Component):
            ...

        registry.register(Counter, name="counter")
    """

    def __init__(self) -> None:
        self._components: dict[str, type[Component]] = {}

    def register(self, component_cls: type[Component], name: str | None = None) -> type[Component]:
        """Register a component class under ``name`` (default: its spec name)."""
        if not (isinstance(component_cls, type) and issubclass(component_cls, Component)):
            raise ConfigurationError(f"{component_cls!r} is not a Component subclass")
        key = name or component_cls.spec.name
        existing = self._components.get(key)
        if existing is not None and existing is not component_cls:
            raise ConfigurationError(f"Component name '{key}' is already registered")
        self._components[key] = component_cls
        logger.debug(f"Registered component '{key}' -> {component_cls.__qualname__}")
        return component_cls

    def component(
        self, component_cls: C | None = None, *, name: str | None = None
    ) -> C | Callable[[C], C]:
        """Decorator form of :meth:`register`."""

        def decorator(cls: C) -> C:
            self.register(cls, name=name)
            return cls

        if component_cls is not None:
            return decorator(component_cls)
        return decorator

    def get(self, name: str) -> type[Component]:
        component_cls = self._components.get(name)
        if component_cls is None:
            raise NotFoundError(f"Component '{name}' is not registered")
        return component_cls

    def names(self) -> list[str]:
        return sorted(self._components)

    def __contains__(self, name: object) -> bool:
        return name in self._components

    def __len__(self) -> int:
        return len(self._components)
