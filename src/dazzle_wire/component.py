"""
Declarative wire components.

Annotated class attributes become public properties, synchronized with
the browser on every round trip::

    class PostList(Component):
        search: str = ""
        page: int = 1
        published_after: date | None = None

        casts = {"published_after": "date"}
        query_string = {"search": query(except_=""), "page": query(except_=1)}
        locked = ["page_size"]

        @computed
        def posts(self) -> list[dict]:
            return repo.search(self.search, page=self.page)

        def updated_search(self, value: str) -> None:
            self.reset("page")

Hooks:
    mount(**params)          once, when the component is first created
    updating_<field>(value)  before an inbound update lands (raise to reject)
    updated_<field>(value)   after an inbound update landed
"""

from __future__ import annotations

import inspect
import logging
import re
import typing
import uuid
from collections.abc import Mapping, Sequence
from typing import Any, ClassVar

from dazzle_wire.casts import resolve_cast
from dazzle_wire.computed import ComputedProperty, PersistentComputedCache
from dazzle_wire.errors import ConfigurationError, NotFoundError, ValidationError
from dazzle_wire.query_string import QueryParams, parse_query
from dazzle_wire.specs.component import (
    ComponentSpec,
    ComputedSpec,
    PropertySpec,
    QueryStringSpec,
    query,
)
from dazzle_wire.specs.effects import Effect, RedirectEffect
from dazzle_wire.synchronizer import PropertySynchronizer, SerializedState
from dazzle_wire.values import PropertyKind, infer_kind

logger = logging.getLogger(__name__)

_RESERVED = frozenset(
    {
        "id",
        "state",
        "effects",
        "spec",
        "casts",
        "query_string",
        "locked",
        "component_name",
        "create",
        "mount",
        "update",
        "reset",
        "forget",
        "redirect",
        "serialize",
    }
)
_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


class WireProperty:
    """Data descriptor routing attribute access through the synchronizer."""

    def __init__(self, name: str, initial: Any):
        self.name = name
        self.initial = initial

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return instance.state.get(self.name)

    def __set__(self, instance: Any, value: Any) -> None:
        instance.state.set(self.name, value)


def _is_classvar(hint: Any) -> bool:
    if isinstance(hint, str):
        return hint.startswith(("ClassVar", "typing.ClassVar"))
    return typing.get_origin(hint) is ClassVar or hint is ClassVar


def _collect_annotations(cls: type) -> dict[str, Any]:
    """Annotations of every Component subclass in the MRO, base first."""
    raw: dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        if klass is Component or not issubclass(klass, Component):
            continue
        raw.update(inspect.get_annotations(klass))
    try:
        resolved = typing.get_type_hints(cls)
    except (NameError, TypeError):
        resolved = {}
    return {name: resolved.get(name, hint) for name, hint in raw.items()}


def _default_name(cls: type) -> str:
    return _CAMEL_RE.sub("-", cls.__name__).lower()


def build_spec(cls: type[Component]) -> ComponentSpec:
    """
    Build the ComponentSpec for a Component subclass.

    Raises:
        ConfigurationError: If casts, bindings or locks name undeclared properties,
            or a property uses a reserved name
    """
    name = cls.__dict__.get("component_name") or _default_name(cls)
    annotations = _collect_annotations(cls)
    locked = set(cls.locked)
    casts = {field: resolve_cast(decl) for field, decl in dict(cls.casts).items()}

    properties: list[PropertySpec] = []
    for field, hint in annotations.items():
        if _is_classvar(hint) or field.startswith("_"):
            continue
        if field in _RESERVED:
            raise ConfigurationError("name is reserved", field=field, component=name)
        attr = inspect.getattr_static(cls, field, None)
        if isinstance(attr, WireProperty):
            initial = attr.initial
        elif isinstance(attr, ComputedProperty):
            raise ConfigurationError(
                "declared as both property and computed", field=field, component=name
            )
        else:
            initial = attr
        annotation = None if isinstance(hint, str) else hint
        kind, nullable = infer_kind(annotation, initial)
        cast = casts.get(field)
        if cast is not None:
            kind = PropertyKind.ANY
        properties.append(
            PropertySpec(
                name=field,
                kind=kind,
                nullable=nullable,
                initial=initial,
                locked=field in locked,
                cast=cast,
            )
        )

    declared = {prop.name for prop in properties}
    for label, names in (("cast", casts), ("lock", locked)):
        undeclared = sorted(set(names) - declared)
        if undeclared:
            raise ConfigurationError(
                f"{label} declared for undeclared properties: {', '.join(undeclared)}",
                component=name,
            )

    raw_bindings = cls.query_string
    if isinstance(raw_bindings, Mapping):
        binding_items = list(raw_bindings.items())
    else:
        binding_items = [(field, query()) for field in raw_bindings]
    bindings: list[QueryStringSpec] = []
    for field, binding in binding_items:
        if not isinstance(binding, QueryStringSpec):
            raise ConfigurationError(
                f"expected query(...), got {binding!r}", field=field, component=name
            )
        if field not in declared:
            raise ConfigurationError(
                "query string binding for undeclared property", field=field, component=name
            )
        bindings.append(binding.model_copy(update={"field": field}))

    computed_specs = []
    for klass in reversed(cls.__mro__):
        for attr_name, attr in vars(klass).items():
            if isinstance(attr, ComputedProperty):
                computed_specs = [c for c in computed_specs if c.name != attr_name]
                computed_specs.append(
                    ComputedSpec(
                        name=attr_name,
                        persist=attr.persist,
                        ttl=attr.ttl,
                        description=inspect.cleandoc(attr.__doc__) if attr.__doc__ else None,
                    )
                )

    return ComponentSpec(
        name=name,
        properties=properties,
        query_string=bindings,
        computed=computed_specs,
    )


class Component:
    """Base class for server-driven components with synchronized state."""

    component_name: ClassVar[str] = ""
    casts: ClassVar[Mapping[str, Any]] = {}
    query_string: ClassVar[Mapping[str, QueryStringSpec] | Sequence[str]] = {}
    locked: ClassVar[Sequence[str]] = ()
    spec: ClassVar[ComponentSpec] = ComponentSpec(name="component")

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.spec = build_spec(cls)
        for prop in cls.spec.properties:
            setattr(cls, prop.name, WireProperty(prop.name, prop.initial))

    def __init__(
        self,
        id: str | None = None,
        *,
        persistent_cache: PersistentComputedCache | None = None,
    ) -> None:
        self.id = id or uuid.uuid4().hex
        self.effects: list[Effect] = []
        derivations = {
            spec.name: self._bind_derivation(spec.name) for spec in type(self).spec.computed
        }
        self.state = PropertySynchronizer(
            type(self).spec,
            derivations,
            component_id=self.id,
            persistent_cache=persistent_cache,
        )
        self.state.initialize()

    def _bind_derivation(self, name: str) -> Any:
        descriptor = inspect.getattr_static(type(self), name)
        return lambda: descriptor.func(self)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        params: Mapping[str, Any] | None = None,
        query_params: QueryParams | None = None,
        *,
        id: str | None = None,
        persistent_cache: PersistentComputedCache | None = None,
        from_client: bool = False,
    ) -> Component:
        """
        Create and mount a fresh component.

        Values from ``query_params`` for bound properties are applied
        before ``mount()`` runs. With ``from_client`` the mount params
        came over the wire: locked properties are refused and values are
        cast like an update before ``mount()`` sees them.

        Raises:
            NotFoundError: A client param names no property
            ValidationError: A client param is locked or cannot be cast
        """
        component = cls(id, persistent_cache=persistent_cache)
        params = dict(params or {})
        if from_client:
            params = component._client_params(params)
        if query_params is not None:
            url_values = parse_query(
                query_params, component.state.bindings, component.state.kinds()
            )
            for name, value in url_values.items():
                try:
                    component.state.hydrate({name: value})
                except ValidationError as e:
                    logger.warning(f"Ignoring query parameter for '{name}': {e}")
        component.mount(**params)
        component.state.begin_cycle()
        return component

    def _client_params(self, params: Mapping[str, Any]) -> dict[str, Any]:
        accepted: dict[str, Any] = {}
        for name, raw in params.items():
            if not self.state.has_property(name):
                raise NotFoundError(
                    "mount parameter is not a property", field=name, component=self.spec.name
                )
            if self.spec.get_property(name).locked:
                raise ValidationError(
                    "property is locked and cannot be set by the client",
                    field=name,
                    component=self.spec.name,
                )
            accepted[name] = self.state.inbound(name, raw)
        return accepted

    def mount(self, **params: Any) -> None:
        """Assign mount parameters to matching properties."""
        for name, value in params.items():
            if not self.state.has_property(name):
                raise NotFoundError(
                    "mount parameter is not a property", field=name, component=self.spec.name
                )
            self.state.set(name, value)

    def update(self, updates: Mapping[str, Any]) -> list[str]:
        """
        Apply client updates in order, running the updating/updated hooks.

        Returns:
            The fields that were applied
        """
        applied: list[str] = []
        for field, value in updates.items():
            root = field.split(".", 1)[0]
            before = getattr(self, f"updating_{root}", None)
            if callable(before):
                before(value)
            new_value = self.state.apply(field, value)
            after = getattr(self, f"updated_{root}", None)
            if callable(after):
                after(new_value)
            applied.append(field)
        return applied

    # -------------------------------------------------------------------------
    # Helpers for component code
    # -------------------------------------------------------------------------

    def reset(self, *names: str) -> None:
        """Restore the named properties (or all of them) to their initial values."""
        self.state.reset(*names)

    def forget(self, name: str | None = None) -> None:
        """Drop cached computed values so they are derived again."""
        self.state.forget(name)

    def redirect(self, url: str, *, navigate: bool = False) -> None:
        """Ask the client to leave the page after this update."""
        self.effects.append(RedirectEffect(url=url, navigate=navigate))
        logger.debug(f"{self.spec.name} redirecting to {url}")

    def serialize(self) -> SerializedState:
        return self.state.serialize()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id}>"
