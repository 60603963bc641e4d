"""
Property state synchronization for wire components.

The PropertySynchronizer owns the public state of one component
instance for one request cycle:

- initial values and reset
- inbound client updates (cast, coerced and validated before they land)
- computed values, memoized per cycle
- the outbound representation (wire data + query string)

State is only ever mutated after an inbound value has been fully
validated, so a rejected update leaves the instance untouched.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, Field

from dazzle_wire.casts import Cast
from dazzle_wire.computed import PersistentComputedCache, RequestCycle, get_persistent_cache
from dazzle_wire.errors import ConfigurationError, NotFoundError, ValidationError, WireError
from dazzle_wire.query_string import build_query, same_value
from dazzle_wire.specs.component import ComponentSpec, PropertySpec, QueryStringSpec
from dazzle_wire.values import PropertyKind, coerce, from_wire, is_permitted, to_wire

logger = logging.getLogger(__name__)


class SerializedState(BaseModel):
    """Outbound representation of a component's public state."""

    data: dict[str, Any] = Field(default_factory=dict, description="Wire values by property")
    query: dict[str, str | list[str]] = Field(
        default_factory=dict, description="Bound query parameters, except-rule applied"
    )


class PropertySynchronizer:
    """
    Holds and synchronizes the public state of one component instance.

    Args:
        spec: Component declaration
        derivations: Computed property name -> zero-argument callable
        component_id: Instance id; scopes the persistent computed cache
        persistent_cache: Cache for ``persist=True`` computed properties
    """

    def __init__(
        self,
        spec: ComponentSpec,
        derivations: Mapping[str, Callable[[], Any]] | None = None,
        *,
        component_id: str | None = None,
        persistent_cache: PersistentComputedCache | None = None,
    ) -> None:
        self.spec = spec
        self.component_id = component_id or spec.name
        self._derivations = dict(derivations or {})
        self._persistent = persistent_cache or get_persistent_cache()
        self._initial: dict[str, Any] = {}
        self._state: dict[str, Any] = {}
        self._bindings: list[QueryStringSpec] = []
        self._baseline: dict[str, Any] = {}
        self._cycle = RequestCycle()
        self._initialized = False

    # -------------------------------------------------------------------------
    # Initialization
    # -------------------------------------------------------------------------

    def initialize(self, defaults: Mapping[str, Any] | None = None) -> None:
        """
        Set the initial value of every property.

        Declared initial values are used unless ``defaults`` overrides them.

        Raises:
            ConfigurationError: If a default cannot cross the wire, a default
                or binding names an undeclared property, or a cast is invalid
        """
        defaults = dict(defaults or {})
        unknown = sorted(set(defaults) - set(self.spec.property_names))
        if unknown:
            raise ConfigurationError(
                f"Defaults given for undeclared properties: {', '.join(unknown)}",
                component=self.spec.name,
            )

        for computed_spec in self.spec.computed:
            if computed_spec.name in self.spec.property_names:
                raise ConfigurationError(
                    "computed property shadows a public property",
                    field=computed_spec.name,
                    component=self.spec.name,
                )

        initial: dict[str, Any] = {}
        for prop in self.spec.properties:
            if prop.cast is not None and not isinstance(prop.cast, Cast):
                raise ConfigurationError(
                    f"cast must be a Cast instance, got {prop.cast!r}",
                    field=prop.name,
                    component=self.spec.name,
                )
            value = defaults.get(prop.name, prop.initial)
            try:
                wire = self._outbound(prop, value)
            except WireError as e:
                raise ConfigurationError(
                    f"default {value!r} cannot be cast: {e.message}",
                    field=prop.name,
                    component=self.spec.name,
                ) from e
            if not is_permitted(wire):
                raise ConfigurationError(
                    f"default of type {type(value).__name__} cannot be sent over the wire",
                    field=prop.name,
                    component=self.spec.name,
                )
            initial[prop.name] = value

        self._bindings = [self._normalize_binding(b) for b in self.spec.query_string]
        self._initial = initial
        self._state = copy.deepcopy(initial)
        self._initialized = True
        self._mark_baseline()
        logger.debug(f"Initialized {self.spec.name} with {len(initial)} properties")

    def _normalize_binding(self, binding: QueryStringSpec) -> QueryStringSpec:
        prop = self.spec.get_property(binding.field)
        if prop is None:
            raise ConfigurationError(
                "query string binding for undeclared property",
                field=binding.field,
                component=self.spec.name,
            )
        # except values declared in rich form are compared in wire form
        if (
            prop.cast is not None
            and binding.has_except
            and binding.except_value is not None
            and not is_permitted(binding.except_value)
        ):
            wire_except = prop.cast.uncast(binding.except_value)
            return binding.model_copy(update={"except_value": wire_except})
        return binding

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise ConfigurationError(
                "synchronizer used before initialize()", component=self.spec.name
            )

    def _property(self, name: str) -> PropertySpec:
        prop = self.spec.get_property(name)
        if prop is None:
            raise NotFoundError("property is not declared", field=name, component=self.spec.name)
        return prop

    # -------------------------------------------------------------------------
    # Transforms
    # -------------------------------------------------------------------------

    def _outbound(self, prop: PropertySpec, value: Any) -> Any:
        if prop.cast is None:
            return value
        try:
            return prop.cast.uncast(value)
        except (AttributeError, TypeError, ValueError) as e:
            raise ValidationError(
                f"cast {prop.cast!r} cannot serialize {value!r}",
                field=prop.name,
                component=self.spec.name,
            ) from e

    def _inbound(self, prop: PropertySpec, raw: Any) -> Any:
        if prop.cast is None:
            return coerce(prop.kind, raw, nullable=prop.nullable, field=prop.name)
        # a cleared input clears a nullable cast property
        if isinstance(raw, str) and raw == "" and prop.nullable:
            raw = None
        if raw is None:
            if not prop.nullable:
                raise ValidationError(
                    "null is not allowed", field=prop.name, component=self.spec.name
                )
            return None
        try:
            rich = prop.cast.cast(raw)
        except ValidationError as e:
            raise ValidationError(e.message, field=prop.name, component=self.spec.name) from e
        except (TypeError, ValueError, KeyError) as e:
            raise ValidationError(
                f"cast {prop.cast!r} rejected {raw!r}: {e}",
                field=prop.name,
                component=self.spec.name,
            ) from e
        if rich is None and not prop.nullable:
            raise ValidationError("null is not allowed", field=prop.name, component=self.spec.name)
        return rich

    def _validated(self, prop: PropertySpec, value: Any) -> Any:
        """Check a rich value assigned by server code; returns the value to store."""
        if prop.cast is None:
            return coerce(prop.kind, value, nullable=prop.nullable, field=prop.name)
        if value is None:
            if not prop.nullable:
                raise ValidationError(
                    "null is not allowed", field=prop.name, component=self.spec.name
                )
            return None
        wire = self._outbound(prop, value)
        if not is_permitted(wire):
            raise ValidationError(
                f"cast {prop.cast!r} produced a value that cannot be sent over the wire",
                field=prop.name,
                component=self.spec.name,
            )
        return value

    # -------------------------------------------------------------------------
    # Inbound updates
    # -------------------------------------------------------------------------

    def apply(self, field: str, value: Any) -> Any:
        """
        Merge one client-submitted value into state.

        ``field`` may be a dotted path (``filters.status``, ``tags.0``)
        into a dict or list property without a cast.

        Returns:
            The new (rich) value of the root property

        Raises:
            NotFoundError: Unknown property
            ValidationError: Locked property, type mismatch or cast failure.
                State is unchanged.
        """
        self._require_initialized()
        root, _, rest = field.partition(".")
        prop = self._property(root)
        if prop.locked:
            raise ValidationError(
                "property is locked and cannot be updated from the client",
                field=root,
                component=self.spec.name,
            )

        if rest:
            new_value = self._apply_nested(prop, rest.split("."), value)
        else:
            new_value = self._inbound(prop, value)

        self._state[root] = new_value
        logger.debug(f"{self.spec.name}.{field} updated")
        return new_value

    def apply_many(self, updates: Mapping[str, Any]) -> dict[str, Any]:
        """Apply updates in order; stops at the first rejected update."""
        return {field: self.apply(field, value) for field, value in updates.items()}

    def _apply_nested(self, prop: PropertySpec, path: list[str], value: Any) -> Any:
        if prop.cast is not None or prop.kind not in (
            PropertyKind.DICT,
            PropertyKind.LIST,
            PropertyKind.ANY,
        ):
            raise ValidationError(
                "nested updates need an uncast list or dict property",
                field=prop.name,
                component=self.spec.name,
            )
        if not is_permitted(value):
            raise ValidationError(
                f"unsupported value type {type(value).__name__}",
                field=prop.name,
                component=self.spec.name,
            )

        dotted = ".".join([prop.name, *path])
        updated = copy.deepcopy(self._state[prop.name])
        if updated is None:
            updated = {}
        target = updated
        for i, segment in enumerate(path):
            last = i == len(path) - 1
            if isinstance(target, dict):
                if last:
                    target[segment] = from_wire(value)
                else:
                    target = target.setdefault(segment, {})
            elif isinstance(target, list):
                try:
                    index = int(segment)
                except ValueError as e:
                    raise ValidationError(
                        f"'{segment}' is not a list index", field=dotted, component=self.spec.name
                    ) from e
                if not 0 <= index <= len(target):
                    raise ValidationError(
                        f"index {index} out of range", field=dotted, component=self.spec.name
                    )
                if last:
                    if index == len(target):
                        target.append(from_wire(value))
                    else:
                        target[index] = from_wire(value)
                else:
                    if index == len(target):
                        target.append({})
                    target = target[index]
            else:
                raise ValidationError(
                    f"cannot set '{segment}' on a {type(target).__name__}",
                    field=dotted,
                    component=self.spec.name,
                )
        return coerce(prop.kind, updated, nullable=prop.nullable, field=prop.name)

    # -------------------------------------------------------------------------
    # Server-side access
    # -------------------------------------------------------------------------

    def get(self, name: str) -> Any:
        self._require_initialized()
        self._property(name)
        return self._state[name]

    def set(self, name: str, value: Any) -> None:
        """
        Assign a property from server code.

        Uncast properties are coerced to their kind; cast properties must
        uncast to a wire value. Locks do not apply to server code.

        Raises:
            ValidationError: The value does not fit the property. State is unchanged.
        """
        self._require_initialized()
        prop = self._property(name)
        self._state[name] = self._validated(prop, value)

    def inbound(self, name: str, raw: Any) -> Any:
        """Cast and validate a client-submitted value without storing it."""
        self._require_initialized()
        return self._inbound(self._property(name), raw)

    def has_property(self, name: str) -> bool:
        return self.spec.get_property(name) is not None

    def kinds(self) -> dict[str, tuple[PropertyKind, bool]]:
        """Property name -> (kind, nullable), for query-string parsing."""
        return {prop.name: (prop.kind, prop.nullable) for prop in self.spec.properties}

    @property
    def bindings(self) -> list[QueryStringSpec]:
        return list(self._bindings)

    # -------------------------------------------------------------------------
    # Computed
    # -------------------------------------------------------------------------

    def begin_cycle(self) -> None:
        """Start a new request cycle with an empty memo cache."""
        self._cycle.close()
        self._cycle = RequestCycle()
        self._mark_baseline()

    def end_cycle(self) -> None:
        """Discard this cycle's memoized computed values."""
        self._cycle.close()

    @property
    def cycle(self) -> RequestCycle:
        return self._cycle

    def computed(self, name: str) -> Any:
        """
        Return a computed value, evaluating its derivation at most once
        per request cycle.

        Raises:
            NotFoundError: No derivation is registered under ``name``
        """
        spec = self.spec.get_computed(name)
        derive = self._derivations.get(name)
        if spec is None or derive is None:
            raise NotFoundError(
                "computed property is not declared", field=name, component=self.spec.name
            )
        if self._cycle.closed:
            self._cycle = RequestCycle()

        if not spec.persist:
            return self._cycle.get_or_compute(name, derive)

        def derive_persistent() -> Any:
            hit, value = self._persistent.get(self.component_id, name)
            if hit:
                return value
            value = derive()
            self._persistent.put(self.component_id, name, value, ttl=spec.ttl)
            return value

        return self._cycle.get_or_compute(name, derive_persistent)

    def forget(self, name: str | None = None) -> None:
        """Drop memoized (and persisted) computed values."""
        if name is not None and self.spec.get_computed(name) is None:
            raise NotFoundError(
                "computed property is not declared", field=name, component=self.spec.name
            )
        self._cycle.forget(name)
        self._persistent.forget(self.component_id, name)

    # -------------------------------------------------------------------------
    # Reset
    # -------------------------------------------------------------------------

    def reset(self, *names: str | None) -> None:
        """
        Restore properties to their initialization-time values.

        ``reset()`` and ``reset(None)`` restore every property;
        ``reset("search")`` restores only that one.
        """
        self._require_initialized()
        targets = [n for n in names if n is not None]
        if not targets:
            self._state = copy.deepcopy(self._initial)
            return
        for name in targets:
            self._property(name)
        for name in targets:
            self._state[name] = copy.deepcopy(self._initial[name])

    # -------------------------------------------------------------------------
    # Outbound
    # -------------------------------------------------------------------------

    def wire_data(self) -> dict[str, Any]:
        """
        Every property in wire form.

        Raises:
            ValidationError: A property holds a value that cannot be sent
        """
        self._require_initialized()
        data: dict[str, Any] = {}
        for prop in self.spec.properties:
            value = self._outbound(prop, self._state[prop.name])
            if not is_permitted(value):
                raise ValidationError(
                    f"value of type {type(value).__name__} cannot be sent over the wire",
                    field=prop.name,
                    component=self.spec.name,
                )
            data[prop.name] = value
        return data

    def query(self) -> dict[str, str | list[str]]:
        """Query parameters for the bound properties."""
        return build_query(self.wire_data(), self._bindings)

    def serialize(self) -> SerializedState:
        """Outbound representation: wire data plus query string."""
        data = self.wire_data()
        return SerializedState(
            data=to_wire(data),
            query=build_query(data, self._bindings),
        )

    def hydrate(self, data: Mapping[str, Any]) -> None:
        """
        Restore state from trusted wire data (a verified snapshot).

        Properties missing from ``data`` keep their initial values.
        """
        self._require_initialized()
        for name, raw in data.items():
            prop = self.spec.get_property(name)
            if prop is None:
                logger.warning(f"Dropping unknown property '{name}' from {self.spec.name} snapshot")
                continue
            value = from_wire(raw)
            if prop.cast is not None:
                value = self._inbound(prop, value)
            self._state[name] = value
        self._mark_baseline()

    def _mark_baseline(self) -> None:
        self._baseline = {
            prop.name: copy.deepcopy(self._safe_outbound(prop)) for prop in self.spec.properties
        }

    def _safe_outbound(self, prop: PropertySpec) -> Any:
        try:
            return self._outbound(prop, self._state.get(prop.name))
        except WireError:
            return None

    def dirty(self) -> list[str]:
        """Properties whose wire value changed since the cycle started."""
        return [
            prop.name
            for prop in self.spec.properties
            if not same_value(self._safe_outbound(prop), self._baseline.get(prop.name))
        ]

    def is_dirty(self, name: str) -> bool:
        self._property(name)
        return name in self.dirty()
