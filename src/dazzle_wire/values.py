"""
Wire value kinds, inference and coercion.

Only a small set of value kinds can travel between the server and the
browser. Everything richer has to go through a cast first.
"""

from __future__ import annotations

import types
import typing
from enum import StrEnum
from typing import Any, Union

from dazzle_wire.errors import ValidationError
from dazzle_wire.records import RecordReference

_TRUE_STRINGS = {"1", "true", "on", "yes"}
_FALSE_STRINGS = {"0", "false", "off", "no", ""}


class PropertyKind(StrEnum):
    """Kind of value a component property holds on the wire."""

    STR = "str"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    LIST = "list"
    DICT = "dict"
    RECORD = "record"
    ANY = "any"


_TYPE_KINDS: dict[type, PropertyKind] = {
    # bool before int: bool is an int subclass
    bool: PropertyKind.BOOL,
    int: PropertyKind.INT,
    float: PropertyKind.FLOAT,
    str: PropertyKind.STR,
    list: PropertyKind.LIST,
    tuple: PropertyKind.LIST,
    dict: PropertyKind.DICT,
    RecordReference: PropertyKind.RECORD,
}


def is_permitted(value: Any) -> bool:
    """Return True if ``value`` may be sent over the wire as-is."""
    if value is None or isinstance(value, str | bool | int | float | RecordReference):
        return True
    if isinstance(value, list | tuple):
        return all(is_permitted(item) for item in value)
    if isinstance(value, dict):
        return all(isinstance(k, str) and is_permitted(v) for k, v in value.items())
    return False


def _kind_of_type(tp: Any) -> PropertyKind | None:
    origin = typing.get_origin(tp) or tp
    for py_type, kind in _TYPE_KINDS.items():
        if isinstance(origin, type) and issubclass(origin, py_type):
            return kind
    return None


def infer_kind(annotation: Any, initial: Any) -> tuple[PropertyKind, bool]:
    """
    Infer the property kind and nullability.

    The annotation wins when it maps to a known kind; otherwise the
    initial value decides. ``Optional[...]`` / ``X | None`` annotations
    and ``None`` initial values mark the property as nullable.

    Returns:
        Tuple of (kind, nullable)
    """
    nullable = initial is None
    if annotation is not None:
        origin = typing.get_origin(annotation)
        if origin is Union or origin is types.UnionType:
            args = [a for a in typing.get_args(annotation) if a is not type(None)]
            if len(args) < len(typing.get_args(annotation)):
                nullable = True
            if len(args) == 1:
                annotation = args[0]
            else:
                return PropertyKind.ANY, nullable
        kind = _kind_of_type(annotation)
        if kind is not None:
            return kind, nullable

    if initial is None:
        return PropertyKind.ANY, True
    return _TYPE_KINDS.get(type(initial), PropertyKind.ANY), nullable


def coerce(
    kind: PropertyKind, value: Any, *, nullable: bool = False, field: str | None = None
) -> Any:
    """
    Coerce an inbound wire value to ``kind``.

    Browser inputs submit strings, so numeric and boolean kinds accept
    their string forms.

    Raises:
        ValidationError: If the value cannot represent ``kind``
    """
    if value is None:
        if nullable or kind == PropertyKind.ANY:
            return None
        raise ValidationError("null is not allowed", field=field)

    if kind == PropertyKind.ANY:
        if not is_permitted(value):
            raise ValidationError(f"unsupported value type {type(value).__name__}", field=field)
        return value

    if kind == PropertyKind.STR:
        if isinstance(value, str):
            return value
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        raise ValidationError(f"expected a string, got {type(value).__name__}", field=field)

    if kind == PropertyKind.BOOL:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in _TRUE_STRINGS | _FALSE_STRINGS:
            return value.strip().lower() in _TRUE_STRINGS
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        raise ValidationError(f"expected a boolean, got {value!r}", field=field)

    if kind == PropertyKind.INT:
        if isinstance(value, bool):
            raise ValidationError("expected an integer, got a boolean", field=field)
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                pass
        raise ValidationError(f"expected an integer, got {value!r}", field=field)

    if kind == PropertyKind.FLOAT:
        if isinstance(value, bool):
            raise ValidationError("expected a number, got a boolean", field=field)
        if isinstance(value, int | float):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                pass
        raise ValidationError(f"expected a number, got {value!r}", field=field)

    if kind == PropertyKind.LIST:
        if isinstance(value, list | tuple) and is_permitted(value):
            return list(value)
        raise ValidationError(f"expected a list, got {type(value).__name__}", field=field)

    if kind == PropertyKind.DICT:
        if isinstance(value, dict) and is_permitted(value):
            return dict(value)
        raise ValidationError(f"expected an object, got {type(value).__name__}", field=field)

    if kind == PropertyKind.RECORD:
        if isinstance(value, RecordReference):
            return value
        if isinstance(value, dict) and RecordReference.is_wire_form(value):
            return RecordReference.from_wire(value)
        raise ValidationError("expected a record reference", field=field)

    raise ValidationError(f"unknown property kind {kind}", field=field)


def to_wire(value: Any) -> Any:
    """Convert a permitted value to its JSON-compatible form."""
    if isinstance(value, RecordReference):
        return value.to_wire()
    if isinstance(value, list | tuple):
        return [to_wire(item) for item in value]
    if isinstance(value, dict):
        return {k: to_wire(v) for k, v in value.items()}
    return value


def from_wire(value: Any) -> Any:
    """Inverse of :func:`to_wire`: revive record references."""
    if isinstance(value, dict):
        if RecordReference.is_wire_form(value):
            return RecordReference.from_wire(value)
        return {k: from_wire(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_wire(item) for item in value]
    return value
