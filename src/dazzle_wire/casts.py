"""
Property casts.

A cast converts between the wire-safe representation of a property
(``raw``) and the rich value the component works with in Python.

    cast(raw)    -> rich   (inbound: client update, snapshot hydration)
    uncast(rich) -> raw    (outbound: snapshot, query string)

For every cast, ``uncast(cast(raw)) == raw``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from dazzle_wire.errors import ConfigurationError, ValidationError
from dazzle_wire.records import RecordReference, RecordResolver


class Cast(ABC):
    """Bidirectional transform between wire and rich values."""

    #: Short name shown by ``dazzle-wire inspect``
    name: str = "cast"

    @abstractmethod
    def cast(self, raw: Any) -> Any:
        """Convert a wire value into the rich value."""

    @abstractmethod
    def uncast(self, rich: Any) -> Any:
        """Convert a rich value back into its wire value."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class DateCast(Cast):
    """``date`` <-> ISO 8601 date string."""

    name = "date"

    def cast(self, raw: Any) -> date | None:
        if raw is None:
            return None
        if isinstance(raw, date) and not isinstance(raw, datetime):
            return raw
        try:
            return date.fromisoformat(raw)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"invalid date {raw!r}") from e

    def uncast(self, rich: Any) -> str | None:
        if rich is None:
            return None
        return rich.isoformat()


class DateTimeCast(Cast):
    """``datetime`` <-> ISO 8601 string, rendering UTC as ``Z``."""

    name = "datetime"

    def cast(self, raw: Any) -> datetime | None:
        if raw is None:
            return None
        if isinstance(raw, datetime):
            return raw
        if not isinstance(raw, str):
            raise ValidationError(f"invalid datetime {raw!r}")
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(raw)
        except ValueError as e:
            raise ValidationError(f"invalid datetime {raw!r}") from e

    def uncast(self, rich: Any) -> str | None:
        if rich is None:
            return None
        text = rich.isoformat()
        if rich.utcoffset() == timedelta(0) and text.endswith("+00:00"):
            return text[: -len("+00:00")] + "Z"
        return text


class DecimalCast(Cast):
    """``Decimal`` <-> string, so no precision is lost in JSON."""

    name = "decimal"

    def cast(self, raw: Any) -> Decimal | None:
        if raw is None:
            return None
        if isinstance(raw, Decimal):
            return raw
        if not isinstance(raw, str):
            raise ValidationError(f"decimal values travel as strings, got {raw!r}")
        try:
            return Decimal(raw)
        except InvalidOperation as e:
            raise ValidationError(f"invalid decimal {raw!r}") from e

    def uncast(self, rich: Any) -> str | None:
        if rich is None:
            return None
        return str(rich)


class EnumCast(Cast):
    """Enum member <-> member value."""

    name = "enum"

    def __init__(self, enum_cls: type[Enum]):
        self.enum_cls = enum_cls

    def cast(self, raw: Any) -> Enum | None:
        if raw is None:
            return None
        if isinstance(raw, self.enum_cls):
            return raw
        try:
            return self.enum_cls(raw)
        except ValueError as e:
            allowed = ", ".join(repr(m.value) for m in self.enum_cls)
            raise ValidationError(f"{raw!r} is not one of {allowed}") from e

    def uncast(self, rich: Any) -> Any:
        if rich is None:
            return None
        return rich.value

    def __repr__(self) -> str:
        return f"EnumCast({self.enum_cls.__name__})"


class ModelCast(Cast):
    """Pydantic model <-> plain dict (JSON mode dump)."""

    name = "model"

    def __init__(self, model_cls: type[BaseModel]):
        self.model_cls = model_cls

    def cast(self, raw: Any) -> BaseModel | None:
        if raw is None:
            return None
        if isinstance(raw, self.model_cls):
            return raw
        try:
            return self.model_cls.model_validate(raw)
        except PydanticValidationError as e:
            messages = "; ".join(err["msg"] for err in e.errors())
            raise ValidationError(f"invalid {self.model_cls.__name__}: {messages}") from e

    def uncast(self, rich: Any) -> dict[str, Any] | None:
        if rich is None:
            return None
        return rich.model_dump(mode="json")

    def __repr__(self) -> str:
        return f"ModelCast({self.model_cls.__name__})"


class TupleCast(Cast):
    """``tuple`` <-> list."""

    name = "tuple"

    def cast(self, raw: Any) -> tuple[Any, ...] | None:
        if raw is None:
            return None
        if not isinstance(raw, list | tuple):
            raise ValidationError(f"expected a list, got {type(raw).__name__}")
        return tuple(raw)

    def uncast(self, rich: Any) -> list[Any] | None:
        if rich is None:
            return None
        return list(rich)


class RecordCast(Cast):
    """Loaded record <-> :class:`RecordReference`."""

    name = "record"

    def __init__(self, model: str, resolver: RecordResolver):
        self.model = model
        self.resolver = resolver

    def cast(self, raw: Any) -> Any:
        if raw is None:
            return None
        if isinstance(raw, dict) and RecordReference.is_wire_form(raw):
            raw = RecordReference.from_wire(raw)
        if not isinstance(raw, RecordReference):
            raise ValidationError("expected a record reference")
        if raw.model != self.model:
            raise ValidationError(f"expected a {self.model} reference, got {raw.model}")
        return self.resolver.resolve(raw)

    def uncast(self, rich: Any) -> RecordReference | None:
        if rich is None:
            return None
        return self.resolver.reference(self.model, rich)

    def __repr__(self) -> str:
        return f"RecordCast({self.model})"


_SHORTHANDS: dict[str, type[Cast]] = {
    "date": DateCast,
    "datetime": DateTimeCast,
    "decimal": DecimalCast,
    "tuple": TupleCast,
}


def resolve_cast(declaration: Any) -> Cast:
    """
    Turn a cast declaration into a :class:`Cast`.

    Accepts a Cast instance, a shorthand string (``"date"``, ``"datetime"``,
    ``"decimal"``, ``"tuple"``), an Enum subclass or a pydantic model class.

    Raises:
        ConfigurationError: If the declaration is not understood
    """
    if isinstance(declaration, Cast):
        return declaration
    if isinstance(declaration, str):
        cast_cls = _SHORTHANDS.get(declaration)
        if cast_cls is None:
            known = ", ".join(sorted(_SHORTHANDS))
            raise ConfigurationError(f"Unknown cast '{declaration}'. Known casts: {known}")
        return cast_cls()
    if isinstance(declaration, type):
        if issubclass(declaration, Enum):
            return EnumCast(declaration)
        if issubclass(declaration, BaseModel):
            return ModelCast(declaration)
        if issubclass(declaration, Cast):
            return declaration()
    raise ConfigurationError(f"Invalid cast declaration {declaration!r}")
