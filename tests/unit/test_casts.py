"""Tests for property casts."""

from __future__ import annotations

from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

import pytest
from pydantic import BaseModel

from dazzle_wire.casts import (
    Cast,
    DateCast,
    DateTimeCast,
    DecimalCast,
    EnumCast,
    ModelCast,
    RecordCast,
    TupleCast,
    resolve_cast,
)
from dazzle_wire.errors import ConfigurationError, NotFoundError, ValidationError
from dazzle_wire.records import RecordReference, RecordResolver


class Priority(Enum):
    LOW = 1
    HIGH = 2


class Address(BaseModel):
    street: str
    city: str


class Post(BaseModel):
    id: int
    title: str


def _resolver() -> RecordResolver:
    posts = {1: Post(id=1, title="Cats"), 2: Post(id=2, title="Dogs")}
    resolver = RecordResolver()
    resolver.register("Post", posts.get)
    return resolver


ROUND_TRIPS: list[tuple[Cast, Any]] = [
    (DateCast(), "2024-02-29"),
    (DateTimeCast(), "2024-02-29T10:30:00Z"),
    (DateTimeCast(), "2024-02-29T10:30:00+02:00"),
    (DateTimeCast(), "2024-02-29T10:30:00"),
    (DecimalCast(), "19.990"),
    (EnumCast(Priority), 2),
    (ModelCast(Address), {"street": "1 Main St", "city": "Springfield"}),
    (TupleCast(), [1, "two", 3.0]),
    (RecordCast("Post", _resolver()), RecordReference("Post", 1)),
]


class TestRoundTrip:
    """uncast(cast(raw)) == raw for every built-in cast."""

    @pytest.mark.parametrize(("cast", "raw"), ROUND_TRIPS, ids=lambda v: repr(v))
    def test_round_trip(self, cast: Cast, raw: Any) -> None:
        assert cast.uncast(cast.cast(raw)) == raw

    @pytest.mark.parametrize("cast", [c for c, _ in ROUND_TRIPS], ids=repr)
    def test_none_passes_through(self, cast: Cast) -> None:
        assert cast.cast(None) is None
        assert cast.uncast(None) is None


class TestDateCasts:
    """Tests for DateCast and DateTimeCast."""

    def test_date_from_string(self) -> None:
        assert DateCast().cast("2024-01-31") == date(2024, 1, 31)

    @pytest.mark.parametrize("cast", [DateCast(), DateTimeCast()], ids=repr)
    def test_empty_string_rejected(self, cast: Cast) -> None:
        with pytest.raises(ValidationError, match="invalid date"):
            cast.cast("")

    def test_invalid_date(self) -> None:
        with pytest.raises(ValidationError, match="invalid date"):
            DateCast().cast("31/01/2024")

    def test_datetime_accepts_z_suffix(self) -> None:
        value = DateTimeCast().cast("2024-01-31T12:00:00Z")
        assert value == datetime(2024, 1, 31, 12, 0, tzinfo=UTC)

    def test_utc_rendered_with_z(self) -> None:
        cast = DateTimeCast()
        assert cast.uncast(datetime(2024, 1, 31, 12, 0, tzinfo=UTC)) == "2024-01-31T12:00:00Z"
        assert cast.uncast(cast.cast("2024-01-31T12:00:00+00:00")) == "2024-01-31T12:00:00Z"


class TestScalarCasts:
    """Tests for DecimalCast and EnumCast."""

    def test_decimal_keeps_precision(self) -> None:
        assert DecimalCast().cast("0.1") + DecimalCast().cast("0.2") == Decimal("0.3")

    def test_decimal_rejects_garbage(self) -> None:
        with pytest.raises(ValidationError):
            DecimalCast().cast("twelve")

    def test_decimal_rejects_bool(self) -> None:
        with pytest.raises(ValidationError):
            DecimalCast().cast(True)

    @pytest.mark.parametrize("raw", [1.5, 2, ""])
    def test_decimal_requires_string(self, raw: Any) -> None:
        with pytest.raises(ValidationError):
            DecimalCast().cast(raw)

    def test_decimal_instance_passes_through(self) -> None:
        value = Decimal("1.50")
        assert DecimalCast().cast(value) is value

    def test_enum_from_value(self) -> None:
        assert EnumCast(Priority).cast(1) is Priority.LOW

    def test_enum_rejects_unknown_value(self) -> None:
        with pytest.raises(ValidationError, match="is not one of"):
            EnumCast(Priority).cast(3)


class TestModelCast:
    """Tests for ModelCast."""

    def test_validation_errors_reported(self) -> None:
        with pytest.raises(ValidationError, match="invalid Address"):
            ModelCast(Address).cast({"street": "1 Main St"})

    def test_instance_passes_through(self) -> None:
        address = Address(street="x", city="y")
        assert ModelCast(Address).cast(address) is address


class TestRecordCast:
    """Tests for RecordCast."""

    def test_loads_record(self) -> None:
        post = RecordCast("Post", _resolver()).cast({"__record__": "Post", "key": 2})
        assert post.title == "Dogs"

    def test_rejects_other_model(self) -> None:
        with pytest.raises(ValidationError, match="expected a Post reference"):
            RecordCast("Post", _resolver()).cast(RecordReference("User", 1))

    def test_missing_record(self) -> None:
        with pytest.raises(NotFoundError):
            RecordCast("Post", _resolver()).cast(RecordReference("Post", 99))


class TestResolveCast:
    """Tests for resolve_cast()."""

    def test_shorthands(self) -> None:
        assert isinstance(resolve_cast("date"), DateCast)
        assert isinstance(resolve_cast("datetime"), DateTimeCast)
        assert isinstance(resolve_cast("decimal"), DecimalCast)
        assert isinstance(resolve_cast("tuple"), TupleCast)

    def test_enum_and_model_classes(self) -> None:
        assert isinstance(resolve_cast(Priority), EnumCast)
        assert isinstance(resolve_cast(Address), ModelCast)

    def test_cast_class_and_instance(self) -> None:
        instance = DateCast()
        assert resolve_cast(instance) is instance
        assert isinstance(resolve_cast(DateCast), DateCast)

    def test_unknown_declaration(self) -> None:
        with pytest.raises(ConfigurationError):
            resolve_cast("money")
        with pytest.raises(ConfigurationError):
            resolve_cast(42)
