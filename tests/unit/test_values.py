"""Tests for wire value kinds and coercion."""

from __future__ import annotations

from datetime import date
from typing import Optional

import pytest

from dazzle_wire.errors import ValidationError
from dazzle_wire.records import RecordReference
from dazzle_wire.values import PropertyKind, coerce, from_wire, infer_kind, is_permitted, to_wire


class TestIsPermitted:
    """Tests for is_permitted()."""

    @pytest.mark.parametrize(
        "value",
        [None, "", 0, 1.5, True, [1, "a"], {"a": [1, {"b": None}]}, RecordReference("Post", 1)],
    )
    def test_permitted(self, value: object) -> None:
        assert is_permitted(value)

    @pytest.mark.parametrize("value", [date(2024, 1, 1), object(), {1: "a"}, [set()]])
    def test_not_permitted(self, value: object) -> None:
        assert not is_permitted(value)


class TestInferKind:
    """Tests for infer_kind()."""

    def test_from_annotation(self) -> None:
        assert infer_kind(int, 0) == (PropertyKind.INT, False)
        assert infer_kind(bool, False) == (PropertyKind.BOOL, False)
        assert infer_kind(list[str], []) == (PropertyKind.LIST, False)
        assert infer_kind(dict[str, int], {}) == (PropertyKind.DICT, False)

    def test_optional_annotations(self) -> None:
        assert infer_kind(int | None, None) == (PropertyKind.INT, True)
        assert infer_kind(Optional[str], "x") == (PropertyKind.STR, True)  # noqa: UP007

    def test_wide_union_is_any(self) -> None:
        assert infer_kind(int | str, 0) == (PropertyKind.ANY, False)

    def test_from_initial_value(self) -> None:
        assert infer_kind(None, 1.5) == (PropertyKind.FLOAT, False)
        assert infer_kind(None, None) == (PropertyKind.ANY, True)

    def test_unknown_annotation_falls_back_to_initial(self) -> None:
        assert infer_kind(date, "2024-01-01") == (PropertyKind.STR, False)


class TestCoerce:
    """Tests for coerce()."""

    @pytest.mark.parametrize(
        ("kind", "raw", "expected"),
        [
            (PropertyKind.INT, "42", 42),
            (PropertyKind.INT, 3.0, 3),
            (PropertyKind.FLOAT, "2.5", 2.5),
            (PropertyKind.FLOAT, 2, 2.0),
            (PropertyKind.BOOL, "on", True),
            (PropertyKind.BOOL, "false", False),
            (PropertyKind.BOOL, 0, False),
            (PropertyKind.STR, 7, "7"),
            (PropertyKind.LIST, ("a", "b"), ["a", "b"]),
        ],
    )
    def test_accepted(self, kind: PropertyKind, raw: object, expected: object) -> None:
        result = coerce(kind, raw)
        assert result == expected
        assert type(result) is type(expected)

    @pytest.mark.parametrize(
        ("kind", "raw"),
        [
            (PropertyKind.INT, "abc"),
            (PropertyKind.INT, True),
            (PropertyKind.INT, 1.5),
            (PropertyKind.FLOAT, False),
            (PropertyKind.BOOL, "maybe"),
            (PropertyKind.STR, True),
            (PropertyKind.LIST, "a,b"),
            (PropertyKind.DICT, []),
            (PropertyKind.RECORD, 5),
        ],
    )
    def test_rejected(self, kind: PropertyKind, raw: object) -> None:
        with pytest.raises(ValidationError):
            coerce(kind, raw, field="value")

    def test_null_requires_nullable(self) -> None:
        assert coerce(PropertyKind.INT, None, nullable=True) is None
        with pytest.raises(ValidationError, match="null is not allowed"):
            coerce(PropertyKind.INT, None, field="page")

    def test_any_rejects_unpermitted(self) -> None:
        with pytest.raises(ValidationError, match="unsupported value type"):
            coerce(PropertyKind.ANY, date(2024, 1, 1))

    def test_record_from_wire_form(self) -> None:
        ref = coerce(PropertyKind.RECORD, {"__record__": "Post", "key": 3})
        assert ref == RecordReference("Post", 3)

    def test_error_names_field(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            coerce(PropertyKind.INT, "abc", field="page")
        assert exc_info.value.field == "page"
        assert str(exc_info.value).startswith("page:")


class TestWireForm:
    """Tests for to_wire() / from_wire()."""

    def test_record_references_nested(self) -> None:
        value = {"author": RecordReference("User", 1), "tags": [RecordReference("Tag", "x")]}
        wire = to_wire(value)
        assert wire == {
            "author": {"__record__": "User", "key": 1},
            "tags": [{"__record__": "Tag", "key": "x"}],
        }
        assert from_wire(wire) == value

    def test_plain_dicts_untouched(self) -> None:
        assert from_wire({"key": 1}) == {"key": 1}
