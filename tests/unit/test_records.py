"""Tests for record references and the record resolver."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from dazzle_wire.errors import NotFoundError
from dazzle_wire.records import RecordReference, RecordResolver

USERS = {"ada": SimpleNamespace(username="ada", name="Ada Lovelace")}


@pytest.fixture
def resolver() -> RecordResolver:
    resolver = RecordResolver()
    resolver.register("User", USERS.get, key_of=lambda user: user.username)
    return resolver


class TestRecordReference:
    """Tests for RecordReference."""

    def test_wire_form(self) -> None:
        ref = RecordReference("Post", 42)
        assert ref.to_wire() == {"__record__": "Post", "key": 42}
        assert RecordReference.from_wire(ref.to_wire()) == ref
        assert str(ref) == "Post#42"

    def test_wire_form_detection(self) -> None:
        assert RecordReference.is_wire_form({"__record__": "Post", "key": 1})
        assert not RecordReference.is_wire_form({"__record__": "Post", "key": 1, "x": 2})
        assert not RecordReference.is_wire_form({"key": 1})

    def test_hashable(self) -> None:
        assert len({RecordReference("Post", 1), RecordReference("Post", 1)}) == 1


class TestRecordResolver:
    """Tests for RecordResolver."""

    def test_resolve(self, resolver: RecordResolver) -> None:
        assert resolver.resolve(RecordReference("User", "ada")).name == "Ada Lovelace"

    def test_reference_uses_key_of(self, resolver: RecordResolver) -> None:
        assert resolver.reference("User", USERS["ada"]) == RecordReference("User", "ada")

    def test_default_key_is_id(self) -> None:
        resolver = RecordResolver()
        resolver.register("Post", lambda key: None)
        assert resolver.reference("Post", SimpleNamespace(id=9)) == RecordReference("Post", 9)

    def test_unknown_model(self, resolver: RecordResolver) -> None:
        assert not resolver.has_model("Post")
        with pytest.raises(NotFoundError, match="No record loader"):
            resolver.resolve(RecordReference("Post", 1))
        with pytest.raises(NotFoundError):
            resolver.reference("Post", object())

    def test_missing_record(self, resolver: RecordResolver) -> None:
        with pytest.raises(NotFoundError, match="User#bob not found"):
            resolver.resolve(RecordReference("User", "bob"))
