"""Tests for declarative wire components."""

from __future__ import annotations

from datetime import date
from typing import ClassVar

import pytest

from dazzle_wire.casts import DateCast, EnumCast
from dazzle_wire.component import Component, WireProperty
from dazzle_wire.computed import PersistentComputedCache, computed
from dazzle_wire.errors import ConfigurationError, NotFoundError, ValidationError
from dazzle_wire.examples import PostSearch, PostStatus
from dazzle_wire.specs.component import query
from dazzle_wire.specs.effects import RedirectEffect
from dazzle_wire.values import PropertyKind


class Profile(Component):
    name: str = ""
    age: int | None = None
    tags: list[str] = []
    born: date | None = None
    theme: ClassVar[str] = "dark"
    _internal: int = 0

    casts = {"born": "date"}
    query_string = ["name"]


class TestSpecBuilding:
    """Tests for ComponentSpec construction from class declarations."""

    def test_annotated_attributes_become_properties(self) -> None:
        assert Profile.spec.property_names == ["name", "age", "tags", "born"]

    def test_kinds_inferred_from_annotations(self) -> None:
        spec = Profile.spec
        assert spec.get_property("name").kind == PropertyKind.STR
        assert spec.get_property("age").kind == PropertyKind.INT
        assert spec.get_property("age").nullable is True
        assert spec.get_property("tags").kind == PropertyKind.LIST

    def test_cast_resolved(self) -> None:
        assert isinstance(Profile.spec.get_property("born").cast, DateCast)
        assert isinstance(PostSearch.spec.get_property("status").cast, EnumCast)

    def test_default_component_name(self) -> None:
        assert Profile.spec.name == "profile"
        assert PostSearch.spec.name == "post-search"

    def test_list_query_string_has_no_except(self) -> None:
        binding = Profile.spec.query_string[0]
        assert binding.field == "name"
        assert binding.has_except is False

    def test_properties_replaced_by_descriptors(self) -> None:
        assert isinstance(Profile.__dict__["name"], WireProperty)

    def test_cast_for_undeclared_property(self) -> None:
        with pytest.raises(ConfigurationError, match="cast declared"):

            class Broken(Component):
                name: str = ""
                casts = {"missing": "date"}

    def test_unknown_cast_shorthand(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown cast"):

            class Broken(Component):
                when: str = ""
                casts = {"when": "timestamp"}

    def test_lock_for_undeclared_property(self) -> None:
        with pytest.raises(ConfigurationError, match="lock declared"):

            class Broken(Component):
                name: str = ""
                locked = ["missing"]

    def test_binding_for_undeclared_property(self) -> None:
        with pytest.raises(ConfigurationError):

            class Broken(Component):
                name: str = ""
                query_string = {"missing": query(except_="")}

    def test_annotated_state_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="reserved"):

            class Broken(Component):
                state: str = ""

    def test_method_name_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="reserved"):

            class Broken(Component):
                mount: int = 0

    def test_subclass_inherits_properties(self) -> None:
        class Extended(Profile):
            email: str = ""

        assert Extended.spec.property_names == ["name", "age", "tags", "born", "email"]
        assert Extended().name == ""

    def test_subclass_can_override_initial(self) -> None:
        class Renamed(Profile):
            name = "anon"

        assert Renamed().name == "anon"
        assert Profile().name == ""


class TestComponentInstance:
    """Tests for component instances."""

    def test_attribute_access_goes_through_state(self) -> None:
        profile = Profile()
        profile.name = "Ada"
        assert profile.state.get("name") == "Ada"
        assert profile.name == "Ada"

    def test_instances_do_not_share_mutable_defaults(self) -> None:
        first, second = Profile(), Profile()
        first.update({"tags.0": "admin"})
        assert first.tags == ["admin"]
        assert second.tags == []

    def test_create_reads_query_params(self) -> None:
        search = PostSearch.create(query_params={"search": "cats", "p": "2", "status": "draft"})
        assert search.search == "cats"
        assert search.page == 2
        assert search.status is PostStatus.DRAFT

    def test_create_ignores_bad_query_params(self) -> None:
        search = PostSearch.create(query_params={"p": "two"})
        assert search.page == 1

    def test_create_ignores_uncastable_query_params(self) -> None:
        search = PostSearch.create(query_params={"status": "bogus", "search": "cats"})
        assert search.status is PostStatus.PUBLISHED
        assert search.search == "cats"

    def test_mount_params(self) -> None:
        profile = Profile.create({"name": "Ada"})
        assert profile.name == "Ada"

    def test_mount_unknown_param(self) -> None:
        with pytest.raises(NotFoundError):
            Profile.create({"nope": 1})

    def test_mount_param_validated(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            Profile.create({"age": "old"})
        assert exc_info.value.field == "age"

    def test_server_mount_may_set_locked(self) -> None:
        search = PostSearch.create({"per_page": 10})
        assert search.per_page == 10

    def test_client_mount_refuses_locked(self) -> None:
        with pytest.raises(ValidationError, match="locked"):
            PostSearch.create({"per_page": 1000}, from_client=True)

    def test_client_mount_params_are_cast(self) -> None:
        search = PostSearch.create({"status": "draft", "since": ""}, from_client=True)
        assert search.status is PostStatus.DRAFT
        assert search.since is None

    def test_client_mount_unknown_param(self) -> None:
        with pytest.raises(NotFoundError):
            Profile.create({"nope": 1}, from_client=True)

    def test_updated_hook_runs_after_update(self) -> None:
        search = PostSearch.create(query_params={"p": "3"})
        search.update({"search": "cats"})
        assert search.search == "cats"
        assert search.page == 1

    def test_updating_hook_can_reject(self) -> None:
        class Guarded(Component):
            title: str = ""

            def updating_title(self, value: object) -> None:
                if value == "forbidden":
                    raise ValidationError("title not allowed", field="title")

        guarded = Guarded()
        with pytest.raises(ValidationError):
            guarded.update({"title": "forbidden"})
        assert guarded.title == ""

    def test_locked_property_rejected(self) -> None:
        search = PostSearch()
        with pytest.raises(ValidationError, match="locked"):
            search.update({"per_page": 100})

    def test_redirect_records_effect(self) -> None:
        profile = Profile()
        profile.redirect("/done", navigate=True)
        assert profile.effects == [RedirectEffect(url="/done", navigate=True)]

    def test_reset_helper(self) -> None:
        profile = Profile()
        profile.update({"name": "Ada", "age": "36"})
        profile.reset("age")
        assert profile.age is None
        assert profile.name == "Ada"
        profile.reset()
        assert profile.name == ""


class TestComputedOnComponents:
    """Tests for @computed on components."""

    def test_computed_memoized_per_cycle(self) -> None:
        calls: list[str] = []

        class Totals(Component):
            amount: int = 5

            @computed
            def doubled(self) -> int:
                calls.append("doubled")
                return self.amount * 2

        totals = Totals()
        assert totals.doubled == 10
        assert totals.doubled == 10
        assert totals.state.computed("doubled") == 10
        assert calls == ["doubled"]

    def test_computed_sees_state_at_first_access(self) -> None:
        search = PostSearch()
        assert [p["id"] for p in search.matches] == [1, 2, 4]
        search.update({"search": "cats"})
        # memoized for the rest of the cycle
        assert [p["id"] for p in search.matches] == [1, 2, 4]
        search.forget("matches")
        assert [p["id"] for p in search.matches] == [1]

    def test_computed_uses_other_computed(self) -> None:
        search = PostSearch()
        assert [p["id"] for p in search.results] == [1, 2]
        search.update({"page": 2})
        search.forget()
        assert [p["id"] for p in search.results] == [4]

    def test_persistent_computed(self, persistent_cache: PersistentComputedCache) -> None:
        calls: list[str] = []

        class Catalog(Component):
            @computed(persist=True, ttl=60)
            def categories(self) -> list[str]:
                calls.append("categories")
                return ["a", "b"]

        Catalog("same-id", persistent_cache=persistent_cache).categories
        Catalog("same-id", persistent_cache=persistent_cache).categories
        assert calls == ["categories"]
        assert Catalog.spec.get_computed("categories").persist is True


class TestComponentQueryString:
    """Query string produced by the example PostSearch component."""

    def test_defaults_produce_empty_query(self) -> None:
        assert PostSearch().state.query() == {}

    def test_alias_and_enum_values(self) -> None:
        search = PostSearch()
        search.update({"status": "draft", "page": 2})
        assert search.state.query() == {"status": "draft", "p": "2"}

    def test_search_example(self) -> None:
        search = PostSearch()
        search.update({"search": ""})
        assert "search" not in search.serialize().query
        search.update({"search": "cats"})
        assert search.serialize().query["search"] == "cats"
