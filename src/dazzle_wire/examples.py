"""
Example components.

Serve them with::

    dazzle-wire serve dazzle_wire.examples:registry
"""

from __future__ import annotations

from datetime import date
from enum import StrEnum

from dazzle_wire.component import Component
from dazzle_wire.computed import computed
from dazzle_wire.registry import ComponentRegistry
from dazzle_wire.specs.component import query

registry = ComponentRegistry()

POSTS = [
    {"id": 1, "title": "Cats in boxes", "status": "published", "published_on": "2024-01-10"},
    {"id": 2, "title": "Dogs on couches", "status": "published", "published_on": "2024-02-03"},
    {"id": 3, "title": "More cats", "status": "draft", "published_on": "2024-03-15"},
    {"id": 4, "title": "Birds at dawn", "status": "published", "published_on": "2024-04-22"},
]


class PostStatus(StrEnum):
    PUBLISHED = "published"
    DRAFT = "draft"


@registry.component
class PostSearch(Component):
    """Searchable, paginated post list mirrored into the page URL."""

    search: str = ""
    status: PostStatus = PostStatus.PUBLISHED
    since: date | None = None
    page: int = 1
    per_page: int = 2

    casts = {"status": PostStatus, "since": "date"}
    query_string = {
        "search": query(except_=""),
        "status": query(except_=PostStatus.PUBLISHED),
        "page": query(except_=1, as_="p"),
    }
    locked = ["per_page"]

    @computed
    def matches(self) -> list[dict]:
        """Posts matching the current filters."""
        needle = self.search.lower()
        return [
            post
            for post in POSTS
            if needle in post["title"].lower()
            and post["status"] == self.status.value
            and (self.since is None or date.fromisoformat(post["published_on"]) >= self.since)
        ]

    @computed
    def results(self) -> list[dict]:
        start = (self.page - 1) * self.per_page
        return self.matches[start : start + self.per_page]

    def updated_search(self, value: str) -> None:
        self.reset("page")

    def updated_status(self, value: PostStatus) -> None:
        self.reset("page")


@registry.component(name="counter")
class Counter(Component):
    count: int = 0
    step: int = 1

    locked = ["step"]

    def updating_count(self, value: object) -> None:
        if isinstance(value, int) and value > 100:
            self.redirect("/limits")
