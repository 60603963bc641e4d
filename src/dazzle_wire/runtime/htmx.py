"""
HTMX-aware response headers for wire updates.

When an update arrives from htmx, redirects and query-string changes are
also announced through HX-* response headers so htmx can act on them
without client-side wire code.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from dazzle_wire.specs.effects import Effect, QueryStringEffect, RedirectEffect


@dataclass(frozen=True, slots=True)
class HtmxDetails:
    """Parsed HTMX request headers.

    https://htmx.org/reference/#request_headers
    """

    is_htmx: bool = False
    current_url: str = ""

    @classmethod
    def from_request(cls, request: Any) -> HtmxDetails:
        """Construct from a Starlette/FastAPI request."""
        if not hasattr(request, "headers"):
            return cls()
        h = request.headers
        return cls(
            is_htmx=h.get("HX-Request") == "true",
            current_url=h.get("HX-Current-URL", ""),
        )


def wire_headers(
    effects: Iterable[Effect],
    details: HtmxDetails,
    triggers: dict[str, Any] | list[str] | None = None,
) -> dict[str, str]:
    """
    Build HX-* response headers for the effects of an update.

    Non-htmx requests get no headers; their client reads the effects
    from the JSON body.
    """
    headers: dict[str, str] = {}
    if not details.is_htmx:
        return headers

    for effect in effects:
        if isinstance(effect, RedirectEffect):
            if effect.navigate:
                headers["HX-Location"] = json.dumps({"path": effect.url})
            else:
                headers["HX-Redirect"] = effect.url
        elif isinstance(effect, QueryStringEffect) and effect.url:
            header = "HX-Push-Url" if effect.history else "HX-Replace-Url"
            headers[header] = effect.url

    if triggers:
        headers["HX-Trigger"] = encode_trigger(triggers)

    return headers


def encode_trigger(value: dict[str, Any] | list[str]) -> str:
    """Encode a value in HX-Trigger header format."""
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return ", ".join(value)
    return json.dumps(value)
