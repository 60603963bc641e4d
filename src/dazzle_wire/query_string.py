"""
Query-string synchronization.

Properties bound to the query string are mirrored into the page URL so a
reload or shared link restores the component state. A binding with an
``except`` value is dropped from the URL while the property holds that
value::

    query_string = {"search": query(except_="")}

    search = ""      ->  /posts
    search = "cats"  ->  /posts?search=cats
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from dazzle_wire.errors import ValidationError
from dazzle_wire.records import RecordReference
from dazzle_wire.specs.component import QueryStringSpec
from dazzle_wire.values import PropertyKind, coerce

logger = logging.getLogger(__name__)

QueryParams = Mapping[str, str | list[str]] | Iterable[tuple[str, str]]


def same_value(left: Any, right: Any) -> bool:
    """Equality that does not treat ``True`` and ``1`` as equal."""
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return bool(left == right)


def is_omitted(binding: QueryStringSpec, value: Any) -> bool:
    """True when ``value`` must not appear in the URL for ``binding``."""
    if value is None:
        return True
    return binding.has_except and same_value(value, binding.except_value)


def _render_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, RecordReference):
        return str(value.key)
    return str(value)


def _render(key: str, value: Any, out: dict[str, str | list[str]]) -> None:
    if isinstance(value, dict):
        for sub_key, sub_value in value.items():
            if sub_value is not None:
                _render(f"{key}[{sub_key}]", sub_value, out)
    elif isinstance(value, list | tuple):
        out[key] = [_render_scalar(item) for item in value if item is not None]
    else:
        out[key] = _render_scalar(value)


def build_query(
    values: Mapping[str, Any], bindings: Iterable[QueryStringSpec]
) -> dict[str, str | list[str]]:
    """
    Build the query parameters for the bound properties.

    Args:
        values: Wire values keyed by property name
        bindings: Query-string bindings in declaration order

    Returns:
        Ordered mapping of URL key -> string (or list of strings for
        repeated keys). Omitted bindings have no key at all.
    """
    query: dict[str, str | list[str]] = {}
    for binding in bindings:
        value = values.get(binding.field)
        if is_omitted(binding, value):
            continue
        _render(binding.key, value, query)
    return query


def encode_query(query: Mapping[str, str | list[str]]) -> str:
    """Encode query parameters, repeating keys for list values."""
    return urlencode(list(query.items()), doseq=True)


def _normalize_params(params: QueryParams) -> dict[str, list[str]]:
    normalized: dict[str, list[str]] = {}
    items: Iterable[tuple[str, Any]]
    if isinstance(params, Mapping):
        items = params.items()
    else:
        items = params
    for key, value in items:
        if isinstance(value, list):
            normalized.setdefault(key, []).extend(str(v) for v in value)
        else:
            normalized.setdefault(key, []).append(str(value))
    return normalized


def parse_query(
    params: QueryParams,
    bindings: Iterable[QueryStringSpec],
    kinds: Mapping[str, tuple[PropertyKind, bool]],
) -> dict[str, Any]:
    """
    Read bound property values out of incoming URL parameters.

    Values are coerced to the property kind. Parameters that fail to
    coerce are logged and skipped so a hand-edited URL never breaks the
    initial render.

    Args:
        params: URL parameters (mapping or key/value pairs)
        bindings: Query-string bindings
        kinds: Property name -> (kind, nullable)

    Returns:
        Wire values keyed by property name, only for parameters present
    """
    normalized = _normalize_params(params)
    values: dict[str, Any] = {}

    for binding in bindings:
        kind, nullable = kinds.get(binding.field, (PropertyKind.ANY, True))
        key = binding.key

        if kind == PropertyKind.DICT:
            prefix = f"{key}["
            nested = {
                k[len(prefix) : -1]: v[-1]
                for k, v in normalized.items()
                if k.startswith(prefix) and k.endswith("]")
            }
            if nested:
                values[binding.field] = nested
            continue

        raw = normalized.get(key)
        if raw is None:
            continue
        candidate: Any = raw if kind == PropertyKind.LIST else raw[-1]
        try:
            values[binding.field] = coerce(kind, candidate, nullable=nullable, field=binding.field)
        except ValidationError as e:
            logger.warning(f"Ignoring query parameter '{key}': {e}")

    return values


def merge_url(
    current_url: str,
    query: Mapping[str, str | list[str]],
    bindings: Iterable[QueryStringSpec],
) -> str:
    """
    Rewrite ``current_url`` with the bound parameters in ``query``.

    Parameters that do not belong to a binding are kept untouched, bound
    parameters absent from ``query`` are removed.
    """
    parts = urlsplit(current_url)
    bound_keys = {binding.key for binding in bindings}

    def is_bound(key: str) -> bool:
        return key in bound_keys or key.split("[", 1)[0] in bound_keys

    kept = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if not is_bound(k)]
    pairs: list[tuple[str, str]] = list(kept)
    for key, value in query.items():
        if isinstance(value, list):
            pairs.extend((key, item) for item in value)
        else:
            pairs.append((key, value))

    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(pairs), parts.fragment))
