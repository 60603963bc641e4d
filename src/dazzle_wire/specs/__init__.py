"""
dazzle-wire declaration types.

This module exports the component, binding and effect declaration types.
"""

from dazzle_wire.specs.binding import DEFAULT_DEBOUNCE_MS, ModelBinding, parse_model_directive
from dazzle_wire.specs.component import (
    ComponentSpec,
    ComputedSpec,
    PropertySpec,
    QueryStringSpec,
    query,
)
from dazzle_wire.specs.effects import Effect, QueryStringEffect, RedirectEffect

__all__ = [
    "DEFAULT_DEBOUNCE_MS",
    "ComponentSpec",
    "ComputedSpec",
    "Effect",
    "ModelBinding",
    "PropertySpec",
    "QueryStringEffect",
    "QueryStringSpec",
    "RedirectEffect",
    "parse_model_directive",
    "query",
]
