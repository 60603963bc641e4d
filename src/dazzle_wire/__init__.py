"""
dazzle-wire: server-driven component state.

Public properties, casts, computed values and query-string binding for
components re-rendered on the server and patched into the page over
AJAX.
"""

__version__ = "0.1.0"

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
from dazzle_wire.component import Component
from dazzle_wire.computed import computed
from dazzle_wire.errors import (
    ConfigurationError,
    CorruptSnapshotError,
    NotFoundError,
    ValidationError,
    WireError,
)
from dazzle_wire.records import RecordReference, RecordResolver
from dazzle_wire.registry import ComponentRegistry
from dazzle_wire.specs.component import query
from dazzle_wire.synchronizer import PropertySynchronizer, SerializedState

__all__ = [
    "Cast",
    "Component",
    "ComponentRegistry",
    "ConfigurationError",
    "CorruptSnapshotError",
    "DateCast",
    "DateTimeCast",
    "DecimalCast",
    "EnumCast",
    "ModelCast",
    "NotFoundError",
    "PropertySynchronizer",
    "RecordCast",
    "RecordReference",
    "RecordResolver",
    "SerializedState",
    "TupleCast",
    "ValidationError",
    "WireError",
    "computed",
    "query",
    "resolve_cast",
]
