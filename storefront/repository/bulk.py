"""Bulk write operation descriptors.

Operations are executed in list order; later entries may depend on earlier
ones in the same call. Both the typed form and the document-store wire form
are accepted::

    [InsertOne({"name": "Widget", "price": 5}), DeleteMany({"status": "draft"})]
    [{"insertOne": {"document": {...}}}, {"deleteMany": {"filter": {...}}}]
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

__all__ = [
    "BulkOperation",
    "BulkWriteResult",
    "DeleteMany",
    "DeleteOne",
    "InsertOne",
    "UpdateMany",
    "UpdateOne",
    "parse_operations",
]


@dataclass(frozen=True)
class InsertOne:
    document: Mapping[str, Any]


@dataclass(frozen=True)
class UpdateOne:
    filter: Mapping[str, Any]
    update: Mapping[str, Any]


@dataclass(frozen=True)
class UpdateMany:
    filter: Mapping[str, Any]
    update: Mapping[str, Any]


@dataclass(frozen=True)
class DeleteOne:
    filter: Mapping[str, Any]


@dataclass(frozen=True)
class DeleteMany:
    filter: Mapping[str, Any]


BulkOperation = InsertOne | UpdateOne | UpdateMany | DeleteOne | DeleteMany

_WIRE_TAGS: dict[str, type] = {
    "insertOne": InsertOne,
    "updateOne": UpdateOne,
    "updateMany": UpdateMany,
    "deleteOne": DeleteOne,
    "deleteMany": DeleteMany,
}


@dataclass
class BulkWriteResult:
    """Counters accumulated over one bulk write."""

    inserted_count: int = 0
    matched_count: int = 0
    modified_count: int = 0
    deleted_count: int = 0
    inserted_ids: list[str] = field(default_factory=list)


def _parse_one(operation: Any) -> BulkOperation:
    if isinstance(operation, InsertOne | UpdateOne | UpdateMany | DeleteOne | DeleteMany):
        return operation
    if not isinstance(operation, Mapping) or len(operation) != 1:
        raise ValueError(f"Bulk operation must be a single-key mapping, got {operation!r}")

    tag, body = next(iter(operation.items()))
    try:
        op_cls = _WIRE_TAGS[tag]
    except KeyError:
        raise ValueError(f"Unknown bulk operation '{tag}'") from None

    if op_cls is InsertOne:
        return InsertOne(body["document"])
    if op_cls in (UpdateOne, UpdateMany):
        return op_cls(body.get("filter") or {}, body["update"])
    return op_cls(body.get("filter") or {})


def parse_operations(operations: Iterable[Any]) -> list[BulkOperation]:
    """Normalize a mixed list of typed and wire-form operations, keeping order."""
    return [_parse_one(operation) for operation in operations]
