"""Forwarding of the filter / update / sort / projection grammar to SQLAlchemy.

The grammar is the document-store one callers already speak::

    {"status": "active", "price": {"$gte": 10, "$lt": 50}}
    {"$or": [{"role": "admin"}, {"is_featured": True}]}
    {"$set": {"status": "shipped"}, "$inc": {"stock_quantity": -1}}

Nothing here interprets business meaning; expressions are translated
one-to-one into SQL clauses on the mapped model's columns. Unknown fields
and operators raise ``ValueError``, which repositories wrap as an
operational ``RepositoryError``.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import ColumnElement, and_, false, not_, or_, true
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import InstrumentedAttribute, Mapper, selectinload

from storefront.core.enums import SortDirection

__all__ = [
    "PopulatePath",
    "apply_update",
    "build_where",
    "build_order_by",
    "build_update_values",
    "normalize_populate",
    "normalize_projection",
    "project",
    "populate_loaders",
]

IDENTITY_FIELD = "id"

_COMPARISONS: dict[str, Callable[[Any, Any], ColumnElement[bool]]] = {
    "$eq": lambda col, v: col.is_(None) if v is None else col == v,
    "$ne": lambda col, v: col.is_not(None) if v is None else or_(col != v, col.is_(None)),
    "$gt": lambda col, v: col > v,
    "$gte": lambda col, v: col >= v,
    "$lt": lambda col, v: col < v,
    "$lte": lambda col, v: col <= v,
    "$in": lambda col, v: col.in_(list(v)),
    "$nin": lambda col, v: or_(col.not_in(list(v)), col.is_(None)),
    "$exists": lambda col, v: col.is_not(None) if v else col.is_(None),
    "$regex": lambda col, v: col.regexp_match(v),
    "$like": lambda col, v: col.ilike(v),
}


def _column(model: type, field: str) -> InstrumentedAttribute:
    mapper: Mapper = sa_inspect(model)
    if field not in mapper.column_attrs:
        raise ValueError(f"Unknown field '{field}' for {model.__name__}")
    return getattr(model, field)


def _field_clause(model: type, field: str, condition: Any) -> ColumnElement[bool]:
    column = _column(model, field)
    if isinstance(condition, Mapping) and condition and all(str(k).startswith("$") for k in condition):
        clauses = []
        for op, value in condition.items():
            if op == "$not":
                clauses.append(not_(_field_clause(model, field, value)))
                continue
            try:
                compare = _COMPARISONS[op]
            except KeyError:
                raise ValueError(f"Unsupported filter operator '{op}'") from None
            clauses.append(compare(column, value))
        return and_(*clauses)
    return _COMPARISONS["$eq"](column, condition)


def build_where(model: type, filter_: Mapping[str, Any] | None) -> ColumnElement[bool]:
    """Translate a filter document into one boolean SQL expression.

    An empty or missing filter matches every row.
    """
    if not filter_:
        return true()

    clauses: list[ColumnElement[bool]] = []
    for key, condition in filter_.items():
        if key in ("$and", "$or", "$nor"):
            parts = [build_where(model, sub) for sub in condition]
            if key == "$and":
                clauses.append(and_(true(), *parts))
            elif key == "$or":
                clauses.append(or_(false(), *parts))
            else:
                clauses.append(not_(or_(false(), *parts)))
        elif key.startswith("$"):
            raise ValueError(f"Unsupported top-level filter operator '{key}'")
        else:
            clauses.append(_field_clause(model, key, condition))
    return and_(*clauses) if len(clauses) > 1 else clauses[0]


def build_order_by(model: type, sort: Mapping[str, Any] | str | None) -> list[ColumnElement[Any]]:
    """Translate ``{"price": -1}`` or ``"-price name"`` into ORDER BY clauses."""
    if not sort:
        return []

    if isinstance(sort, str):
        pairs: Iterable[tuple[str, Any]] = (
            (token[1:], SortDirection.DESC) if token.startswith("-") else (token, SortDirection.ASC)
            for token in sort.split()
        )
    else:
        pairs = sort.items()

    clauses = []
    for field, direction in pairs:
        column = _column(model, field)
        if isinstance(direction, str):
            direction = SortDirection.DESC if direction.lower() in ("desc", "descending") else SortDirection.ASC
        clauses.append(column.desc() if SortDirection(int(direction)) is SortDirection.DESC else column.asc())
    return clauses


def _split_update(update: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
    operators: dict[str, dict[str, Any]] = {}
    for key, value in update.items():
        if key.startswith("$"):
            operators.setdefault(key, {}).update(value)
        else:
            operators.setdefault("$set", {})[key] = value
    if IDENTITY_FIELD in operators.get("$set", {}) or IDENTITY_FIELD in operators.get("$unset", {}):
        raise ValueError("The identity field cannot be updated")
    return operators


def apply_update(instance: Any, update: Mapping[str, Any]) -> set[str]:
    """Apply an update patch to a loaded row in place.

    Returns:
        Names of the fields the patch touched
    """
    model = type(instance)
    touched: set[str] = set()
    for op, fields in _split_update(update).items():
        for field, value in fields.items():
            _column(model, field)
            current = getattr(instance, field)
            if op == "$set":
                new = value
            elif op == "$unset":
                new = None
            elif op == "$inc":
                new = (current or 0) + value
            elif op == "$mul":
                new = (current or 0) * value
            elif op == "$min":
                new = value if current is None or value < current else current
            elif op == "$max":
                new = value if current is None or value > current else current
            else:
                raise ValueError(f"Unsupported update operator '{op}'")
            setattr(instance, field, new)
            touched.add(field)
    return touched


def build_update_values(model: type, update: Mapping[str, Any]) -> dict[str, Any]:
    """Translate an update patch into the VALUES of a multi-row UPDATE."""
    values: dict[str, Any] = {}
    for op, fields in _split_update(update).items():
        for field, value in fields.items():
            column = _column(model, field)
            if op == "$set":
                values[field] = value
            elif op == "$unset":
                values[field] = None
            elif op == "$inc":
                values[field] = column + value
            elif op == "$mul":
                values[field] = column * value
            else:
                raise ValueError(f"Update operator '{op}' is not supported for multi-document updates")
    return values


@dataclass(frozen=True)
class Projection:
    """Resolved ``select`` option: either an inclusion or an exclusion set."""

    fields: frozenset[str]
    include: bool
    keep_identity: bool = True

    def apply(self, document: dict[str, Any], keep: Iterable[str] = ()) -> dict[str, Any]:
        keep = set(keep)
        if self.include:
            allowed = self.fields | keep
            if self.keep_identity:
                allowed = allowed | {IDENTITY_FIELD}
            return {k: v for k, v in document.items() if k in allowed}
        return {k: v for k, v in document.items() if k not in self.fields or k in keep}


def normalize_projection(select: Mapping[str, Any] | str | None) -> Projection | None:
    if not select:
        return None
    if isinstance(select, str):
        tokens = select.split()
        excluded = {t[1:] for t in tokens if t.startswith("-")}
        included = {t for t in tokens if not t.startswith("-")}
    else:
        excluded = {k for k, v in select.items() if not v}
        included = {k for k, v in select.items() if v}
    if included and excluded - {IDENTITY_FIELD}:
        raise ValueError("Projection cannot mix inclusion and exclusion")
    if included:
        # an inclusion keeps the identity unless it is excluded explicitly
        return Projection(frozenset(included), include=True, keep_identity=IDENTITY_FIELD not in excluded)
    return Projection(frozenset(excluded), include=False)


def project(document: dict[str, Any], select: Mapping[str, Any] | str | None, keep: Iterable[str] = ()) -> dict[str, Any]:
    projection = normalize_projection(select)
    return projection.apply(document, keep) if projection else document


@dataclass(frozen=True)
class PopulatePath:
    path: str
    select: Mapping[str, Any] | str | None = None


def normalize_populate(populate: Any) -> list[PopulatePath]:
    """Accept ``"items"``, ``["items"]`` or ``{"path": "items", "select": "sku"}``."""
    if not populate:
        return []
    if isinstance(populate, str):
        return [PopulatePath(path) for path in populate.split()]
    if isinstance(populate, Mapping):
        return [PopulatePath(populate["path"], populate.get("select"))]
    paths: list[PopulatePath] = []
    for entry in populate:
        paths.extend(normalize_populate(entry))
    return paths


def populate_loaders(model: type, paths: list[PopulatePath]) -> list[Any]:
    mapper: Mapper = sa_inspect(model)
    loaders = []
    for entry in paths:
        if entry.path not in mapper.relationships:
            raise ValueError(f"Unknown relation '{entry.path}' for {model.__name__}")
        loaders.append(selectinload(getattr(model, entry.path)))
    return loaders
