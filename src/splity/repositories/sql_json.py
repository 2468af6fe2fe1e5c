"""
Helpers for building PostgreSQL JSON documents with SQLAlchemy Core.

Keys are rendered as SQL string literals rather than bind parameters: asyncpg
cannot infer a type for parameters passed to the variadic json_build_object.
"""
from typing import Any

from sqlalchemy import ColumnElement, func, literal_column
from sqlalchemy.dialects.postgresql import aggregate_order_by

EMPTY_JSON_ARRAY = literal_column("'[]'::json")


def _key(name: str) -> ColumnElement[Any]:
    if "'" in name:
        raise ValueError(f"Invalid JSON key: {name!r}")
    return literal_column(f"'{name}'")


def json_object(**fields: ColumnElement[Any]) -> ColumnElement[Any]:
    """Build ``json_build_object('key', value, ...)`` from keyword arguments."""
    args: list[ColumnElement[Any]] = []
    for name, value in fields.items():
        args.extend((_key(name), value))
    return func.json_build_object(*args)


def json_array(
    element: ColumnElement[Any],
    *order_by: ColumnElement[Any],
) -> ColumnElement[Any]:
    """
    Aggregate ``element`` into a JSON array, ordered by ``order_by``.

    An aggregate over zero rows yields ``[]`` instead of NULL.
    """
    aggregated = func.json_agg(aggregate_order_by(element, *order_by) if order_by else element)
    return func.coalesce(aggregated, EMPTY_JSON_ARRAY)
