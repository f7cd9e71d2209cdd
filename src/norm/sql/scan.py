"""Strict row scanning.

Maps a :class:`~norm.protocols.RowSet` into model values. *Strict* means the
result columns and the destination columns must match exactly: a column
with no destination field is an error, and so is a field no column fills.

Destination column names:

- pydantic ``BaseModel``: the field alias, else the field name
- dataclass: ``field(metadata={"column": ...})``, else the field name
- anything else (``int``, ``str``, ``datetime``, ...): the single column

Values are converted with pydantic ``TypeAdapter`` in lax mode, so a
``TIMESTAMP`` string from SQLite still lands in a ``datetime`` field.
"""

from __future__ import annotations

import dataclasses
from functools import lru_cache
from typing import Any, TypeVar

from pydantic import BaseModel, PydanticUserError, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from norm.errors import ScanError
from norm.protocols import RowSet

T = TypeVar("T")


class NoRowsError(LookupError):
    """The result set of a single-row scan was empty."""

    def __init__(self) -> None:
        super().__init__("no rows in result set")


@lru_cache(maxsize=256)
def _adapter(model: Any) -> TypeAdapter:
    return TypeAdapter(model)


def resolve_adapter(model: Any) -> TypeAdapter:
    """Validator for ``model``.

    Raises:
        ScanError: pydantic cannot build a schema for ``model``
    """
    try:
        return _adapter(model)
    except PydanticUserError as e:
        name = getattr(model, "__name__", repr(model))
        raise ScanError(f"cannot scan into {name}", cause=e) from e


@lru_cache(maxsize=256)
def _destination(model: Any) -> dict[str, str] | None:
    """Map column name -> field name, or ``None`` for single-value models."""
    if isinstance(model, type) and issubclass(model, BaseModel):
        return {(info.alias or name): (info.alias or name) for name, info in model.model_fields.items()}
    if isinstance(model, type) and dataclasses.is_dataclass(model):
        return {
            f.metadata.get("column", f.name): f.name
            for f in dataclasses.fields(model)
            if f.init
        }
    return None


def _check_columns(model: Any, columns: tuple[str, ...], destination: dict[str, str] | None) -> None:
    name = getattr(model, "__name__", repr(model))
    if len(set(columns)) != len(columns):
        raise ScanError(f"duplicate columns {list(columns)} for {name}")

    if destination is None:
        if len(columns) != 1:
            raise ScanError(f"{name} needs exactly one column, got {list(columns)}")
        return

    unmapped = [c for c in columns if c not in destination]
    missing = [c for c in destination if c not in columns]
    if unmapped:
        raise ScanError(f"columns {unmapped} have no field in {name}")
    if missing:
        raise ScanError(f"fields {missing} of {name} have no column")


def _convert(model: Any, columns: tuple[str, ...], row: tuple[Any, ...], destination: dict[str, str] | None) -> Any:
    if destination is None:
        value: Any = row[0]
    else:
        value = {destination[c]: v for c, v in zip(columns, row, strict=True)}
    return resolve_adapter(model).validate_python(value)


def scan_one(model: type[T], rows: RowSet) -> T:
    """Scan the first row of ``rows`` into a new ``model`` value.

    Raises:
        NoRowsError: ``rows`` is empty
        ScanError: column mismatch or value conversion failure
    """
    if not rows.rows:
        raise NoRowsError()
    destination = _destination(model)
    _check_columns(model, rows.columns, destination)
    try:
        return _convert(model, rows.columns, rows.rows[0], destination)
    except PydanticValidationError as e:
        raise ScanError("scan one row", cause=e) from e


def scan_all(model: type[T], rows: RowSet) -> list[T]:
    """Scan every row of ``rows``; an empty result is an empty list.

    Raises:
        ScanError: column mismatch or value conversion failure
    """
    if not rows.rows:
        return []
    destination = _destination(model)
    _check_columns(model, rows.columns, destination)
    try:
        return [_convert(model, rows.columns, row, destination) for row in rows.rows]
    except PydanticValidationError as e:
        raise ScanError("scan rows", cause=e) from e


__all__ = [
    "NoRowsError",
    "resolve_adapter",
    "scan_one",
    "scan_all",
]
