"""Ambient transaction propagation.

A caller that owns a transaction binds it for the current execution context;
every adapter operation awaited inside the block runs its statements against
that transaction instead of the pool. The binding lives in a
``contextvars.ContextVar``, so it follows the awaiting coroutine and is copied
into tasks spawned from it, while concurrent requests each see their own.

Usage::

    async with db.begin() as tx:
        with with_transaction(tx):
            await accounts.update(debit, amount)
            await accounts.update(credit, amount)
    # committed by db.begin(), not by norm

norm never begins, commits or rolls back the bound transaction.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, TypeVar

T = TypeVar("T")

_transaction: ContextVar[Any | None] = ContextVar("norm_transaction", default=None)


@contextmanager
def with_transaction(tx: T) -> Iterator[T]:
    """Bind ``tx`` as the ambient transaction until the block exits."""
    token = _transaction.set(tx)
    try:
        yield tx
    finally:
        _transaction.reset(token)


def current_transaction() -> Any | None:
    """Return the ambient transaction handle, or ``None`` when none is bound."""
    return _transaction.get()


__all__ = [
    "with_transaction",
    "current_transaction",
]
