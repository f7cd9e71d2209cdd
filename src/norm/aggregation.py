"""
Keyed aggregation over independently fetched result sets.

``lookup`` is a left outer join and ``group`` a partition. Both fetch
through :class:`~norm.protocols.Reader` sources, so the two sides of a
lookup may come from different tables, different databases, or an
in-memory fake. After the fetch, both run purely in memory and
preserve input order.

Manifesto:
    - **Order is data:** left order is kept, right matches keep their
      relative order, group buckets keep fetch order
    - **Multiplicity is data:** duplicate keys and duplicate values are
      never collapsed
    - **Miss ≠ empty:** a left value with no match gets ``right=None``,
      never ``[]``
    - **Linear:** O(|L| + |R|) through a key index, never a nested loop

Architecture:
    ::

        lookup(left, left_args, right, right_args)
          │
          ├─ await left.read(left_args)    ── fails → LeftFetchError
          ├─ await right.read(right_args)  ── fails → RightFetchError
          │
          └─ merge_by_key(L, R)
               index:  key → [positions in R]
               for l in L:  Merge(l, [R[i] for i in index[key]] or None)

        group(source, args)
          ├─ await source.read(args)       ── fails → FetchError
          └─ group_by_key(V):  key → [v, ...] in fetch order

Examples:
    >>> merged = await lookup(orders, Since(day), customers, AllActive())
    >>> for m in merged:
    ...     m.left, m.right

    With values keyed by themselves, left ``[1, 2, 3, 4, 5]`` and right
    ``[5, 5, 2, 2, 4]`` merge into
    ``(1, None) (2, [2, 2]) (3, None) (4, [4]) (5, [5, 5])``.

Guardrails:
    ❌ DON'T: Test ``if not merge.right`` to detect a miss
    ✅ DO: Test ``merge.right is None``

Tags:
    aggregation, join, lookup, group, partition, norm

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import asyncio
from collections.abc import Hashable, Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from norm.errors import FetchError, LeftFetchError, RightFetchError
from norm.logging import get_logger
from norm.protocols import Keyable, Reader

logger = get_logger(__name__)

T = TypeVar("T", bound=Keyable)
T1 = TypeVar("T1", bound=Keyable)
T2 = TypeVar("T2", bound=Keyable)
A1 = TypeVar("A1")
A2 = TypeVar("A2")
K = TypeVar("K", bound=Hashable)


@dataclass(frozen=True)
class Merge(Generic[T1, T2]):
    """One row of a left outer join: a left value and its right matches.

    ``right`` is ``None`` when nothing matched, otherwise a non-empty list.
    """

    left: T1
    right: list[T2] | None = None


# ── In-memory primitives ─────────────────────────────────────────────────


def merge_by_key(left: Iterable[T1] | None, right: Iterable[T2] | None) -> list[Merge[T1, T2]]:
    """Left-outer-join two in-memory sequences on ``key()``."""
    rhs = list(right or ())
    index: dict[Hashable, list[int]] = {}
    for i, value in enumerate(rhs):
        index.setdefault(value.key(), []).append(i)

    out: list[Merge[T1, T2]] = []
    for value in left or ():
        positions = index.get(value.key())
        if positions is None:
            out.append(Merge(value, None))
        else:
            out.append(Merge(value, [rhs[i] for i in positions]))
    return out


def group_by_key(values: Iterable[T] | None) -> dict[Any, list[T]]:
    """Partition an in-memory sequence by ``key()`` keeping fetch order."""
    out: dict[Any, list[T]] = {}
    for value in values or ():
        out.setdefault(value.key(), []).append(value)
    return out


# ── Fetching operations ──────────────────────────────────────────────────


async def _fetch_left(source: Reader[Any, A1], args: A1) -> Any:
    try:
        return await source.read(args)
    except Exception as e:
        raise LeftFetchError(cause=e) from e


async def _fetch_right(source: Reader[Any, A2], args: A2) -> Any:
    try:
        return await source.read(args)
    except Exception as e:
        raise RightFetchError(cause=e) from e


async def lookup(
    left: Reader[Iterable[T1] | None, A1],
    left_args: A1,
    right: Reader[Iterable[T2] | None, A2],
    right_args: A2,
    *,
    concurrent: bool = False,
) -> list[Merge[T1, T2]]:
    """Fetch both sides and left-outer-join them on ``key()``.

    Sides are fetched one after the other; a left failure is raised before
    the right side is read. With ``concurrent=True`` both reads run as
    tasks and, should both fail, the left failure is the one raised.

    Raises:
        LeftFetchError: the left source failed (original error chained)
        RightFetchError: the right source failed (original error chained)
    """
    if concurrent:
        lhs, rhs = await _fetch_both(left, left_args, right, right_args)
    else:
        lhs = await _fetch_left(left, left_args)
        rhs = await _fetch_right(right, right_args)

    merged = merge_by_key(lhs, rhs)
    logger.debug("lookup_completed", rows=len(merged))
    return merged


async def _fetch_both(
    left: Reader[Any, A1],
    left_args: A1,
    right: Reader[Any, A2],
    right_args: A2,
) -> tuple[Any, Any]:
    results = await asyncio.gather(
        _fetch_left(left, left_args),
        _fetch_right(right, right_args),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results[0], results[1]


async def group(source: Reader[Iterable[T] | None, A1], args: A1) -> dict[Any, list[T]]:
    """Fetch ``source`` and partition the result by ``key()``.

    Raises:
        FetchError: the source failed (original error chained)
    """
    try:
        values = await source.read(args)
    except Exception as e:
        raise FetchError(cause=e) from e

    groups = group_by_key(values)
    logger.debug("group_completed", groups=len(groups))
    return groups


__all__ = [
    "Merge",
    "merge_by_key",
    "group_by_key",
    "lookup",
    "group",
]
