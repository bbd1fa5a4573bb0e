"""Async helpers for committing batches in groups."""

import asyncio
from typing import Any, Awaitable, Callable, List, Optional, Sequence, TypeVar

T = TypeVar("T")


def chunked(items: Sequence[T], size: Optional[int]) -> List[List[T]]:
    """Split items into consecutive chunks of at most ``size``, keeping order.

    A ``size`` of None yields a single chunk holding every item (no chunks for
    an empty sequence).
    """
    if not items:
        return []
    if size is None:
        return [list(items)]
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


async def gather_in_groups(
    groups: Sequence[Sequence[Callable[[], Awaitable[T]]]],
    on_group_done: Optional[Callable[[int, List[T]], Any]] = None,
) -> List[T]:
    """Run each group's calls concurrently, one group after another.

    The next group starts only after every call of the previous group has
    completed. The first failure propagates and later groups never start.

    Args:
        groups: Zero-argument coroutine factories, grouped
        on_group_done: Optional callback receiving (group index, group results)

    Returns:
        Results of every call, in input order
    """
    results: List[T] = []
    for index, group in enumerate(groups):
        group_results = await asyncio.gather(*[call() for call in group])
        results.extend(group_results)
        if on_group_done is not None:
            on_group_done(index, list(group_results))
    return results
