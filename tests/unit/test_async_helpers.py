"""Tests for grouped async helpers."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from largebatch.async_helpers import chunked, gather_in_groups


def test_chunked_keeps_order_and_last_chunk_smaller():
    """Test splitting into consecutive chunks."""
    assert chunked([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]


def test_chunked_without_size_is_single_chunk():
    """Test that no size means one chunk holding everything."""
    assert chunked([1, 2, 3], None) == [[1, 2, 3]]


def test_chunked_empty():
    """Test that an empty sequence yields no chunks."""
    assert chunked([], 3) == []
    assert chunked([], None) == []


@pytest.mark.asyncio
async def test_gather_in_groups_returns_results_in_order():
    """Test that results come back in input order across groups."""
    calls = [AsyncMock(return_value=i) for i in range(5)]
    on_group_done = MagicMock()

    results = await gather_in_groups([calls[:2], calls[2:4], calls[4:]], on_group_done)

    assert results == [0, 1, 2, 3, 4]
    assert [c.args for c in on_group_done.call_args_list] == [(0, [0, 1]), (1, [2, 3]), (2, [4])]


@pytest.mark.asyncio
async def test_gather_in_groups_stops_at_first_failing_group():
    """Test that later groups never start after a failure."""
    later = AsyncMock(return_value="later")

    async def boom():
        await asyncio.sleep(0)
        raise ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        await gather_in_groups([[AsyncMock(return_value=1)], [boom], [later]])

    later.assert_not_called()
