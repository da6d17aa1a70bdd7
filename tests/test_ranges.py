import math

import pytest

from weth_scanner.ports import BlockRange
from weth_scanner.services.ranges import RangeTaskSource, iter_block_ranges


@pytest.mark.parametrize("start,end,size", [
    (1000, 1500, 250),
    (1000, 1501, 250),
    (0, 1, 200),
    (14_000_000, 14_010_007, 200),
    (5, 6, 1),
])
def test_ranges_tile_interval(start, end, size):
    ranges = list(iter_block_ranges(start, end, size))

    assert len(ranges) == math.ceil((end - start) / size)
    assert ranges[0].start == start
    assert ranges[-1].end == end
    for prev, nxt in zip(ranges, ranges[1:]):
        assert prev.end == nxt.start
        assert prev.width == size
    assert 0 < ranges[-1].width <= size


def test_scenario_ranges():
    assert list(iter_block_ranges(1000, 1500, 250)) == [BlockRange(1000, 1250), BlockRange(1250, 1500)]


def test_last_range_is_clamped():
    ranges = list(iter_block_ranges(100, 450, 200))
    assert ranges == [BlockRange(100, 300), BlockRange(300, 450)]
    assert ranges[-1].to_block == 449


def test_empty_interval_yields_nothing():
    assert list(iter_block_ranges(1000, 1000, 250)) == []
    assert list(iter_block_ranges(1000, 900, 250)) == []


def test_generator_is_lazy():
    gen = iter_block_ranges(0, 10 ** 15, 1)
    assert next(gen) == BlockRange(0, 1)
    assert next(gen) == BlockRange(1, 2)


def test_invalid_pagination_size():
    with pytest.raises(ValueError):
        list(iter_block_ranges(0, 10, 0))


def test_block_range_rejects_empty():
    with pytest.raises(ValueError):
        BlockRange(10, 10)


def test_task_source_hands_out_each_range_once():
    source = RangeTaskSource(0, 1000, 300)
    assert source.total == 4

    seen = []
    while (r := source.next_range()) is not None:
        seen.append(r)

    assert seen == list(iter_block_ranges(0, 1000, 300))
    assert source.remaining == 0
    assert source.next_range() is None
