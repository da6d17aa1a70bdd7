import asyncio
from typing import Iterator, Optional

from weth_scanner.ports import BlockRange


def iter_block_ranges(start_block: int, end_block: int, size: int) -> Iterator[BlockRange]:
    """Tiles [start_block, end_block) with ranges of `size` blocks; the last one is clamped to end_block."""
    if size < 1:
        raise ValueError(f"pagination size must be positive, got {size}")
    block = start_block
    while block < end_block:
        yield BlockRange(block, min(block + size, end_block))
        block += size


class RangeTaskSource:
    """
    Work queue shared by all workers. Every range is enqueued up front, so a
    worker that finds the queue empty knows the scan has no work left.
    """

    def __init__(self, start_block: int, end_block: int, size: int) -> None:
        self._queue: asyncio.Queue[BlockRange] = asyncio.Queue()
        for r in iter_block_ranges(start_block, end_block, size):
            self._queue.put_nowait(r)
        self.total = self._queue.qsize()

    def next_range(self) -> Optional[BlockRange]:
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    @property
    def remaining(self) -> int:
        return self._queue.qsize()
