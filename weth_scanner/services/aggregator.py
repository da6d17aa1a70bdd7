import asyncio

from weth_scanner.errors import RangeSkipped
from weth_scanner.ports import TransferRecord


class ResultAggregator:
    """
    Collects records from all workers. Writes are serialized by one lock;
    reading is only allowed through finalize() once the pool has closed it.
    """

    def __init__(self) -> None:
        self._records: list[TransferRecord] = []
        self._skipped: list[RangeSkipped] = []
        self._lock = asyncio.Lock()
        self._closed = False

    async def add(self, records: list[TransferRecord]) -> None:
        self._check_open()
        if not records:
            return
        async with self._lock:
            self._check_open()
            self._records.extend(records)

    async def add_skipped(self, skipped: RangeSkipped) -> None:
        async with self._lock:
            self._check_open()
            self._skipped.append(skipped)

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("ResultAggregator is closed")

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def finalize(self) -> list[TransferRecord]:
        if not self._closed:
            raise RuntimeError("finalize() called before all workers finished")
        return list(self._records)

    @property
    def skipped(self) -> list[RangeSkipped]:
        return list(self._skipped)

    def __len__(self) -> int:
        return len(self._records)
