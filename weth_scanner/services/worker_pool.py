import asyncio
import logging
from time import monotonic

from weth_scanner.ports import BlockRange
from weth_scanner.services.aggregator import ResultAggregator
from weth_scanner.services.fetcher import RetryingFetcher
from weth_scanner.services.ranges import RangeTaskSource
from weth_scanner.services.transform import filter_transfers

log = logging.getLogger("worker_pool")


class WorkerPool:
    PROGRESS_EVERY = 50

    def __init__(
            self,
            source: RangeTaskSource,
            fetcher: RetryingFetcher,
            aggregator: ResultAggregator,
            threshold: int,
            worker_count: int,
    ) -> None:
        self._source = source
        self._fetcher = fetcher
        self._aggregator = aggregator
        self._threshold = threshold
        self._worker_count = max(1, int(worker_count))
        self._done = 0
        self._started = 0.0

    async def _process_range(self, block_range: BlockRange) -> None:
        log.debug("Querying %d to %d", block_range.start, block_range.end)
        outcome = await self._fetcher.fetch(block_range)
        if outcome.skipped is not None:
            await self._aggregator.add_skipped(outcome.skipped)
        await self._aggregator.add(filter_transfers(outcome.events, self._threshold))

        self._done += 1
        total = self._source.total
        if (self._done % self.PROGRESS_EVERY == 0) or (self._done == total):
            elapsed = monotonic() - self._started
            rate = self._done / max(elapsed, 1e-6)
            eta = (total - self._done) / max(rate, 1e-6)
            log.info("[ranges %d/%d] elapsed=%.1fs, ETA=%.1fs, rate=%.2f ranges/s, records=%d",
                     self._done, total, elapsed, eta, rate, len(self._aggregator))

    async def _worker(self) -> None:
        while True:
            block_range = self._source.next_range()
            if block_range is None:
                return
            await self._process_range(block_range)

    async def run(self) -> None:
        self._started = monotonic()
        workers = [asyncio.create_task(self._worker(), name=f"range-worker-{i}") for i in range(self._worker_count)]
        try:
            await asyncio.gather(*workers)
        finally:
            for w in workers:
                w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            self._aggregator.close()
