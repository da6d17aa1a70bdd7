import logging
from dataclasses import dataclass, field
from time import monotonic

from weth_scanner.config import ScanConfig
from weth_scanner.errors import RangeSkipped
from weth_scanner.ports import LogQueryPort, TransferRecord
from weth_scanner.services.aggregator import ResultAggregator
from weth_scanner.services.fetcher import RetryingFetcher
from weth_scanner.services.ranges import RangeTaskSource
from weth_scanner.services.worker_pool import WorkerPool

log = logging.getLogger("scanner")


@dataclass
class ScanResult:
    records: list[TransferRecord]
    skipped: list[RangeSkipped] = field(default_factory=list)
    ranges_total: int = 0
    elapsed: float = 0.0


def sort_records(records: list[TransferRecord]) -> list[TransferRecord]:
    # log index breaks ties inside a block so reruns produce identical files
    return sorted(records, key=lambda r: (r.blockNumber, r.log_index))


class TransferScannerService:
    """
    Splits [start_block, end_block) into pagination-sized ranges, lets the
    worker pool fetch and filter them, then returns the records sorted by block.
    """

    def __init__(self, query: LogQueryPort, config: ScanConfig) -> None:
        self._query = query
        self._config = config

    async def scan(self) -> ScanResult:
        cfg = self._config
        start_all = monotonic()

        source = RangeTaskSource(cfg.start_block, cfg.end_block, cfg.pagination_size)
        fetcher = RetryingFetcher(self._query, max_attempts=cfg.max_attempts, base_delay=cfg.retry_base_delay)
        aggregator = ResultAggregator()
        pool = WorkerPool(source, fetcher, aggregator, threshold=cfg.threshold, worker_count=cfg.worker_count)

        log.info("Scanning %d ranges of %d blocks with %d workers",
                 source.total, cfg.pagination_size, cfg.worker_count)
        await pool.run()

        records = sort_records(aggregator.finalize())
        skipped = aggregator.skipped
        elapsed = monotonic() - start_all
        if skipped:
            log.warning("%d of %d ranges skipped, their transfers are missing from the output: %s",
                        len(skipped), source.total, ", ".join(str(s.block_range) for s in skipped))
        log.info("Scan finished: %d ranges, %d records in %.1fs", source.total, len(records), elapsed)
        return ScanResult(records=records, skipped=skipped, ranges_total=source.total, elapsed=elapsed)
