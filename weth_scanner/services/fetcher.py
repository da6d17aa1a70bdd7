import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from weth_scanner.errors import QueryFailure, RangeSkipped
from weth_scanner.ports import BlockRange, LogQueryPort, RawTransfer

log = logging.getLogger("fetcher")


class FetchStatus(str, Enum):
    OK = "ok"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class FetchOutcome:
    block_range: BlockRange
    status: FetchStatus
    attempts: int
    events: list[RawTransfer] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def skipped(self) -> Optional[RangeSkipped]:
        if self.status is not FetchStatus.SKIPPED:
            return None
        return RangeSkipped(block_range=self.block_range, attempts=self.attempts, error=self.error or "")


class RetryingFetcher:
    """
    Runs one range query with a bounded number of attempts.

    attempt n fails -> attempt n + 1, until max_attempts; the last failure
    skips the range: its events are dropped and a single error is logged.
    """

    def __init__(self, query: LogQueryPort, max_attempts: int = 3, base_delay: float = 0.0) -> None:
        self._query = query
        self._max_attempts = max(1, int(max_attempts))
        self._base_delay = float(base_delay)

    async def fetch(self, block_range: BlockRange) -> FetchOutcome:
        last_exc: Optional[QueryFailure] = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                events = await self._query.query(block_range)
                return FetchOutcome(block_range, FetchStatus.OK, attempt, list(events))
            except QueryFailure as e:
                last_exc = e
            remaining = self._max_attempts - attempt
            if remaining:
                delay = self._base_delay * (2 ** (attempt - 1))
                log.warning("query %s failed, %d attempts remaining (delay=%.2fs): %r",
                            block_range, remaining, delay, last_exc.cause)
                if delay > 0:
                    await asyncio.sleep(delay)

        log.error("no attempts remaining, skipping blocks %s after %d attempts: %r",
                  block_range, self._max_attempts, last_exc.cause)
        return FetchOutcome(block_range, FetchStatus.SKIPPED, self._max_attempts, [], repr(last_exc.cause))
