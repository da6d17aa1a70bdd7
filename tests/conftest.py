import asyncio
from collections import Counter

from weth_scanner.errors import QueryFailure
from weth_scanner.ports import BlockRange, RawTransfer

ETHER = 10 ** 18
ALICE = "0x00000000000000000000000000000000000A11cE"
BOB = "0x0000000000000000000000000000000000000B0b"


def transfer(block: int, amount: int, log_index: int = 0, tx: str | None = None) -> RawTransfer:
    return RawTransfer(
        block_number=block,
        transaction_hash=tx or f"0x{block:064x}",
        src=ALICE,
        dst=BOB,
        amount=amount,
        log_index=log_index,
    )


class FakeLogQuery:
    """In-memory LogQueryPort: canned events per range start, optional failures, call bookkeeping."""

    def __init__(self, events: dict[int, list[RawTransfer]] | None = None,
                 failures: dict[int, int] | None = None, delay: float = 0.0) -> None:
        self.events = events or {}
        self.failures = dict(failures or {})  # range start -> remaining failures
        self.delay = delay
        self.calls: Counter = Counter()
        self.successes: Counter = Counter()

    async def query(self, block_range: BlockRange) -> list[RawTransfer]:
        self.calls[block_range] += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        else:
            await asyncio.sleep(0)
        if self.failures.get(block_range.start, 0) > 0:
            self.failures[block_range.start] -= 1
            raise QueryFailure(block_range, "429 Too Many Requests")
        self.successes[block_range] += 1
        return list(self.events.get(block_range.start, []))
