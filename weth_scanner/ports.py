from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class BlockRange:
    start: int
    end: int  # exclusive

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise ValueError(f"empty block range [{self.start}, {self.end})")

    @property
    def to_block(self) -> int:
        # eth_getLogs bounds are inclusive
        return self.end - 1

    @property
    def width(self) -> int:
        return self.end - self.start

    def __str__(self) -> str:
        return f"[{self.start}, {self.end})"


@dataclass(frozen=True)
class RawTransfer:
    block_number: int
    transaction_hash: str
    src: str
    dst: str
    amount: int
    log_index: int = 0


@dataclass(frozen=True)
class TransferRecord:
    blockNumber: int
    transactionHash: str
    src: str
    dst: str
    wad: str
    log_index: int = field(default=0, compare=False)

    def to_json(self) -> dict:
        return {
            "blockNumber": self.blockNumber,
            "transactionHash": self.transactionHash,
            "src": self.src,
            "dst": self.dst,
            "wad": self.wad,
        }


class LogQueryPort(Protocol):
    async def query(self, block_range: BlockRange) -> list[RawTransfer]: ...


class OutputSink(Protocol):
    def write(self, records: list[TransferRecord]) -> str: ...
