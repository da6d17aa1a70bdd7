from typing import Iterable

from weth_scanner.ports import RawTransfer, TransferRecord
from weth_scanner.utils.units import format_wad


def to_record(event: RawTransfer) -> TransferRecord:
    return TransferRecord(
        blockNumber=event.block_number,
        transactionHash=event.transaction_hash,
        src=event.src,
        dst=event.dst,
        wad=format_wad(event.amount),
        log_index=event.log_index,
    )


def filter_transfers(events: Iterable[RawTransfer], threshold: int) -> list[TransferRecord]:
    """Keeps transfers of at least `threshold` wei, in input order."""
    return [to_record(e) for e in events if e.amount >= threshold]
