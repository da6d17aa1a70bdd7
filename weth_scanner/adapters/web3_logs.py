import asyncio
import logging
from typing import Any, Mapping

import aiohttp
from eth_abi import decode
from eth_abi.exceptions import DecodingError
from web3 import AsyncWeb3
from web3.exceptions import Web3Exception

from weth_scanner.errors import QueryFailure
from weth_scanner.ports import BlockRange, LogQueryPort, RawTransfer

log = logging.getLogger("web3_logs")

# WETH9: event Transfer(address indexed src, address indexed dst, uint wad)
TRANSFER_TOPIC = AsyncWeb3.keccak(text="Transfer(address,address,uint256)")

UPSTREAM_ERRORS = (Web3Exception, ValueError, aiohttp.ClientError, asyncio.TimeoutError, OSError)


def decode_transfer(entry: Mapping[str, Any]) -> RawTransfer | None:
    """Decodes one eth_getLogs entry; returns None for logs that are not a Transfer(src, dst, wad)."""
    topics = entry["topics"]
    if len(topics) != 3 or bytes(topics[0]) != TRANSFER_TOPIC:
        return None
    src = decode(["address"], bytes(topics[1]))[0]
    dst = decode(["address"], bytes(topics[2]))[0]
    wad = decode(["uint256"], bytes(entry["data"]))[0]
    return RawTransfer(
        block_number=int(entry["blockNumber"]),
        transaction_hash=AsyncWeb3.to_hex(entry["transactionHash"]),
        src=AsyncWeb3.to_checksum_address(src),
        dst=AsyncWeb3.to_checksum_address(dst),
        amount=int(wad),
        log_index=int(entry.get("logIndex") or 0),
    )


class Web3TransferLogs(LogQueryPort):
    """eth_getLogs over the node pool, restricted to Transfer events of one token contract."""

    def __init__(self, node_pool, token_address: str, call_timeout: float = 30.0) -> None:
        self._nodes = node_pool
        self._token = AsyncWeb3.to_checksum_address(token_address)
        self._call_timeout = float(call_timeout)

    def filter_params(self, block_range: BlockRange) -> dict:
        return {
            "address": self._token,
            "topics": [AsyncWeb3.to_hex(TRANSFER_TOPIC)],
            "fromBlock": block_range.start,
            "toBlock": block_range.to_block,
        }

    async def query(self, block_range: BlockRange) -> list[RawTransfer]:
        w3 = await self._nodes.next_client()
        try:
            entries = await asyncio.wait_for(
                w3.eth.get_logs(self.filter_params(block_range)),
                timeout=self._call_timeout or None,
            )
        except UPSTREAM_ERRORS as e:
            raise QueryFailure(block_range, e) from e

        try:
            decoded = [decode_transfer(entry) for entry in entries]
        except (DecodingError, KeyError, TypeError) as e:
            raise QueryFailure(block_range, f"malformed log entry: {e!r}") from e

        events = [d for d in decoded if d is not None]
        log.debug("blocks %s: %d logs, %d transfers", block_range, len(entries), len(events))
        return events
