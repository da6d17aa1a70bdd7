import asyncio
import logging
from web3 import AsyncWeb3
from web3.providers import AsyncHTTPProvider

log = logging.getLogger("node_pool")


class Web3NodePool:
    """
    Round-robin over one or more RPC endpoints, so workers spread eth_getLogs calls across providers.
    """

    def __init__(self, urls: list[str], request_timeout: float = 30.0) -> None:
        urls = [u.strip() for u in urls if u and u.strip()]
        urls = list(dict.fromkeys(urls))  # dedup
        if not urls:
            raise ValueError("Web3NodePool: empty RPC URL list")

        self._timeout = float(request_timeout)
        self._clients: list[AsyncWeb3] = [
            AsyncWeb3(AsyncHTTPProvider(u, request_kwargs={"timeout": self._timeout}))
            for u in urls
        ]

        self._rr = 0
        self._lock = asyncio.Lock()
        log.info("Web3NodePool: %d providers initialized (timeout=%.1fs)", len(self._clients), self._timeout)

    def __len__(self) -> int:
        return len(self._clients)

    async def next_client(self) -> AsyncWeb3:
        async with self._lock:
            c = self._clients[self._rr % len(self._clients)]
            self._rr += 1
            return c

    async def aclose(self) -> None:
        for c in self._clients:
            disconnect = getattr(c.provider, "disconnect", None)  # cached aiohttp sessions, web3 >= 7
            if disconnect is not None:
                await disconnect()
        log.info("Web3NodePool: sessions closed")
