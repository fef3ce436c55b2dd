"""
RPC transport: one AsyncWeb3 per chain over a shared aiohttp session
"""
import asyncio
from typing import Mapping, Optional, Union

import aiohttp
from web3 import AsyncWeb3, AsyncHTTPProvider

from config.chains import CHAINS, ChainConfig, ChainId
from config.settings import REQUEST_TIMEOUT
from core.errors import TransportFailure, UnsupportedNetwork
from utils.logger import get_logger

logger = get_logger(__name__)


class RPCManager:
    """
    Builds and caches AsyncWeb3 clients per chain.

    Construct one per process and pass it to whoever needs a connection;
    call close() on shutdown.
    """

    def __init__(self, chains: Mapping[ChainId, ChainConfig] = CHAINS,
                 timeout: float = REQUEST_TIMEOUT):
        self._chains = chains
        self._timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None
        self._web3_instances: dict[ChainId, AsyncWeb3] = {}
        self._locks: dict[ChainId, asyncio.Lock] = {}

    async def _get_session(self) -> aiohttp.ClientSession:
        """Shared session with DNS caching"""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                use_dns_cache=True,
                ttl_dns_cache=600,
                limit=100,
                limit_per_host=20,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self._timeout * 2, connect=10)
            )
        return self._session

    async def get_web3(self, chain_id: Union[ChainId, int], endpoint_index: int = 0) -> AsyncWeb3:
        """Web3 client for a chain; raises UnsupportedNetwork for unknown chains"""
        config = self._lookup(chain_id)
        lock = self._locks.setdefault(config.chain_id, asyncio.Lock())
        async with lock:
            if config.chain_id in self._web3_instances:
                return self._web3_instances[config.chain_id]

            url = config.get_rpc(endpoint_index)
            provider = AsyncHTTPProvider(url, request_kwargs={"timeout": aiohttp.ClientTimeout(total=self._timeout)})
            try:
                await provider.cache_async_session(await self._get_session())
            except Exception as e:
                raise TransportFailure(f"Could not open session for {config.name} ({url}): {e}") from e

            logger.debug(f"Connected {config.name} via {url}")
            web3 = AsyncWeb3(provider)
            self._web3_instances[config.chain_id] = web3
            return web3

    def _lookup(self, chain_id: Union[ChainId, int]) -> ChainConfig:
        key = chain_id.value if isinstance(chain_id, ChainId) else int(chain_id)
        for config in self._chains.values():
            if config.chain_id.value == key:
                return config
        raise UnsupportedNetwork(key)

    async def close(self):
        """Close all Web3 providers and the shared session"""
        for chain_id, web3 in self._web3_instances.items():
            disconnect = getattr(web3.provider, "disconnect", None)
            if disconnect is None:
                continue
            try:
                await disconnect()
            except Exception as e:
                logger.warning(f"Error disconnecting {chain_id.name}: {e}")
        self._web3_instances.clear()

        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
