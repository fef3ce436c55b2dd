"""
Multicast aggregator client
Batches read calls into one eth_call against the deployed Multicast contract.
Deployed addresses come from config/deployments.json
"""
import threading
from typing import Any, Iterable, Optional, Sequence

from web3 import AsyncWeb3

from config.chains import ChainRegistry
from core.codec.bytes_buffer import HexLike, hex_to_bytes
from core.codec.multicast_codec import (
    BlockchainState, CallPayload, CallResult,
    canonical_address, decode_balances, decode_call_results, decode_state,
    encode_cast, encode_eth_balances, encode_multicast,
)
from core.codec.tokens import erc20_balance_of, decode_uint256_result
from core.errors import MalformedResponse, MulticastError, TransportFailure
from utils.logger import get_logger
from utils.rate_limiter import MultiRateLimiter, chain_key

logger = get_logger(__name__)

_CALL_RESULTS = {
    "components": [
        {"internalType": "bool", "name": "success", "type": "bool"},
        {"internalType": "bytes", "name": "result", "type": "bytes"}
    ],
    "internalType": "struct Multicast.Result[]",
    "name": "",
    "type": "tuple[]"
}

MULTICAST_ABI = [
    {
        "inputs": [{"internalType": "bytes", "name": "data", "type": "bytes"}],
        "name": "multicast",
        "outputs": [_CALL_RESULTS],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [{"internalType": "bytes", "name": "data", "type": "bytes"}],
        "name": "cast",
        "outputs": [_CALL_RESULTS],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [{"internalType": "bytes", "name": "data", "type": "bytes"}],
        "name": "eth",
        "outputs": [{"internalType": "bytes", "name": "", "type": "bytes"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [],
        "name": "state",
        "outputs": [
            {"internalType": "uint256", "name": "blockNumber", "type": "uint256"},
            {"internalType": "bytes32", "name": "previousBlockHash", "type": "bytes32"},
            {"internalType": "uint256", "name": "difficulty", "type": "uint256"},
            {"internalType": "uint256", "name": "gaslimit", "type": "uint256"},
            {"internalType": "uint256", "name": "timestamp", "type": "uint256"}
        ],
        "stateMutability": "view",
        "type": "function"
    }
]


class MulticastCore:
    """
    Wrapper around the Multicast contract of one network.

    Requests are encoded locally and sent as a single `bytes` argument;
    results come back positionally, result[i] belongs to call i.
    """

    def __init__(
        self,
        chain_id: int,
        web3: AsyncWeb3,
        registry: ChainRegistry,
        rate_limiter: Optional[MultiRateLimiter] = None
    ):
        self.chain_id = int(chain_id)
        self.web3 = web3
        # raises UnsupportedNetwork before anything is built
        self.address = registry.get(self.chain_id)
        self.contract = web3.eth.contract(
            address=web3.to_checksum_address(self.address),
            abi=MULTICAST_ABI
        )
        self._rate_limiter = rate_limiter

    async def _call(self, name: str, *args) -> Any:
        if self._rate_limiter is not None:
            await self._rate_limiter.acquire(chain_key(self.chain_id))

        try:
            return await getattr(self.contract.functions, name)(*args).call()
        except MulticastError:
            raise
        except Exception as e:
            logger.warning(f"Multicast.{name} failed on network {self.chain_id}: {e}")
            raise TransportFailure(f"Multicast.{name} failed on network {self.chain_id}: {e}") from e

    @staticmethod
    def _match(results: list[CallResult], expected: int) -> list[CallResult]:
        if len(results) != expected:
            raise MalformedResponse(f"Got {len(results)} results for {expected} calls")
        return results

    async def multicast(self, calls: Sequence[CallPayload]) -> list[CallResult]:
        """Run calls against arbitrary targets"""
        calls = [CallPayload(*call) for call in calls]
        request = encode_multicast(calls)
        logger.debug(f"multicast: {len(calls)} calls on network {self.chain_id}")
        raw = await self._call("multicast", hex_to_bytes(request))
        return self._match(decode_call_results(raw), len(calls))

    async def cast(self, target: str, calls: Sequence[HexLike]) -> list[CallResult]:
        """Run calls that all go to the same target"""
        request = encode_cast(target, calls)
        logger.debug(f"cast: {len(calls)} calls to {target} on network {self.chain_id}")
        raw = await self._call("cast", hex_to_bytes(request))
        return self._match(decode_call_results(raw), len(calls))

    async def eth(self, addresses: Sequence[str]) -> dict[str, str]:
        """Native balances keyed by canonical address"""
        request = encode_eth_balances(addresses)
        raw = await self._call("eth", hex_to_bytes(request))
        return decode_balances(raw, addresses)

    async def state(self) -> BlockchainState:
        return decode_state(await self._call("state"))

    async def token_balances(self, token: str, owners: Sequence[str]) -> dict[str, Optional[int]]:
        """
        ERC-20 / ERC-721 balanceOf for many owners in one cast.
        Owners whose call reverted map to None.
        """
        results = await self.cast(token, [erc20_balance_of(owner) for owner in owners])
        return {
            canonical_address(owner): decode_uint256_result(result)
            for owner, result in zip(owners, results)
        }


class MulticastInstances:
    """
    One MulticastCore per network id, created on first use and kept for
    the life of the object. Safe to share between threads and tasks.
    """

    def __init__(self, registry: ChainRegistry, rate_limiter: Optional[MultiRateLimiter] = None):
        self.registry = registry
        self._rate_limiter = rate_limiter
        self._instances: dict[int, MulticastCore] = {}
        self._lock = threading.Lock()

    def get_or_create(self, chain_id: int, web3: AsyncWeb3) -> MulticastCore:
        chain_id = int(chain_id)
        with self._lock:
            instance = self._instances.get(chain_id)
            if instance is None:
                instance = MulticastCore(chain_id, web3, self.registry, self._rate_limiter)
                self._instances[chain_id] = instance
                logger.debug(f"Created Multicast client for network {chain_id} at {instance.address}")
            return instance

    async def async_get_instance(self, web3: AsyncWeb3) -> MulticastCore:
        """Ask the node which network it serves, then get or create its client"""
        try:
            chain_id = await web3.eth.chain_id
        except Exception as e:
            raise TransportFailure(f"Could not read chain id: {e}") from e
        return self.get_or_create(chain_id, web3)

    def get(self, chain_id: int) -> Optional[MulticastCore]:
        with self._lock:
            return self._instances.get(int(chain_id))

    def __contains__(self, chain_id: int) -> bool:
        return self.get(chain_id) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._instances)

    def chain_ids(self) -> Iterable[int]:
        with self._lock:
            return sorted(self._instances)
