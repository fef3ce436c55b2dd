"""
Chain configurations and the multicast deployment registry
"""
import json
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional, Union

from config.settings import DEPLOYMENTS_FILE
from core.codec.bytes_buffer import is_hex, remove_hex_prefix
from core.errors import InvalidInput, UnsupportedNetwork

# .env is loaded by config.settings
INFURA_KEY = os.getenv("INFURA_API_KEY")


class ChainId(Enum):
    """Networks with a known multicast deployment"""
    ETHEREUM = 1
    BSC = 56
    BSC_TESTNET = 97
    FANTOM = 250
    FANTOM_TESTNET = 4002


@dataclass
class ChainConfig:
    """Configuration for a blockchain"""
    chain_id: ChainId
    name: str
    native_token: str
    native_decimals: int
    rpc_endpoints: list[Optional[str]]
    explorer_url: str

    @property
    def env_prefix(self) -> str:
        return self.chain_id.name

    def get_rpc(self, index: int = 0) -> str:
        """RPC endpoint with rotation support; <NAME>_RPC_URL takes precedence"""
        override = os.getenv(f"{self.env_prefix}_RPC_URL")
        valid_rpcs = ([override] if override else []) + [r for r in self.rpc_endpoints if r is not None]
        return valid_rpcs[index % len(valid_rpcs)]


CHAINS: dict[ChainId, ChainConfig] = {
    ChainId.ETHEREUM: ChainConfig(
        chain_id=ChainId.ETHEREUM,
        name="Ethereum",
        native_token="ETH",
        native_decimals=18,
        rpc_endpoints=[
            f"https://mainnet.infura.io/v3/{INFURA_KEY}" if INFURA_KEY else None,
            "https://eth.llamarpc.com",
            "https://rpc.ankr.com/eth",
            "https://ethereum.publicnode.com",
        ],
        explorer_url="https://etherscan.io",
    ),

    ChainId.BSC: ChainConfig(
        chain_id=ChainId.BSC,
        name="BSC",
        native_token="BNB",
        native_decimals=18,
        rpc_endpoints=[
            "https://bsc-dataseed.binance.org",
            "https://rpc.ankr.com/bsc",
            "https://bsc.publicnode.com",
        ],
        explorer_url="https://bscscan.com",
    ),

    ChainId.BSC_TESTNET: ChainConfig(
        chain_id=ChainId.BSC_TESTNET,
        name="BSC Testnet",
        native_token="tBNB",
        native_decimals=18,
        rpc_endpoints=[
            "https://data-seed-prebsc-1-s1.binance.org:8545",
            "https://bsc-testnet.publicnode.com",
        ],
        explorer_url="https://testnet.bscscan.com",
    ),

    ChainId.FANTOM: ChainConfig(
        chain_id=ChainId.FANTOM,
        name="Fantom",
        native_token="FTM",
        native_decimals=18,
        rpc_endpoints=[
            "https://rpc.ftm.tools",
            "https://rpc.ankr.com/fantom",
            "https://fantom.publicnode.com",
        ],
        explorer_url="https://ftmscan.com",
    ),

    ChainId.FANTOM_TESTNET: ChainConfig(
        chain_id=ChainId.FANTOM_TESTNET,
        name="Fantom Testnet",
        native_token="FTM",
        native_decimals=18,
        rpc_endpoints=[
            "https://rpc.testnet.fantom.network",
            "https://fantom-testnet.publicnode.com",
        ],
        explorer_url="https://testnet.ftmscan.com",
    ),
}


def get_chain(chain_id: Union[ChainId, int]) -> ChainConfig:
    """Get chain configuration by ID"""
    key = chain_id.value if isinstance(chain_id, ChainId) else int(chain_id)
    try:
        return CHAINS[ChainId(key)]
    except (ValueError, KeyError):
        raise UnsupportedNetwork(key) from None


@dataclass
class ChainRegistry:
    """
    Network id -> deployed multicast address.

    Loaded from a versioned JSON document:
        {"version": 1, "deployments": {"56": "0x..."}}
    """
    deployments: dict[int, str] = field(default_factory=dict)
    version: int = 1

    def __post_init__(self):
        for chain_id, address in self.deployments.items():
            digits = remove_hex_prefix(address)
            if len(digits) != 40 or not is_hex(digits):
                raise InvalidInput(f"Invalid multicast address for network {chain_id}: {address!r}")

    @classmethod
    def from_mapping(cls, data: Mapping) -> "ChainRegistry":
        if "deployments" not in data:
            raise InvalidInput("Deployment registry has no 'deployments' table")
        try:
            deployments = {int(k): str(v) for k, v in data["deployments"].items()}
        except (TypeError, ValueError, AttributeError) as e:
            raise InvalidInput(f"Malformed deployment registry: {e}") from e
        return cls(deployments=deployments, version=int(data.get("version", 1)))

    @classmethod
    def load(cls, path: Union[str, Path, None] = None) -> "ChainRegistry":
        path = Path(path) if path is not None else DEPLOYMENTS_FILE
        with open(path, encoding="utf-8") as f:
            return cls.from_mapping(json.load(f))

    def get(self, chain_id: Union[ChainId, int]) -> str:
        """Deployed address for a network; raises UnsupportedNetwork"""
        key = chain_id.value if isinstance(chain_id, ChainId) else int(chain_id)
        address = self.deployments.get(key)
        if not address:
            raise UnsupportedNetwork(key)
        return address

    def __contains__(self, chain_id) -> bool:
        key = chain_id.value if isinstance(chain_id, ChainId) else chain_id
        return key in self.deployments

    def __len__(self) -> int:
        return len(self.deployments)
