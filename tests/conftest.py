import pytest
from web3 import Web3

from config.chains import ChainRegistry
from core.codec.multicast_codec import decode_cast_request, decode_multicast_request

MULTICAST_ADDRESS = "0xC82ECc4572321aa9F051443C30a0a0fA792b3798"


class FakeFunction:
    def __init__(self, handler, args):
        self._handler = handler
        self._args = args

    async def call(self):
        return self._handler(*self._args)


class FakeFunctions:
    def __init__(self, handlers):
        self._handlers = handlers

    def __getattr__(self, name):
        if name not in self._handlers:
            raise AttributeError(name)
        handler = self._handlers[name]
        return lambda *args: FakeFunction(handler, args)


class FakeContract:
    def __init__(self, address, abi, handlers):
        self.address = address
        self.abi = abi
        self.functions = FakeFunctions(handlers)


class FakeEth:
    def __init__(self, chain_id, handlers):
        self._chain_id = chain_id
        self._handlers = handlers
        self.contracts = []

    async def _get_chain_id(self):
        if isinstance(self._chain_id, Exception):
            raise self._chain_id
        return self._chain_id

    @property
    def chain_id(self):
        return self._get_chain_id()

    def contract(self, address, abi):
        contract = FakeContract(address, abi, self._handlers)
        self.contracts.append(contract)
        return contract


class FakeWeb3:
    """Stands in for AsyncWeb3: contract calls go to plain python handlers"""

    def __init__(self, chain_id=56, **handlers):
        self.eth = FakeEth(chain_id, handlers)

    @staticmethod
    def to_checksum_address(address):
        return Web3.to_checksum_address(address)


def echo_multicast(data):
    """Every call succeeds and returns its own call data"""
    return [(True, call.call_data) for call in decode_multicast_request(data)]


def echo_cast(data):
    _, calls = decode_cast_request(data)
    return [(True, call) for call in calls]


@pytest.fixture
def registry():
    return ChainRegistry.from_mapping({
        "version": 1,
        "deployments": {"1": MULTICAST_ADDRESS, "56": MULTICAST_ADDRESS},
    })


@pytest.fixture
def echo_web3():
    return FakeWeb3(56, multicast=echo_multicast, cast=echo_cast)
