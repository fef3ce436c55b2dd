"""
Error types for the multicast client
Each error carries the stage that failed: encode, decode, config or transport
"""


class MulticastError(Exception):
    """Base class for all multicast client errors"""
    stage = "unknown"


class InvalidInput(MulticastError, ValueError):
    """Malformed hex or bad value handed to an encoder"""
    stage = "encode"


class OutOfRange(InvalidInput):
    """Numeric value does not fit its declared bit width"""


class UnsupportedNetwork(MulticastError, LookupError):
    """Network id has no deployed multicast contract"""
    stage = "config"

    def __init__(self, chain_id: int):
        super().__init__(f"Multicast is not deployed on network {chain_id}")
        self.chain_id = chain_id


class MalformedResponse(MulticastError, ValueError):
    """Response (or encoded request) does not match the expected layout"""
    stage = "decode"


class TransportFailure(MulticastError):
    """RPC / network error raised by the chain collaborator"""
    stage = "transport"
