"""
Global settings for the multicast client
Values can be overridden from the environment or a .env file
"""
import os
from pathlib import Path
from typing import Final

from dotenv import load_dotenv

load_dotenv()

# Logging level
LOG_LEVEL: Final[str] = os.getenv("LOG_LEVEL", "INFO").upper()

# Request timeout in seconds
REQUEST_TIMEOUT: Final[float] = float(os.getenv("REQUEST_TIMEOUT", "15.0"))

# Token bucket per chain for RPC calls
RPC_RATE_LIMIT_PER_SECOND: Final[float] = float(os.getenv("RPC_RATE_LIMIT_PER_SECOND", "25.0"))
RPC_RATE_LIMIT_BURST: Final[int] = int(os.getenv("RPC_RATE_LIMIT_BURST", "5"))

# Versioned network id -> multicast address table
DEPLOYMENTS_FILE: Final[Path] = Path(
    os.getenv("MULTICAST_DEPLOYMENTS_FILE", Path(__file__).with_name("deployments.json"))
)
