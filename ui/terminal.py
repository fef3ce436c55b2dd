"""
Rich tables for multicast results
"""
from datetime import datetime, timezone
from typing import Optional

from rich.table import Table
from rich.text import Text

from config.chains import ChainConfig
from core.codec.multicast_codec import BlockchainState, balance_to_int


def format_units(value: int, decimals: int) -> str:
    """Integer amount in smallest units -> decimal string"""
    whole, frac = divmod(value, 10 ** decimals)
    if not frac:
        return f"{whole:,}"
    return f"{whole:,}.{str(frac).rjust(decimals, '0').rstrip('0')}"


def balances_table(balances: dict[str, str], chain: Optional[ChainConfig] = None) -> Table:
    """Address -> native balance"""
    symbol = chain.native_token if chain else ""
    decimals = chain.native_decimals if chain else 18
    table = Table(
        title=f"{chain.name} balances" if chain else "Balances",
        show_header=True,
        header_style="bold magenta",
        border_style="dim"
    )
    table.add_column("Address", style="cyan")
    table.add_column("Raw", style="dim")
    table.add_column(f"Balance {symbol}".strip(), justify="right", style="green")

    if not balances:
        table.add_row(Text("No addresses", style="dim italic"), "", "")
    for address, raw in balances.items():
        table.add_row(address, raw, format_units(balance_to_int(raw), decimals))
    return table


def state_table(state: BlockchainState, chain: Optional[ChainConfig] = None) -> Table:
    """Single-row view of the aggregator's state()"""
    table = Table(
        title=f"{chain.name} state" if chain else "State",
        show_header=False,
        border_style="dim"
    )
    table.add_column("Field", style="bold")
    table.add_column("Value", style="white")

    ts = datetime.fromtimestamp(state.timestamp, tz=timezone.utc)
    table.add_row("Block", f"{state.block_number:,}")
    table.add_row("Previous hash", f"0x{bytes(state.previous_block_hash).hex()}")
    table.add_row("Difficulty", f"{state.difficulty:,}")
    table.add_row("Gas limit", f"{state.gaslimit:,}")
    table.add_row("Timestamp", f"{state.timestamp} ({ts:%Y-%m-%d %H:%M:%S} UTC)")
    return table
