"""Console and JSON output for the vault-apr commands."""

import json
from dataclasses import asdict
from datetime import datetime, timezone
from decimal import Decimal, localcontext
from pathlib import Path
from typing import Any, Dict

from rich.console import Console
from rich.table import Table

from vault_apr_toolkit.shared.constants import AprConstants
from vault_apr_toolkit.shared.results import Result
from vault_apr_toolkit.shared.types import StakingAprBreakdown, Vault

console = Console()


def format_address(address: str, length: int = 10) -> str:
    """``0x1234...5678`` for addresses longer than ``length``."""
    if not address:
        return "N/A"
    if len(address) <= length:
        return address
    return f"{address[:6]}...{address[-4:]}"


def format_timestamp(timestamp: int) -> str:
    """Unix seconds as a UTC date, or the raw number when out of range."""
    try:
        moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OverflowError, ValueError, OSError):
        return str(timestamp)
    return moment.strftime("%Y-%m-%d %H:%M UTC")


def format_apr(apr: Decimal, places: int = 2) -> str:
    """
    Format an APR fraction as a percentage.

    Infinity and NaN (zero vault price) are shown as-is.

    Example:
        >>> format_apr(Decimal("6311.3904"))
        '631,139.04%'
    """
    if not apr.is_finite():
        return str(apr)
    with localcontext() as ctx:
        ctx.prec = AprConstants.DECIMAL_PRECISION
        percent = (apr * 100).quantize(Decimal(1).scaleb(-places))
    return f"{percent:,}%"


def breakdown_to_dict(breakdown: StakingAprBreakdown) -> Dict[str, Any]:
    """Convert a breakdown to JSON-friendly values (Decimals as strings)."""
    return {
        key: str(value) if isinstance(value, Decimal) else value
        for key, value in asdict(breakdown).items()
    }


def result_to_dict(vault: Vault, result: Result) -> Dict[str, Any]:
    """Serialize one vault's APR result."""
    out: Dict[str, Any] = {
        "chain_id": vault.chain_id,
        "vault": vault.address,
        "valid": result.success,
        "apr": str(result.data.apr) if result.success else "0",
        "errors": [e.to_dict() for e in result.errors],
    }
    if result.success:
        out["breakdown"] = breakdown_to_dict(result.data)
    return out


def save_json_output(
    data: Dict[str, Any],
    filename: str,
    output_dir: str = "output",
    print_path: bool = True,
) -> str:
    """Write ``data`` to ``<output_dir>/<filename>`` and return the path."""
    path = Path(output_dir) / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2))

    if print_path:
        console.print(f"[cyan]Saved to:[/cyan] {path}")
    return str(path)


def generate_timestamped_filename(prefix: str, extension: str = "json") -> str:
    """``<prefix>_YYYYmmdd_HHMMSS.<extension>``"""
    return f"{prefix}_{datetime.now():%Y%m%d_%H%M%S}.{extension}"


def _plain_table() -> Table:
    return Table(
        show_header=True, header_style="bold cyan", pad_edge=False, box=None
    )


def create_breakdown_table(breakdown: StakingAprBreakdown) -> Table:
    """Two-column table with every step of one vault's APR."""
    table = _plain_table()
    table.add_column("Field", width=24)
    table.add_column("Value", justify="right")

    table.add_row("Vault", breakdown.vault)
    table.add_row("Staking pool", breakdown.pool)
    table.add_row("Rewards token", breakdown.rewards_token)
    table.add_row("Period finish", format_timestamp(breakdown.period_finish))
    table.add_row(
        "Reward rate",
        f"{breakdown.reward_rate} /s ({breakdown.rewards_token_decimals} dec)",
    )
    table.add_row(
        "Total staked",
        f"{breakdown.total_supply} ({breakdown.vault_token_decimals} dec)",
    )
    table.add_row("Rate per staked token", str(breakdown.per_staking_token_rate))
    table.add_row("Rewards token price", f"${breakdown.rewards_price}")
    table.add_row("Vault token price", f"${breakdown.vault_price}")
    table.add_row("[bold]APR[/bold]", f"[bold]{format_apr(breakdown.apr)}[/bold]")
    return table


def create_aprs_table() -> Table:
    """Table with one row per vault."""
    table = _plain_table()
    table.add_column("Vault", width=14)
    table.add_column("Pool", width=14)
    table.add_column("Rewards", width=14)
    table.add_column("APR", justify="right")
    table.add_column("Status", width=30)
    return table


def add_result_to_table(table: Table, vault: Vault, result: Result) -> None:
    """Add one vault's APR row to ``create_aprs_table``."""
    if result.success:
        breakdown = result.data
        status = "[green]ok[/green]"
        if result.has_warnings():
            status = "[yellow]degraded[/yellow]"
        table.add_row(
            format_address(vault.address),
            format_address(breakdown.pool),
            format_address(breakdown.rewards_token),
            format_apr(breakdown.apr),
            status,
        )
        return

    reason = "; ".join(result.get_error_messages())
    style = "dim" if result.is_not_applicable() else "red"
    table.add_row(
        format_address(vault.address),
        "-",
        "-",
        "-",
        f"[{style}]{reason[:30]}[/{style}]",
    )
