#!/usr/bin/env python3
"""
Unified CLI for the Vault APR Toolkit.

Examples:
  - One vault
    vault-apr staking-apr --chain-id 10 --vault 0x... --registry staking.json

  - Every vault of a chain listed in the registry
    vault-apr staking-aprs --chain-id 10 --registry https://.../staking.json

The registry falls back to VAULT_APR_STAKING_REGISTRY_URL when --registry
is omitted. RPC URLs come from <CHAIN>_MAINNET_RPC_URL variables.
"""

import argparse
import asyncio
import json
import time
from typing import Callable, List, Optional

from vault_apr_toolkit.apr.staking import (
    DEFAULT_PARALLEL_REQUESTS,
    StakingAprService,
)
from vault_apr_toolkit.commands.validation import (
    validate_chain_id,
    validate_decimals,
    validate_eth_address,
)
from vault_apr_toolkit.contracts.reader import ContractReader
from vault_apr_toolkit.shared.constants import AprConstants
from vault_apr_toolkit.shared.exceptions import ChainReadError
from vault_apr_toolkit.shared.logging import get_logger, set_log_level
from vault_apr_toolkit.shared.results import AprBatchSummary
from vault_apr_toolkit.shared.services.http_client import close_client
from vault_apr_toolkit.shared.types import Vault
from vault_apr_toolkit.stores.metadata import InMemoryMetadataStore
from vault_apr_toolkit.stores.prices import DefiLlamaPriceStore
from vault_apr_toolkit.stores.registry import load_staking_registry
from vault_apr_toolkit.utils.formatters import (
    add_result_to_table,
    console,
    create_aprs_table,
    create_breakdown_table,
    generate_timestamped_filename,
    result_to_dict,
    save_json_output,
)

logger = get_logger(__name__)


def _clock(now: Optional[int]) -> Callable[[], float]:
    if now is None:
        return time.time
    return lambda: now


def seed_vault_decimals(
    reader: ContractReader,
    metadata: InMemoryMetadataStore,
    chain_id: int,
    vault_addresses: List[str],
) -> None:
    """
    Read vault-token decimals into the metadata store.

    One multicall for all vaults; if it fails, each vault is read on its
    own. Vaults whose decimals cannot be read stay unknown and their APR
    comes back invalid.
    """
    calls = [(address, AprConstants.DECIMALS) for address in vault_addresses]
    try:
        decoded = reader.batch_read(chain_id, calls)
    except ChainReadError as e:
        logger.warning(f"Batched decimals read failed, reading one by one: {e}")
        decoded = {}
        for call in calls:
            try:
                decoded[call] = reader.read_decimals(chain_id, call[0])
            except ChainReadError as read_error:
                logger.warning(read_error.message)

    for (address, _), decimals in decoded.items():
        metadata.set_token_decimals(chain_id, address, int(decimals))


def _build_service(
    args: argparse.Namespace,
) -> tuple:
    registry = load_staking_registry(args.registry)
    reader = ContractReader()
    metadata = InMemoryMetadataStore()
    prices = DefiLlamaPriceStore()
    service = StakingAprService(
        registry=registry,
        chain_reader=reader,
        metadata_store=metadata,
        price_store=prices,
        clock=_clock(args.now),
    )
    return service, registry, reader, metadata, prices


def cmd_staking_apr(args: argparse.Namespace) -> None:
    chain_id = args.chain_id
    validate_chain_id(chain_id)
    vault_address = validate_eth_address(args.vault, "vault")

    service, _, reader, metadata, _ = _build_service(args)

    if args.vault_decimals is not None:
        metadata.set_token_decimals(
            chain_id, vault_address, validate_decimals(args.vault_decimals)
        )
    else:
        seed_vault_decimals(reader, metadata, chain_id, [vault_address])

    decimals = metadata.get_token_decimals(chain_id, vault_address)
    vault = Vault(
        chain_id=chain_id, address=vault_address, token_decimals=decimals
    )
    result = service.get_staking_apr(vault)
    out = result_to_dict(vault, result)

    if args.json:
        console.print_json(json.dumps(out))
    elif result.success:
        console.print(create_breakdown_table(result.data))
        for error in result.errors:
            console.print(f"[yellow]Warning:[/yellow] {error.message}")
    else:
        reasons = "; ".join(result.get_error_messages())
        console.print(f"APR 0 [dim](invalid: {reasons})[/dim]")

    if args.output:
        save_json_output(out, args.output)


def cmd_staking_aprs(args: argparse.Namespace) -> None:
    chain_id = args.chain_id
    validate_chain_id(chain_id)

    service, registry, reader, metadata, prices = _build_service(args)

    pools = list(registry.pools(chain_id))
    if not pools:
        console.print(f"No staking pools registered on chain {chain_id}")
        return

    vault_addresses = [pool.vault_address for pool in pools]
    seed_vault_decimals(reader, metadata, chain_id, vault_addresses)
    prices.prefetch(chain_id, vault_addresses)

    vaults = [
        Vault(
            chain_id=chain_id,
            address=address,
            token_decimals=metadata.get_token_decimals(chain_id, address),
        )
        for address in vault_addresses
    ]
    results = asyncio.run(
        service.compute_many(vaults, max_concurrency=args.parallel)
    )

    summary = AprBatchSummary()
    table = create_aprs_table()
    for vault, result in results:
        summary.record(vault.address, vault.chain_id, result)
        add_result_to_table(table, vault, result)

    out = {
        "summary": summary.to_dict(),
        "vaults": [result_to_dict(vault, result) for vault, result in results],
    }

    if args.json:
        console.print_json(json.dumps(out))
    else:
        console.print(table)
        console.print(
            f"\n{summary.vaults_computed} computed, "
            f"{summary.vaults_not_applicable} without live rewards, "
            f"{summary.vaults_invalid} invalid, {summary.vaults_failed} failed"
        )

    if args.output:
        save_json_output(out, args.output)
    elif summary.vaults_failed:
        save_json_output(
            out, generate_timestamped_filename(f"staking_aprs_{chain_id}")
        )

    if summary.has_critical_errors():
        raise SystemExit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vault-apr",
        description="Unified CLI for the Vault APR Toolkit",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        help="Override VAULT_APR_LOG_LEVEL (DEBUG, INFO, WARNING, ...)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # staking-apr
    p_one = sub.add_parser("staking-apr", help="Staking rewards APR of a vault")
    p_one.add_argument("--chain-id", type=int, required=True)
    p_one.add_argument("--vault", type=str, required=True)
    p_one.add_argument("--registry", type=str, help="Registry file or URL")
    p_one.add_argument(
        "--vault-decimals",
        type=int,
        help="Vault token decimals (read on chain when omitted)",
    )
    p_one.add_argument("--now", type=int, help="Override current Unix time")
    p_one.add_argument("--json", action="store_true", help="Output JSON")
    p_one.add_argument("--output", type=str, help="Output filename")
    p_one.set_defaults(func=cmd_staking_apr)

    # staking-aprs
    p_all = sub.add_parser(
        "staking-aprs",
        help="Staking rewards APR of every registered vault on a chain",
    )
    p_all.add_argument("--chain-id", type=int, required=True)
    p_all.add_argument("--registry", type=str, help="Registry file or URL")
    p_all.add_argument(
        "--parallel",
        type=int,
        default=DEFAULT_PARALLEL_REQUESTS,
        help="Vaults computed concurrently",
    )
    p_all.add_argument("--now", type=int, help="Override current Unix time")
    p_all.add_argument("--json", action="store_true", help="Output JSON")
    p_all.add_argument("--output", type=str, help="Output filename")
    p_all.set_defaults(func=cmd_staking_aprs)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.log_level:
        set_log_level(args.log_level)
    try:
        args.func(args)
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        raise
    finally:
        close_client()


if __name__ == "__main__":
    main()
