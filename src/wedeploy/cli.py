"""
Command-line interface for wedeploy.

Provides commands for submitting transfers, tracking transactions and
reading contract state.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

import structlog

from wedeploy import __version__
from wedeploy.config import AppSettings, NetworkConfig, load_network_config
from wedeploy.core.deployer import Deployer
from wedeploy.core.errors import DeployError
from wedeploy.core.results import TrackingMode
from wedeploy.engine.reader import ContractStateReader
from wedeploy.engine.tracker import ConfirmationTracker
from wedeploy.node.rest import RestNodeAdapter
from wedeploy.tx.builder import TransferParams
from wedeploy.tx.signer import LocalSigner, TransactionSigner

logger = structlog.get_logger(__name__)


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )


def _add_environment_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--environments-file",
        help="JSON file with per-environment network settings",
    )
    parser.add_argument(
        "--environment",
        help="Environment to load (e.g. mainnet, testnet)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs in JSON format",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="wedeploy",
        description="Submit and track transactions on a permissioned network",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Wait command
    wait_parser = subparsers.add_parser("wait", help="Wait for a transaction to be included")
    wait_parser.add_argument("tx_id", help="Transaction identifier")
    wait_parser.add_argument(
        "--executed",
        action="store_true",
        help="Also wait for the contract execution result",
    )
    _add_environment_arguments(wait_parser)

    # Transfer command
    transfer_parser = subparsers.add_parser("transfer", help="Transfer tokens")
    transfer_parser.add_argument("--recipient", required=True, help="Recipient address")
    transfer_parser.add_argument("--amount", type=int, required=True, help="Amount in minimal units")
    transfer_parser.add_argument("--asset-id", help="Asset to transfer (native token if omitted)")
    transfer_parser.add_argument("--attachment", default="", help="Transfer attachment")
    transfer_parser.add_argument("--fee", type=int, help="Fee (network default if omitted)")
    _add_environment_arguments(transfer_parser)

    # Contract value command
    value_parser = subparsers.add_parser("contract-value", help="Read a contract key")
    value_parser.add_argument("address", help="Contract identifier")
    value_parser.add_argument("key", help="State key")
    _add_environment_arguments(value_parser)

    # Contract info command
    info_parser = subparsers.add_parser("contract-info", help="Show contract metadata")
    info_parser.add_argument("address", help="Contract identifier")
    _add_environment_arguments(info_parser)

    return parser


def resolve_network(args: argparse.Namespace, settings: AppSettings) -> NetworkConfig:
    """Load the network from an environments file, or from environment variables."""
    environments_file = args.environments_file or settings.environments_file
    environment = args.environment or settings.environment

    if environments_file:
        if not environment:
            raise ValueError("--environment is required with an environments file")
        return load_network_config(environments_file, environment)

    return NetworkConfig()


def _print_json(data: Optional[dict]) -> None:
    print(json.dumps(data, indent=2, default=str))


async def wait_for_transaction(args: argparse.Namespace, network: NetworkConfig, settings: AppSettings) -> None:
    """Track an already broadcast transaction."""
    node = RestNodeAdapter(network)
    async with node:
        tracker = ConfirmationTracker(
            node,
            network,
            backoff_seconds=settings.poll_backoff_seconds,
            max_attempts=settings.max_poll_attempts,
        )
        mode = TrackingMode.EXECUTION if args.executed else TrackingMode.INCLUSION
        tracked = await tracker.track(args.tx_id, mode)
        _print_json(tracked.to_dict())


async def transfer(args: argparse.Namespace, network: NetworkConfig, settings: AppSettings) -> None:
    """Sign and submit a transfer with the configured private key."""
    if not settings.private_key:
        raise ValueError("WEDEPLOY_PRIVATE_KEY is not set")

    signer = TransactionSigner(LocalSigner.from_base58_seed(settings.private_key))
    params = TransferParams(
        recipient=args.recipient,
        amount=args.amount,
        asset_id=args.asset_id,
        attachment=args.attachment,
        fee=args.fee,
    )

    async with Deployer(
        network,
        signer,
        backoff_seconds=settings.poll_backoff_seconds,
        max_attempts=settings.max_poll_attempts,
    ) as deployer:
        result = await deployer.transfer(params)
        _print_json(result.to_dict())


async def read_contract_value(args: argparse.Namespace, network: NetworkConfig, settings: AppSettings) -> None:
    node = RestNodeAdapter(network)
    async with node:
        entry = await ContractStateReader(node).get_entry(args.address, args.key)
        _print_json(entry.to_dict() if entry else None)


async def read_contract_info(args: argparse.Namespace, network: NetworkConfig, settings: AppSettings) -> None:
    node = RestNodeAdapter(network)
    async with node:
        _print_json(await ContractStateReader(node).get_info(args.address))


COMMANDS = {
    "wait": wait_for_transaction,
    "transfer": transfer,
    "contract-value": read_contract_value,
    "contract-info": read_contract_info,
}


def main() -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    settings = AppSettings()

    # Setup logging
    setup_logging(args.log_level or settings.log_level, args.log_json or settings.log_json)

    try:
        network = resolve_network(args, settings)
        asyncio.run(COMMANDS[args.command](args, network, settings))
    except (DeployError, ValueError, FileNotFoundError) as e:
        logger.error("command_failed", command=args.command, error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
