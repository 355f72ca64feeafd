"""Vaultwatch CLI entry point."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import httpx
from dotenv import load_dotenv
from pydantic import ValidationError

env_file = Path(__file__).parent.parent / ".env"
load_dotenv(env_file)

from vaultwatch import __version__
from vaultwatch.aggregator import aggregate_depositors
from vaultwatch.config import get_settings
from vaultwatch.poller import (
    ApiVaultSource,
    HyperliquidVaultSource,
    VaultDataPoller,
    VaultSnapshot,
)
from vaultwatch.services.hyperliquid import (
    HyperliquidAPIError,
    create_hyperliquid_client,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("apscheduler").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def _init_logfire() -> None:
    """Initialize Logfire if available, without failing commands."""
    try:
        from vaultwatch.observability import initialize_logfire

        initialize_logfire(get_settings())
    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")


def _print_snapshots(snapshots: tuple[VaultSnapshot, ...]) -> None:
    print(f"\n=== {len(snapshots)} vaults ===")
    for s in snapshots:
        print(
            f"  {s.name:<24} follower ${s.follower_equity_usd:>14,.2f}  "
            f"ROI {s.roi_percent:>8.2f}%  "
            f"leader ${s.leader_equity_usd:>14,.2f}  "
            f"all-time {s.leader_all_time_roi_percent:>8.2f}%"
        )
    print()


def cmd_config(args: argparse.Namespace) -> int:
    """Display merged configuration."""
    try:
        settings = get_settings()

        print("\n=== Vaultwatch Configuration ===\n")
        print(f"Data Directory: {settings.data_dir}\n")

        print("Hyperliquid:")
        print(f"  Base URL: {settings.hyperliquid.base_url}")
        print(f"  Timeout: {settings.hyperliquid.timeout_seconds}s\n")

        print("Poller:")
        print(f"  Refresh Interval: {settings.poller.refresh_interval_ms} ms\n")

        print("Server:")
        print(f"  Bind: {settings.server.host}:{settings.server.port}")
        print(f"  CORS Origins: {', '.join(settings.server.origins)}\n")

        print(f"Vaults ({len(settings.vaults)}):")
        for vault in settings.vaults:
            flags = []
            if vault.coming_soon:
                flags.append("coming soon")
            if vault.inverse:
                flags.append("inverse")
            suffix = f" [{', '.join(flags)}]" if flags else ""
            print(f"  • {vault.name} {vault.vault_address}{suffix}")
        print()

        print(f"Logfire: {'✓ Set' if settings.logfire_token else '✗ Not set'}\n")
        return 0

    except ValidationError as e:
        print("\n❌ Configuration Error:\n")
        for error in e.errors():
            print(f"  • {'.'.join(str(x) for x in error['loc'])}: {error['msg']}")
        print()
        return 1
    except Exception as e:
        logger.error(f"Failed to load config: {e}")
        print(f"\n❌ Failed to load configuration: {e}\n")
        return 1


def cmd_depositors(args: argparse.Namespace) -> int:
    """Print the depositor table of one vault as JSON."""
    settings = get_settings()

    async def run() -> dict:
        async with create_hyperliquid_client(settings.hyperliquid) as client:
            result = await aggregate_depositors(client, args.vault)
            return result.to_response()

    try:
        print(json.dumps(asyncio.run(run()), indent=2))
        return 0
    except HyperliquidAPIError as e:
        logger.error(f"Depositor lookup failed: {e}")
        print(f"\n❌ {e}\n")
        return 1


def cmd_poll(args: argparse.Namespace) -> int:
    """Run the vault poller in the foreground."""
    _init_logfire()
    settings = get_settings()
    interval_ms = args.interval_ms or settings.poller.refresh_interval_ms

    async def run_direct() -> None:
        async with create_hyperliquid_client(settings.hyperliquid) as client:
            await _poll(HyperliquidVaultSource(client))

    async def run_via_api() -> None:
        async with httpx.AsyncClient(
            base_url=args.api_url,
            timeout=settings.hyperliquid.timeout_seconds,
        ) as http:
            await _poll(ApiVaultSource(http))

    async def _poll(source) -> None:
        poller = VaultDataPoller(
            settings.vaults,
            source,
            refresh_interval_ms=interval_ms,
            on_publish=_print_snapshots,
        )
        if args.once:
            await poller.refresh()
            if poller.error:
                raise RuntimeError(poller.error)
            return

        async with poller:
            await asyncio.Event().wait()

    try:
        asyncio.run(run_via_api() if args.api_url else run_direct())
        return 0
    except KeyboardInterrupt:
        logger.info("Received interrupt signal")
        return 0
    except Exception as e:
        logger.error(f"Poller failed: {e}", exc_info=True)
        print(f"\n❌ Poller failed: {e}\n")
        return 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP API server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "vaultwatch.api.server:create_app",
        factory=True,
        host=args.host or settings.server.host,
        port=args.port or settings.server.port,
        log_level="info",
    )
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="vaultwatch",
        description="Vaultwatch: follower and leader ROI for Hyperliquid copy-trading vaults",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Vaultwatch {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parser_config = subparsers.add_parser(
        "config",
        help="Display merged configuration",
    )
    parser_config.set_defaults(func=cmd_config)

    parser_depositors = subparsers.add_parser(
        "depositors",
        help="Print one vault's depositor table as JSON",
    )
    parser_depositors.add_argument("vault", help="Vault address (0x...)")
    parser_depositors.set_defaults(func=cmd_depositors)

    parser_poll = subparsers.add_parser(
        "poll",
        help="Run the vault poller in the foreground",
    )
    parser_poll.add_argument(
        "--once",
        action="store_true",
        help="Run a single refresh cycle then exit",
    )
    parser_poll.add_argument(
        "--interval-ms",
        type=int,
        default=None,
        help="Override the configured refresh interval",
    )
    parser_poll.add_argument(
        "--api-url",
        default=None,
        help="Read through a running vaultwatch server instead of Hyperliquid directly",
    )
    parser_poll.set_defaults(func=cmd_poll)

    parser_serve = subparsers.add_parser(
        "serve",
        help="Run the HTTP API server",
    )
    parser_serve.add_argument("--host", default=None, help="Bind host")
    parser_serve.add_argument("--port", type=int, default=None, help="Bind port")
    parser_serve.set_defaults(func=cmd_serve)

    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
