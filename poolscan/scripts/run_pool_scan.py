"""
Pool scan job.

Discovers pools of every configured protocol on a chain, fetches their state
through Multicall3, keeps the pools that pass the whitelist and liquidity
checks and writes them to a JSON file.

Exit codes: 0 on success, 1 if any protocol failed discovery (the file is
still written with the other protocols' pools), 2 on configuration errors.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from poolscan.config import ConfigError, get_config
from poolscan.core.storage import DataError
from poolscan.whitelist.orchestrator import PoolScanOrchestrator

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PROTOCOL_FAILED = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Discover DEX pools and keep the tradeable ones",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scan every configured protocol on Base
  python -m poolscan.scripts.run_pool_scan --chain base

  # Only Aerodrome, written to a custom file
  python -m poolscan.scripts.run_pool_scan --chain base --protocol Aerodrome_V2 --protocol Aerodrome_CL --output pools.json

  # Smaller chunks and slower pacing for a public endpoint
  python -m poolscan.scripts.run_pool_scan --chain base --batch-size 50 --pacing 1.0
        """,
    )
    parser.add_argument("--chain", required=True, help="Chain to scan (e.g. base, ethereum)")
    parser.add_argument(
        "--protocol",
        action="append",
        dest="protocols",
        help="Protocol name to scan, repeatable (default: all configured)",
    )
    parser.add_argument("--output", help="Output file (default: OUTPUT_DIR/OUTPUT_FILENAME)")
    parser.add_argument("--batch-size", type=int, help="Pools per detail chunk")
    parser.add_argument("--pacing", type=float, help="Seconds to wait after each detail chunk")
    return parser


async def run(args: argparse.Namespace) -> int:
    """Run the scan described by parsed arguments and return the exit code."""
    logger.info("=" * 80)
    logger.info(f"Starting pool scan on {args.chain}")
    logger.info("=" * 80)

    if args.batch_size is not None and args.batch_size <= 0:
        logger.error("--batch-size must be positive")
        return EXIT_CONFIG_ERROR
    if args.pacing is not None and args.pacing < 0:
        logger.error("--pacing cannot be negative")
        return EXIT_CONFIG_ERROR

    try:
        config = get_config()
        orchestrator = PoolScanOrchestrator(
            config,
            args.chain,
            protocols=args.protocols,
            batch_size=args.batch_size,
            pacing_seconds=args.pacing,
        )
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    report = await orchestrator.run_scan()

    try:
        orchestrator.save_results(report, args.output)
    except DataError as e:
        logger.error(f"Failed to write results: {e}")
        report.log_summary()
        return EXIT_PROTOCOL_FAILED

    report.log_summary()
    return EXIT_OK if report.success else EXIT_PROTOCOL_FAILED


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Scan interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
