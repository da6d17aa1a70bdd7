import sys
import asyncio
import logging
import argparse
from typing import Optional

from core.log import setup_logging
from weth_scanner.adapters.node_pool import Web3NodePool
from weth_scanner.adapters.web3_logs import Web3TransferLogs
from weth_scanner.config import AppConfig, ScanConfig, build_scan_config, load_env
from weth_scanner.errors import ConfigurationError, OutputWriteError
from weth_scanner.repositories.output_json import JsonFileSink
from weth_scanner.services.scanner import ScanResult, TransferScannerService

log = logging.getLogger("main")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="weth-scan",
        description="Collect WETH Transfer events of at least THRESHOLD ether between two blocks.",
        epilog="example: weth-scan 14000000 15000000 11000",
    )
    p.add_argument("start_block", type=int, help="first block to scan (inclusive)")
    p.add_argument("end_block", type=int, help="last block to scan (exclusive)")
    p.add_argument("threshold", help="minimum transfer amount in ether, e.g. 11000 or 0.5")
    p.add_argument("--output", default=None, help="JSON file to write (default: $OUTPUT or events.json)")
    p.add_argument("--pagination-size", type=int, default=None, help="blocks per eth_getLogs call")
    p.add_argument("--workers", type=int, default=None, help="number of concurrent workers")
    p.add_argument("--debug", action="store_true")
    p.add_argument("--log-file", default=None)
    return p.parse_args(argv)


def build_configs(args: argparse.Namespace) -> tuple[AppConfig, ScanConfig]:
    app = load_env()
    overrides = {}
    if args.pagination_size is not None:
        overrides["pagination_size"] = args.pagination_size
    if args.workers is not None:
        overrides["worker_count"] = args.workers
    if overrides:
        app = app.model_copy(update=overrides)

    if args.end_block <= args.start_block:
        raise ConfigurationError("End block must come after start block!")
    scan_cfg = build_scan_config(args.start_block, args.end_block, args.threshold, app)
    app.rpc_urls()  # fail on missing credentials before any query
    return app, scan_cfg


async def run(app: AppConfig, scan_cfg: ScanConfig, output: str) -> ScanResult:
    node_pool = Web3NodePool(app.rpc_urls(), request_timeout=app.call_timeout)
    query = Web3TransferLogs(node_pool, app.token_address, call_timeout=app.call_timeout)
    try:
        result = await TransferScannerService(query, scan_cfg).scan()
    finally:
        await node_pool.aclose()

    log.info("%d records obtained, writing to %s", len(result.records), output)
    saved = JsonFileSink(output).write(result.records)
    log.info("Saved: %s", saved)
    return result


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(debug=args.debug, to_file=args.log_file)

    try:
        app, scan_cfg = build_configs(args)
    except ConfigurationError as e:
        log.error("%s", e)
        return 1

    log.info("Querying blocks from %d to %d, filtering for transfers of at least %s eth",
             scan_cfg.start_block, scan_cfg.end_block, args.threshold)
    try:
        asyncio.run(run(app, scan_cfg, args.output or app.output_path))
    except OutputWriteError as e:
        log.error("Scan finished but the result was not saved: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
