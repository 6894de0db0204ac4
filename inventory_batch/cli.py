"""
Command-line entry point for the compute cost worker.

Usage:
    inventory-compute-worker                       # poll forever
    inventory-compute-worker --once                # run due jobs and exit
    inventory-compute-worker --config inventory.yaml --create-tables
"""

from __future__ import annotations

import argparse
import logging
import signal
import threading

from inventory_batch.services.worker import ComputeCostWorker
from inventory_config import load_config
from inventory_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
)
from inventory_kernel.logging_config import configure_logging, get_logger

logger = get_logger("batch.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run due compute-item-cost jobs.",
    )
    parser.add_argument(
        "--config",
        help="YAML configuration file (default: $INVENTORY_CONFIG or built-in defaults)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run one tick and exit",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before starting",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)

    configure_logging(level=logging.getLevelName(config.log_level.upper()))
    init_engine_from_url(config.database_url)
    if args.create_tables:
        create_tables()

    worker = ComputeCostWorker.from_config(get_session_factory(), config)

    if args.once:
        completed = worker.tick()
        logger.info("worker_single_tick_done", extra={"completed": completed})
        return 0

    stopped = threading.Event()

    def _handle_signal(signum, frame):
        logger.info("worker_signal_received", extra={"signal": signum})
        stopped.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    worker.start()
    stopped.wait()
    worker.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
