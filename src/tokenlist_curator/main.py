"""Entrypoint for regenerating per-chain token lists."""

from __future__ import annotations

import argparse
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional, Sequence

from .config.settings import AppConfig, get_app_config
from .curation.engine import TokenListUpdater
from .datalake.schemas import UpdateReport
from .errors import CuratorError
from .monitoring import bootstrap_observability
from .monitoring.logger import get_logger
from .monitoring.metrics import METRICS

logger = get_logger(__name__)


@contextmanager
def performance_monitor(operation_name: str):
    """Record how long an operation took as a gauge."""
    start_time = time.perf_counter()
    try:
        yield
    finally:
        METRICS.gauge(f"curator.{operation_name}.duration_seconds", time.perf_counter() - start_time)


def update_token_list(chain_id: str, *, config: Optional[AppConfig] = None, dry_run: bool = False) -> UpdateReport:
    """Update one chain's token list using the configured collaborators."""

    return TokenListUpdater(config, dry_run=dry_run).update_token_list(chain_id)


def run(chain_ids: Sequence[str], *, config: Optional[AppConfig] = None, dry_run: bool = False) -> List[UpdateReport]:
    """Update each chain in turn; a failing chain does not stop the others."""

    app_config = config or get_app_config()
    updater = TokenListUpdater(app_config, dry_run=dry_run)
    reports: List[UpdateReport] = []
    failures: List[str] = []
    for chain_id in chain_ids:
        try:
            with performance_monitor(f"update.{chain_id}"):
                reports.append(updater.update_token_list(chain_id))
        except CuratorError as exc:
            failures.append(chain_id)
            METRICS.increment("chains.failed")
            logger.error("Update of %s failed: %s", chain_id, exc, extra={"chain": chain_id})
    if failures:
        raise SystemExit(1)
    return reports


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Merge high-liquidity DEX pairs into per-chain token lists")
    parser.add_argument("chains", nargs="*", help="Chain ids to update, e.g. ethereum smartchain")
    parser.add_argument("--all", action="store_true", help="Update every enabled chain.")
    parser.add_argument(
        "--repo-root",
        type=Path,
        default=None,
        help="Asset repository checkout to read from and write to (default: repository.root).",
    )
    parser.add_argument("--dry-run", action="store_true", default=False, help="Compute lists without writing them.")
    parser.add_argument("--metrics", action="store_true", help="Print run metrics in Prometheus text format.")
    args = parser.parse_args(argv)

    config = get_app_config()
    if args.repo_root is not None:
        config = config.model_copy(
            update={"repository": config.repository.model_copy(update={"root": args.repo_root})}
        )
    bootstrap_observability(config)

    chain_ids = list(args.chains)
    if args.all or not chain_ids:
        chain_ids = config.enabled_chains()
    try:
        run(chain_ids, config=config, dry_run=args.dry_run)
    finally:
        if args.metrics:
            sys.stdout.write(METRICS.export_prometheus())


if __name__ == "__main__":
    main()
