"""Cron entry point for removing temporaries orphaned by crashed uploads."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from datetime import timedelta

from src.pix.config import AppConfig, load_config
from src.pix.lifecycle import reap_orphaned_temporaries
from src.pix.repositories.image_store_repository import TemporaryRegistry


@dataclass(slots=True)
class CleanupSummary:
    temp_removed: int
    dry_run: bool


def perform_cleanup(*, dry_run: bool, config: AppConfig | None = None) -> CleanupSummary:
    """Execute cleanup logic and return summary counters."""
    cfg = config or load_config()
    registry = TemporaryRegistry(cfg.session_factory)
    paths = reap_orphaned_temporaries(
        registry,
        max_age=timedelta(seconds=cfg.temp_ttl_seconds),
        dry_run=dry_run,
    )
    return CleanupSummary(temp_removed=len(paths), dry_run=dry_run)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Remove temporaries left by interrupted uploads.")
    parser.add_argument("--dry-run", action="store_true", help="Only report counts without deleting files.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None, *, config: AppConfig | None = None) -> int:
    args = parse_args(argv or [])
    try:
        summary = perform_cleanup(dry_run=args.dry_run, config=config)
    except Exception as exc:
        print(f"cleanup failed: {exc}", file=sys.stderr)
        return 2

    if summary.dry_run:
        print(f"cleanup dry-run, temp_tracked={summary.temp_removed}", file=sys.stdout)
    else:
        print(f"cleanup done, temp_removed={summary.temp_removed}", file=sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
