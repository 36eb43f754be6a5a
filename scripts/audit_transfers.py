#!/usr/bin/env python3
"""Audit stored transfer records for anomalies.

Finds users stuck on unlimited transfers after saving a squad, penalties
left over from closed gameweeks, chip flags out of sync with the chip
board, and chips still active after their gameweek.

Usage:
    .venv/bin/python scripts/audit_transfers.py [--db PATH] [--fix]
    .venv/bin/python scripts/audit_transfers.py --reset-gameweek 4
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections import Counter
from pathlib import Path

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from fantasy_core.logging_config import setup_logging
from fantasy_core.season.audit import find_anomalies, repair_all, reset_all_transfer_states
from fantasy_core.season.manager import TransferManager

log = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--db", type=Path, default=None, help="SQLite database (default: output/fantasy.db)")
    parser.add_argument("--fix", action="store_true", help="Run every record through the request pipeline")
    parser.add_argument(
        "--reset-gameweek", type=int, default=None, metavar="GW",
        help="Reset every user to 2 free transfers anchored to GW",
    )
    parser.add_argument("--json", action="store_true", help="Print anomalies as JSON")
    args = parser.parse_args(argv)

    setup_logging()
    manager = TransferManager(db_path=args.db)

    if args.reset_gameweek is not None:
        if args.reset_gameweek < 1:
            parser.error("--reset-gameweek must be >= 1")
        count = reset_all_transfer_states(manager, args.reset_gameweek)
        log.info("Reset %d user(s) to GW%d", count, args.reset_gameweek)
        return 0

    anomalies = find_anomalies(manager)
    if args.json:
        print(json.dumps([a.to_dict() for a in anomalies], indent=2))
    else:
        for a in anomalies:
            print(f"{a.user_id:<24} {a.kind:<24} {a.detail}")
        by_kind = Counter(a.kind for a in anomalies)
        print(f"\n{len(anomalies)} anomalies across {len({a.user_id for a in anomalies})} user(s)")
        for kind, n in sorted(by_kind.items()):
            print(f"  {kind}: {n}")

    if args.fix and anomalies:
        repair_all(manager)
        remaining = find_anomalies(manager)
        log.info("%d anomalies remain after repair", len(remaining))
        return 1 if remaining else 0

    return 1 if anomalies else 0


if __name__ == "__main__":
    sys.exit(main())
