#!/usr/bin/env python3
"""
Dump the boards a user would see as JSON.

Usage:
    python tools/leaderboard_snapshot.py --user <id> [--scope clan] [--week-offset 1] [--out boards.json]
"""
import os
import sys
import json
import argparse
from datetime import datetime

from dotenv import load_dotenv, find_dotenv

# Add function app root to path
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(ROOT_DIR)

from Leaderboard import Scope, compute_leaderboards, load_leaderboard_config  # noqa: E402
from Leaderboard.config import WINDOW_SHAPES  # noqa: E402
from utils.http import json_serial  # noqa: E402
from utils.log_utils import configure_cli_logging  # noqa: E402
from utils.record_store import MongoRecordStore  # noqa: E402


def parse_args(argv=None):
    p = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    p.add_argument("--user", required=True, help="Requesting user id")
    p.add_argument("--scope", default=Scope.FRIENDS.value, choices=[s.value for s in Scope])
    p.add_argument("--week-offset", type=int, default=0)
    p.add_argument("--window", choices=WINDOW_SHAPES, default=None)
    p.add_argument("--now", default=None, help="ISO timestamp to pin 'now' (UTC)")
    p.add_argument("--out", default=None, help="Write JSON here instead of stdout")
    args = p.parse_args(argv)
    if args.week_offset < 0:
        p.error("--week-offset must be >= 0")
    return args


def main(argv=None):
    load_dotenv(find_dotenv())
    configure_cli_logging()
    args = parse_args(argv)

    now = datetime.fromisoformat(args.now) if args.now else None
    store = MongoRecordStore()
    result = compute_leaderboards(
        store,
        args.user,
        args.scope,
        week_offset=args.week_offset,
        now=now,
        config=load_leaderboard_config(store.db),
        window_shape=args.window,
    )

    payload = json.dumps(result.to_dict(), default=json_serial, indent=2, sort_keys=True)
    if args.out:
        with open(args.out, "w") as f:
            f.write(payload)
        print(f"Wrote {args.out}")
    else:
        print(payload)


if __name__ == "__main__":
    main()
