#!/usr/bin/env python3
"""
Export one row per (week, board, user) for the last N weeks of a user's scope as CSV.

Usage:
    python tools/export_weekly_report.py --user <id> --weeks 4 [--scope clan] [--out report.csv]
"""
import os
import sys
import argparse

import pandas as pd
from dotenv import load_dotenv, find_dotenv

ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(ROOT_DIR)

from Leaderboard import Scope, compute_leaderboards, load_leaderboard_config  # noqa: E402
from utils.log_utils import configure_cli_logging  # noqa: E402
from utils.record_store import MongoRecordStore  # noqa: E402

COLUMNS = ["week_start", "board", "rank", "userId", "displayName", "points", "value", "nightsLogged"]


def build_report(results) -> "pd.DataFrame":
    """results: iterable of LeaderboardResult, one per week."""
    rows = []
    for result in results:
        week_start = result.window[0].date().isoformat()
        for board, board_rows in result.boards.items():
            for rank, row in enumerate(board_rows, start=1):
                rows.append({
                    "week_start": week_start,
                    "board": board,
                    "rank": rank,
                    "userId": row["userId"],
                    "displayName": row["displayName"],
                    "points": row["points"],
                    "value": row["value"],
                    "nightsLogged": row["nightsLogged"],
                })
    df = pd.DataFrame(rows, columns=COLUMNS)
    if df.empty:
        return df
    return df.sort_values(["week_start", "board", "rank"]).reset_index(drop=True)


def summarize(df: "pd.DataFrame") -> "pd.DataFrame":
    """Total points and podium finishes per user and board across all exported weeks."""
    if df.empty:
        return pd.DataFrame(columns=["board", "userId", "points", "podiums", "weeks"])
    return (
        df.assign(podium=df["rank"] <= 3)
        .groupby(["board", "userId"], as_index=False)
        .agg(points=("points", "sum"), podiums=("podium", "sum"), weeks=("week_start", "nunique"))
        .sort_values(["board", "points"], ascending=[True, False])
        .reset_index(drop=True)
    )


def main(argv=None):
    load_dotenv(find_dotenv())
    configure_cli_logging()

    p = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    p.add_argument("--user", required=True)
    p.add_argument("--scope", default=Scope.FRIENDS.value, choices=[s.value for s in Scope])
    p.add_argument("--weeks", type=int, default=4)
    p.add_argument("--out", default="weekly_report.csv")
    args = p.parse_args(argv)
    if args.weeks < 1:
        p.error("--weeks must be >= 1")

    store = MongoRecordStore()
    cfg = load_leaderboard_config(store.db)
    results = [
        compute_leaderboards(store, args.user, args.scope, week_offset=w, config=cfg, window_shape="week")
        for w in range(args.weeks)
    ]

    df = build_report(results)
    df.to_csv(args.out, index=False)
    print(f"Wrote {len(df)} rows to {args.out}")
    print(summarize(df).to_string(index=False))


if __name__ == "__main__":
    main()
