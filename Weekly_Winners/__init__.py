from __future__ import annotations

import argparse
import logging
import os
from datetime import datetime, timezone

import azure.functions as func

from Leaderboard import Population, compute_for_population, load_leaderboard_config, week_window
from utils.log_utils import configure_cli_logging, log_kv, new_run_id, timed
from utils.record_store import MongoRecordStore

DEFAULT_WEEK_OFFSET = 1  # last completed week


def get_store():
    return MongoRecordStore()


def _resolve_week_offset() -> int:
    """
    Priority: explicit env override -> previous week.
    """
    override = os.getenv("LEADERBOARD_WEEK_OFFSET")
    if override:
        try:
            value = int(override)
        except ValueError:
            logging.warning("[Weekly_Winners] Ignoring non-integer LEADERBOARD_WEEK_OFFSET=%r", override)
        else:
            if value >= 0:
                return value
            logging.warning("[Weekly_Winners] Ignoring negative LEADERBOARD_WEEK_OFFSET=%r", override)
    return DEFAULT_WEEK_OFFSET


def podium_rows(boards: dict, week_start: datetime, group_id: str, podium_size: int, archived_at: datetime) -> list[dict]:
    rows = []
    for category, board in boards.items():
        for rank, row in enumerate(board[:podium_size], start=1):
            rows.append({
                "week_start": week_start,
                "category": category,
                "rank": rank,
                "group_id": group_id,
                "user_id": row["userId"],
                "score": row["points"],
                "value": row["value"],
                "nights_logged": row["nightsLogged"],
                "archived_at": archived_at,
            })
    return rows


def run(now: datetime | None = None, week_offset: int = DEFAULT_WEEK_OFFSET, store=None) -> dict:
    """Archive the podium of every clan board for one week.

    Re-running the same week replaces the stored podium instead of adding to it.
    """
    store = store or get_store()
    cfg = load_leaderboard_config(store.db)
    # podium is always taken from full Monday-Sunday weeks
    start, end = week_window(now, week_offset, "week")
    run_id = new_run_id()
    archived_at = datetime.now(timezone.utc)

    logging.info(
        "[Weekly_Winners] run_id=%s archiving week %s -> %s",
        run_id, start.isoformat(), end.isoformat(),
    )

    group_ids = store.list_group_ids()
    total_rows = 0
    with timed("weekly_winners", run_id=run_id, groups=len(group_ids)):
        for group_id in group_ids:
            # a re-run may produce fewer rows than the previous one
            store.clear_weekly_winners(start, group_id)
            members = store.find_group_members(group_id)
            if not members:
                logging.info("[Weekly_Winners] Group %s has no members; skipping", group_id)
                continue

            boards = compute_for_population(store, Population(members), (start, end), cfg)
            rows = podium_rows(boards, start, group_id, int(cfg["podium_size"]), archived_at)
            for row in rows:
                store.save_weekly_winner(row)
            total_rows += len(rows)
            log_kv(logging.INFO, "[Weekly_Winners] group archived", group_id=group_id, rows=len(rows))

    summary = {"week_start": start, "groups": len(group_ids), "rows": total_rows}
    logging.info("[Weekly_Winners] run_id=%s finished: %s", run_id, summary)
    return summary


def main(mytimer: func.TimerRequest) -> None:
    """Azure Functions timer entrypoint."""
    trigger_time = datetime.now(timezone.utc).isoformat()
    logging.info("[Weekly_Winners] Timer fired at %s", trigger_time)
    if getattr(mytimer, "past_due", False):
        logging.warning("[Weekly_Winners] Timer is running past due.")

    week_offset = _resolve_week_offset()
    try:
        run(week_offset=week_offset)
    except Exception:
        logging.exception("[Weekly_Winners] Archive failed for week_offset=%s", week_offset)
        raise


def _parse_cli_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Archive weekly leaderboard winners per clan.")
    p.add_argument("--week-offset", type=int, default=None,
                   help="Weeks back from the current week (default: env LEADERBOARD_WEEK_OFFSET or 1)")
    args = p.parse_args(argv)
    if args.week_offset is not None and args.week_offset < 0:
        p.error("--week-offset must be >= 0")
    return args


def cli_main(argv=None) -> None:
    configure_cli_logging()
    args = _parse_cli_args(argv)
    week_offset = args.week_offset if args.week_offset is not None else _resolve_week_offset()
    summary = run(week_offset=week_offset)
    print(f"Archived {summary['rows']} rows for {summary['groups']} clans, week of {summary['week_start'].date()}")
