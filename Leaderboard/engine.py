from __future__ import annotations

import concurrent.futures
import logging
from datetime import datetime
from typing import Tuple

from utils.log_utils import log_kv, timed

from .boards import assemble, empty_boards
from .config import VARIANTS, merge_config
from .scope import Population, Scope, resolve_population
from .scoring import filter_records, score
from .window import week_window


class LeaderboardResult:
    __slots__ = ("boards", "window", "scope", "in_clan")

    def __init__(self, boards: dict, window: Tuple[datetime, datetime], scope: Scope | None, in_clan: bool):
        self.boards = boards
        self.window = window
        self.scope = scope
        self.in_clan = in_clan

    def to_dict(self) -> dict:
        start, end = self.window
        return {
            "scope": self.scope.value if self.scope else None,
            "isInClan": self.in_clan,
            "window": {"start": start, "end": end},
            "leaderboards": self.boards,
        }


def _fetch(store, population: Population, window, parallel: bool):
    ids = sorted(population.user_ids)
    start, end = window
    if not parallel:
        return store.find_records(ids, start, end), store.find_users(ids)

    # record and profile reads are independent; .result() re-raises so a failed
    # fetch aborts the computation instead of scoring a subset
    with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
        f_records = executor.submit(store.find_records, ids, start, end)
        f_users = executor.submit(store.find_users, ids)
        return f_records.result(), f_users.result()


def compute_for_population(
    store,
    population: Population,
    window: Tuple[datetime, datetime],
    config: dict | None = None,
    variants: list[dict] = VARIANTS,
) -> dict[str, list[dict]]:
    cfg = merge_config(config)
    if not population.in_clan:
        return empty_boards(variants)

    with timed("leaderboard_fetch", users=len(population)):
        records, users = _fetch(store, population, window, bool(cfg["parallel_fetch"]))

    kept = filter_records(records, int(cfg["min_valid_minutes"]))  # type: ignore[arg-type]
    log_kv(
        logging.INFO,
        "[Leaderboard] records fetched",
        fetched=len(records),
        kept=len(kept),
        users=len(population),
    )

    state = score(kept, population, variants, cfg["rank_points"])  # type: ignore[arg-type]
    profiles = {u["id"]: u for u in users}
    return assemble(state, population, profiles, variants)


def compute_leaderboards(
    store,
    user_id: str,
    scope,
    week_offset: int = 0,
    now: datetime | None = None,
    config: dict | None = None,
    window_shape: str | None = None,
) -> LeaderboardResult:
    """
    Boards for `user_id` over `scope` for the week `week_offset` weeks back.

    `config` is the merged engine config (see Leaderboard.config); when
    `window_shape` is given it overrides the configured one.
    """
    cfg = merge_config(config)
    scope = Scope.parse(scope)
    shape = window_shape or str(cfg["window_shape"])
    window = week_window(now, week_offset, shape)

    population = resolve_population(store, user_id, scope)
    boards = compute_for_population(store, population, window, cfg)

    log_kv(
        logging.INFO,
        "[Leaderboard] boards computed",
        user_id=user_id,
        scope=scope.value,
        week_offset=week_offset,
        start=window[0].isoformat(),
        end=window[1].isoformat(),
        rows={name: len(rows) for name, rows in boards.items()},
    )
    return LeaderboardResult(boards, window, scope, population.in_clan)
