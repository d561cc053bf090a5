"""
Sleep leaderboard computation engine.

Pipeline per request: resolve the population (scope), resolve the Monday-aligned
UTC window, fetch nights, drop sub-threshold nights, score every variant over
per-day buckets, then assemble sorted boards.
"""
from .boards import assemble, empty_boards, sort_board
from .config import DEFAULT_CONFIG, VARIANTS, load_leaderboard_config, merge_config
from .engine import LeaderboardResult, compute_for_population, compute_leaderboards
from .scope import Population, Scope, resolve_population
from .scoring import Accumulator, bucket_by_day, filter_records, keep_record, score, score_variant
from .window import week_start, week_window

__all__ = [
    "Accumulator",
    "DEFAULT_CONFIG",
    "LeaderboardResult",
    "Population",
    "Scope",
    "VARIANTS",
    "assemble",
    "bucket_by_day",
    "compute_for_population",
    "compute_leaderboards",
    "empty_boards",
    "filter_records",
    "keep_record",
    "load_leaderboard_config",
    "merge_config",
    "resolve_population",
    "score",
    "score_variant",
    "sort_board",
    "week_start",
    "week_window",
]
