"""
Daily bucketing and point scoring.

Every variant ranks the same per-day buckets independently: the best value of
the day earns rank_points[0], the next rank_points[1] and so on; anything past
the end of rank_points earns nothing. Points, raw values and nights are then
summed per user across the whole window.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from typing import Iterable

from .config import DEFAULT_CONFIG, VARIANTS
from .window import utc_midnight

MIN_VALID_MINUTES = int(DEFAULT_CONFIG["min_valid_minutes"])  # type: ignore[arg-type]
RANK_POINTS = tuple(DEFAULT_CONFIG["rank_points"])  # type: ignore[arg-type]


class Accumulator:
    """Running totals for one user on one variant."""

    __slots__ = ("points", "value", "nights")

    def __init__(self, points: int = 0, value: int = 0, nights: int = 0):
        self.points = points
        self.value = value
        self.nights = nights

    def __eq__(self, other) -> bool:
        if not isinstance(other, Accumulator):
            return NotImplemented
        return (self.points, self.value, self.nights) == (other.points, other.value, other.nights)

    def __repr__(self) -> str:
        return f"Accumulator(points={self.points}, value={self.value}, nights={self.nights})"


def keep_record(record: dict, min_minutes: int = MIN_VALID_MINUTES) -> bool:
    """Anti-cheat: anything shorter than `min_minutes` is a nap, not a night."""
    return (record.get("total_sleep_minutes") or 0) >= min_minutes


def filter_records(records: Iterable[dict], min_minutes: int = MIN_VALID_MINUTES) -> list[dict]:
    return [r for r in records if keep_record(r, min_minutes)]


def bucket_by_day(records: Iterable[dict]) -> dict[datetime, list[dict]]:
    buckets: dict[datetime, list[dict]] = defaultdict(list)
    for r in records:
        buckets[utc_midnight(r["date"])].append(r)
    return dict(buckets)


def metric_value(record: dict, variant: dict) -> int:
    return int(record.get(variant["field"]) or 0)  # type: ignore[arg-type]


def rank_day(bucket: list[dict], variant: dict) -> list[dict]:
    """
    Order one day's records best-first for `variant`. Equal values are broken
    by user id ascending so point assignment never depends on fetch order.
    """
    sign = 1 if variant["ascending"] else -1
    return sorted(bucket, key=lambda r: (sign * metric_value(r, variant), str(r["user_id"])))


def nights_logged(buckets: dict[datetime, list[dict]]) -> dict[str, int]:
    """Distinct days with a kept record, per user. Shared by every variant."""
    days: dict[str, set] = defaultdict(set)
    for day, bucket in buckets.items():
        for r in bucket:
            days[r["user_id"]].add(day)
    return {uid: len(d) for uid, d in days.items()}


def score_variant(
    buckets: dict[datetime, list[dict]],
    variant: dict,
    rank_points: Iterable[int] = RANK_POINTS,
    nights: dict[str, int] | None = None,
) -> dict[str, Accumulator]:
    rank_points = tuple(rank_points)
    if nights is None:
        nights = nights_logged(buckets)

    acc: dict[str, Accumulator] = {}
    for day in sorted(buckets):
        for rank, r in enumerate(rank_day(buckets[day], variant)):
            uid = r["user_id"]
            a = acc.get(uid)
            if a is None:
                a = acc[uid] = Accumulator(nights=nights.get(uid, 0))
            if rank < len(rank_points):
                a.points += rank_points[rank]
            a.value += metric_value(r, variant)
    return acc


def score(
    records: Iterable[dict],
    population,
    variants: list[dict] = VARIANTS,
    rank_points: Iterable[int] = RANK_POINTS,
) -> dict[str, dict[str, Accumulator]]:
    """
    records: already passed through the anti-cheat filter
    returns {variant_name: {user_id: Accumulator}}
    """
    records = list(records)
    in_scope = [r for r in records if r["user_id"] in population]
    dropped = len(records) - len(in_scope)
    if dropped:
        logging.warning("[Leaderboard] Dropped %d records for users outside the population", dropped)

    buckets = bucket_by_day(in_scope)
    nights = nights_logged(buckets)
    rank_points = tuple(rank_points)
    return {
        str(v["name"]): score_variant(buckets, v, rank_points, nights)
        for v in variants
    }
