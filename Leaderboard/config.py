from __future__ import annotations

import logging
from datetime import datetime, timezone

CONFIG_COLLECTION = "config"
CONFIG_ID = "Sleep_Leaderboard"
SCHEMA_VERSION = "2025-11-30.r1"

WINDOW_SHAPES = ("week", "to_date")

# Board variants, all scored over the same daily buckets.
VARIANTS: list[dict[str, object]] = [
    {"name": "survivalist", "field": "total_sleep_minutes", "ascending": True},
    {"name": "hibernator", "field": "total_sleep_minutes", "ascending": False},
    {"name": "tomRemmer", "field": "rem_sleep_minutes", "ascending": False},
    {"name": "rollingInTheDeep", "field": "deep_sleep_minutes", "ascending": False},
]

DEFAULT_CONFIG: dict[str, object] = {
    "min_valid_minutes": 45,
    "rank_points": [3, 2, 1],
    "window_shape": "week",
    "parallel_fetch": True,
    "podium_size": 3,
}


def _is_int(v) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def _validate(key: str, value) -> bool:
    if key in ("min_valid_minutes", "podium_size"):
        return _is_int(value) and value >= 0
    if key == "rank_points":
        return isinstance(value, list) and all(_is_int(p) and p >= 0 for p in value)
    if key == "window_shape":
        return value in WINDOW_SHAPES
    if key == "parallel_fetch":
        return isinstance(value, bool)
    return False


def merge_config(overrides: dict | None) -> dict[str, object]:
    """
    Overlay stored values on DEFAULT_CONFIG. Unknown keys are ignored and
    invalid values fall back to the default with a warning.
    """
    cfg: dict[str, object] = dict(DEFAULT_CONFIG)
    cfg["rank_points"] = list(DEFAULT_CONFIG["rank_points"])  # type: ignore[arg-type]
    for key, value in (overrides or {}).items():
        if key not in DEFAULT_CONFIG:
            continue
        if not _validate(key, value):
            logging.warning(
                "[Leaderboard] Ignoring invalid config value %s=%r; using default %r",
                key, value, DEFAULT_CONFIG[key],
            )
            continue
        cfg[key] = list(value) if isinstance(value, list) else value
    return cfg


def _default_config_doc() -> dict:
    now_iso = datetime.now(timezone.utc).isoformat()
    return {
        "_id": CONFIG_ID,
        "module": "Leaderboard",
        "schema_version": SCHEMA_VERSION,
        "description": "Runtime knobs for the sleep leaderboard engine.",
        "createdAt": now_iso,
        "updatedAt": now_iso,
        "defaults": dict(DEFAULT_CONFIG),
        "meta": {
            "notes": "Auto-created by Leaderboard runtime. Safe to edit values under `defaults`; keep top-level keys.",
        },
    }


def load_leaderboard_config(db) -> dict[str, object]:
    """
    Load the engine config from the `config` collection, bootstrapping the
    document with defaults if missing.
    """
    coll = db[CONFIG_COLLECTION]
    doc = coll.find_one({"_id": CONFIG_ID})
    if not doc:
        doc = _default_config_doc()
        body = {k: v for k, v in doc.items() if k != "_id"}
        coll.update_one({"_id": CONFIG_ID}, {"$setOnInsert": body}, upsert=True)
        logging.info("[Leaderboard] Bootstrapped default config document %s", CONFIG_ID)

    defaults = doc.get("defaults") or {}
    if not isinstance(defaults, dict):
        logging.warning("[Leaderboard] Config %s has non-dict defaults; ignoring", CONFIG_ID)
        defaults = {}
    return merge_config(defaults)
