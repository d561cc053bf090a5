"""
MongoDB-backed record store.

Read side: the collaborator lookups the leaderboard engine consumes
(find_users, find_edges, find_user_group, find_group_members, find_records).
Write side: the small amount of ingestion glue the HTTP functions need.

Collections:
  Users        {_id, display_name, email, avatar_url, group_id, created_at}
  Friends      {user_id, friend_id, created_at}   one row per unordered pair,
                                                  stored with user_id < friend_id
  Groups       {_id, name, code, created_at}
  SleepNights  {user_id, date, total_sleep_minutes, rem_sleep_minutes,
                deep_sleep_minutes, score, created_at, updated_at}
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from .db_utils import get_db

USERS = "Users"
FRIENDS = "Friends"
GROUPS = "Groups"
SLEEP_NIGHTS = "SleepNights"
WEEKLY_WINNERS = "WeeklyWinners"

NIGHT_FIELDS = ("total_sleep_minutes", "rem_sleep_minutes", "deep_sleep_minutes")


class FriendEdgeError(ValueError):
    """Raised when an edge would break the no-self-edge / one-edge-per-pair rules."""


def _as_utc(value):
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _midnight_utc(value: datetime) -> datetime:
    value = _as_utc(value).astimezone(timezone.utc)
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


def _profile(doc: dict) -> dict:
    return {
        "id": doc["_id"],
        "display_name": doc.get("display_name"),
        "email": doc.get("email"),
        "avatar_url": doc.get("avatar_url"),
        "group_id": doc.get("group_id"),
    }


def _night(doc: dict) -> dict:
    out = {
        "user_id": doc["user_id"],
        "date": _as_utc(doc["date"]),
    }
    for f in NIGHT_FIELDS:
        out[f] = int(doc.get(f) or 0)
    return out


class MongoRecordStore:
    def __init__(self, db=None):
        self.db = db if db is not None else get_db()

    # ---------- indexes ----------
    def ensure_indexes(self) -> None:
        """Idempotent; mirrors the uniqueness invariants of the data model."""
        self.db[USERS].create_index([("email", ASCENDING)], unique=True, sparse=True)
        self.db[USERS].create_index([("group_id", ASCENDING)])
        self.db[FRIENDS].create_index([("user_id", ASCENDING), ("friend_id", ASCENDING)], unique=True)
        self.db[FRIENDS].create_index([("friend_id", ASCENDING)])
        self.db[GROUPS].create_index([("name", ASCENDING)], unique=True)
        self.db[GROUPS].create_index([("code", ASCENDING)], unique=True)
        self.db[SLEEP_NIGHTS].create_index([("user_id", ASCENDING), ("date", ASCENDING)], unique=True)
        self.db[WEEKLY_WINNERS].create_index(
            [("week_start", ASCENDING), ("category", ASCENDING), ("rank", ASCENDING), ("group_id", ASCENDING)],
            unique=True,
        )

    # ---------- engine collaborators ----------
    def find_users(self, ids) -> list[dict]:
        ids = list(ids)
        if not ids:
            return []
        return [_profile(d) for d in self.db[USERS].find({"_id": {"$in": ids}})]

    def find_edges(self, user_id: str) -> list[tuple[str, str]]:
        cursor = self.db[FRIENDS].find(
            {"$or": [{"user_id": user_id}, {"friend_id": user_id}]},
            {"user_id": 1, "friend_id": 1},
        )
        return [(d["user_id"], d["friend_id"]) for d in cursor]

    def find_user_group(self, user_id: str) -> str | None:
        doc = self.db[USERS].find_one({"_id": user_id}, {"group_id": 1})
        if not doc:
            return None
        return doc.get("group_id") or None

    def find_group_members(self, group_id: str) -> list[str]:
        return [d["_id"] for d in self.db[USERS].find({"group_id": group_id}, {"_id": 1})]

    def find_records(self, user_ids, start: datetime, end: datetime) -> list[dict]:
        user_ids = list(user_ids)
        if not user_ids:
            return []
        cursor = self.db[SLEEP_NIGHTS].find(
            {"user_id": {"$in": user_ids}, "date": {"$gte": start, "$lt": end}},
            {"_id": 0, "user_id": 1, "date": 1, **{f: 1 for f in NIGHT_FIELDS}},
        )
        return [_night(d) for d in cursor]

    # ---------- users ----------
    def ensure_user(self, user_id: str) -> None:
        self.db[USERS].update_one(
            {"_id": user_id},
            {"$setOnInsert": {
                "display_name": None,
                "avatar_url": None,
                "group_id": None,
                "created_at": datetime.now(timezone.utc),
            }},
            upsert=True,
        )

    def find_user_by_email(self, email: str) -> dict | None:
        doc = self.db[USERS].find_one({"email": email})
        return _profile(doc) if doc else None

    # ---------- sleep nights ----------
    def upsert_night(self, user_id: str, date: datetime, total: float, rem: float, deep: float) -> dict:
        """
        One row per (user, UTC day): a second upload for the same day
        overwrites the first.
        """
        day = _midnight_utc(date)
        now = datetime.now(timezone.utc)
        doc = self.db[SLEEP_NIGHTS].find_one_and_update(
            {"user_id": user_id, "date": day},
            {
                "$set": {
                    "total_sleep_minutes": int(round(total)),
                    "rem_sleep_minutes": int(round(rem)),
                    "deep_sleep_minutes": int(round(deep)),
                    "updated_at": now,
                },
                "$setOnInsert": {"score": 0, "created_at": now},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        logging.info("[RecordStore] Upserted night user=%s date=%s", user_id, day.date().isoformat())
        return doc

    def recent_nights(self, user_id: str, since: datetime) -> list[dict]:
        cursor = self.db[SLEEP_NIGHTS].find(
            {"user_id": user_id, "date": {"$gte": since}},
        ).sort("date", DESCENDING)
        return list(cursor)

    # ---------- friends ----------
    def _edge_filter(self, a: str, b: str) -> dict:
        return {"$or": [
            {"user_id": a, "friend_id": b},
            {"user_id": b, "friend_id": a},
        ]}

    def add_edge(self, a: str, b: str) -> None:
        if a == b:
            raise FriendEdgeError("Cannot add yourself as a friend")
        if self.db[FRIENDS].find_one(self._edge_filter(a, b)):
            raise FriendEdgeError("Already friends")
        # canonical order lets the unique (user_id, friend_id) index reject a
        # concurrent add from the other side
        low, high = sorted((a, b))
        try:
            self.db[FRIENDS].insert_one({
                "user_id": low,
                "friend_id": high,
                "created_at": datetime.now(timezone.utc),
            })
        except DuplicateKeyError:
            raise FriendEdgeError("Already friends") from None

    def remove_edge(self, a: str, b: str) -> int:
        return self.db[FRIENDS].delete_many(self._edge_filter(a, b)).deleted_count

    # ---------- groups ----------
    def find_group(self, group_id: str) -> dict | None:
        return self.db[GROUPS].find_one({"_id": group_id})

    def group_stats(self, group_id: str) -> dict:
        """Lifetime totals over every night logged by current members."""
        members = self.find_group_members(group_id)
        rows = list(self.db[SLEEP_NIGHTS].aggregate([
            {"$match": {"user_id": {"$in": members}}},
            {"$group": {
                "_id": None,
                "total_minutes": {"$sum": "$total_sleep_minutes"},
                "deep_minutes": {"$sum": "$deep_sleep_minutes"},
                "nights": {"$sum": 1},
            }},
        ])) if members else []
        row = rows[0] if rows else {}
        return {
            "member_count": len(members),
            "total_minutes": int(row.get("total_minutes") or 0),
            "deep_minutes": int(row.get("deep_minutes") or 0),
            "nights": int(row.get("nights") or 0),
        }

    def list_group_ids(self) -> list[str]:
        return [d["_id"] for d in self.db[GROUPS].find({}, {"_id": 1})]

    # ---------- weekly winners ----------
    def clear_weekly_winners(self, week_start: datetime, group_id: str) -> int:
        """Drop every archived podium row of one group for one week."""
        return self.db[WEEKLY_WINNERS].delete_many({"week_start": week_start, "group_id": group_id}).deleted_count

    def save_weekly_winner(self, row: dict) -> None:
        key = {k: row[k] for k in ("week_start", "category", "rank", "group_id")}
        self.db[WEEKLY_WINNERS].replace_one(key, row, upsert=True)
