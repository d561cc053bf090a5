"""
Shared pytest fixtures.

Engine tests run against `FakeStore`, an in-memory implementation of the
record-store lookups the leaderboard engine consumes. It counts calls so
tests can assert which queries a computation issued.
"""

import os
import sys
from collections import Counter
from datetime import datetime, timezone

import pytest

# Add function app root to path
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)


def utc(y, m, d, hh=0, mm=0):
    return datetime(y, m, d, hh, mm, tzinfo=timezone.utc)


def night(user_id, date, total, rem=0, deep=0):
    return {
        "user_id": user_id,
        "date": date,
        "total_sleep_minutes": total,
        "rem_sleep_minutes": rem,
        "deep_sleep_minutes": deep,
    }


class FakeStore:
    def __init__(self):
        self.users = {}
        self.edges = []
        self.nights = []
        self.calls = Counter()
        self.fail_records = None
        self.db = None

    # seeding helpers
    def add_user(self, user_id, display_name=None, email=None, avatar_url=None, group_id=None):
        self.users[user_id] = {
            "id": user_id,
            "display_name": display_name,
            "email": email,
            "avatar_url": avatar_url,
            "group_id": group_id,
        }
        return self

    def add_edge(self, a, b):
        self.edges.append((a, b))
        return self

    def add_night(self, user_id, date, total, rem=0, deep=0):
        self.nights.append(night(user_id, date, total, rem, deep))
        return self

    # collaborator contracts
    def find_users(self, ids):
        self.calls["find_users"] += 1
        return [dict(self.users[i]) for i in ids if i in self.users]

    def find_edges(self, user_id):
        self.calls["find_edges"] += 1
        return [(a, b) for a, b in self.edges if user_id in (a, b)]

    def find_user_group(self, user_id):
        self.calls["find_user_group"] += 1
        user = self.users.get(user_id)
        return user["group_id"] if user else None

    def find_group_members(self, group_id):
        self.calls["find_group_members"] += 1
        return [uid for uid, u in self.users.items() if u["group_id"] == group_id]

    def find_records(self, user_ids, start, end):
        self.calls["find_records"] += 1
        if self.fail_records:
            raise self.fail_records
        ids = set(user_ids)
        return [dict(n) for n in self.nights if n["user_id"] in ids and start <= n["date"] < end]


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def wednesday():
    # Wednesday 2025-11-19 15:30 UTC; its week starts Monday 2025-11-17
    return utc(2025, 11, 19, 15, 30)
