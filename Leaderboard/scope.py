from __future__ import annotations

import enum
import logging


class Scope(str, enum.Enum):
    FRIENDS = "friends"
    CLAN = "clan"

    @classmethod
    def parse(cls, raw) -> "Scope":
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown scope: {raw!r}") from None


class Population:
    """
    The closed set of user ids a board is computed over.

    `in_clan` is False only for the clan scope when the requester has no
    group; that case must short-circuit without touching sleep records.
    """

    __slots__ = ("user_ids", "in_clan")

    def __init__(self, user_ids=(), in_clan: bool = True):
        self.user_ids = frozenset(user_ids)
        self.in_clan = in_clan

    @classmethod
    def not_in_clan(cls) -> "Population":
        return cls((), in_clan=False)

    def __contains__(self, user_id) -> bool:
        return user_id in self.user_ids

    def __len__(self) -> int:
        return len(self.user_ids)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Population):
            return NotImplemented
        return self.user_ids == other.user_ids and self.in_clan == other.in_clan

    def __repr__(self) -> str:
        return f"Population(user_ids={sorted(self.user_ids)!r}, in_clan={self.in_clan})"


def friend_ids(store, user_id: str) -> set[str]:
    """Other endpoint of every edge touching `user_id`, whichever way it was stored."""
    out: set[str] = set()
    for a, b in store.find_edges(user_id):
        if a == user_id and b != user_id:
            out.add(b)
        elif b == user_id and a != user_id:
            out.add(a)
    return out


def resolve_population(store, user_id: str, scope) -> Population:
    scope = Scope.parse(scope)

    if scope is Scope.FRIENDS:
        ids = {user_id} | friend_ids(store, user_id)
        logging.info("[Leaderboard] Scope friends for %s -> %d users", user_id, len(ids))
        return Population(ids)

    group_id = store.find_user_group(user_id)
    if not group_id:
        logging.info("[Leaderboard] Scope clan for %s -> not in a clan", user_id)
        return Population.not_in_clan()

    ids = set(store.find_group_members(group_id))
    # membership implies inclusion even if the member listing lags behind
    ids.add(user_id)
    logging.info("[Leaderboard] Scope clan %s for %s -> %d users", group_id, user_id, len(ids))
    return Population(ids)
