from __future__ import annotations

from .config import VARIANTS
from .scoring import Accumulator


def empty_boards(variants: list[dict] = VARIANTS) -> dict[str, list[dict]]:
    return {str(v["name"]): [] for v in variants}


def board_row(user_id: str, profile: dict | None, acc: Accumulator) -> dict:
    profile = profile or {}
    return {
        "userId": user_id,
        "displayName": profile.get("display_name"),
        "email": profile.get("email"),
        "avatarUrl": profile.get("avatar_url"),
        "points": acc.points,
        "value": acc.value,
        "nightsLogged": acc.nights,
    }


def sort_board(rows: list[dict], ascending: bool) -> list[dict]:
    """
    Points descending; equal points fall back to the raw value sum in the
    variant's own direction, then to user id so the order is reproducible.
    """
    sign = 1 if ascending else -1
    return sorted(rows, key=lambda row: (-row["points"], sign * row["value"], str(row["userId"])))


def assemble(
    state: dict[str, dict[str, Accumulator]],
    population,
    profiles: dict[str, dict],
    variants: list[dict] = VARIANTS,
) -> dict[str, list[dict]]:
    """
    state: output of scoring.score
    profiles: user_id -> profile dict as returned by the record store
    """
    if not population.in_clan:
        return empty_boards(variants)

    boards: dict[str, list[dict]] = {}
    for v in variants:
        name = str(v["name"])
        per_user = state.get(name, {})
        rows = [
            board_row(uid, profiles.get(uid), acc)
            for uid, acc in per_user.items()
            if uid in population and acc.nights >= 1
        ]
        boards[name] = sort_board(rows, bool(v["ascending"]))
    return boards
