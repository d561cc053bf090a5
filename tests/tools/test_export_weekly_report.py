import os
import sys

import pytest

from conftest import utc
from Leaderboard import LeaderboardResult, Scope

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), "tools"))

from export_weekly_report import COLUMNS, build_report, summarize  # noqa: E402


def board_row(uid, points, value):
    return {"userId": uid, "displayName": uid.title(), "points": points, "value": value, "nightsLogged": 1}


def result(monday, hibernator):
    window = (monday, utc(monday.year, monday.month, monday.day + 7))
    return LeaderboardResult({"hibernator": hibernator, "survivalist": []}, window, Scope.FRIENDS, True)


@pytest.fixture
def results():
    return [
        result(utc(2025, 11, 17), [board_row("ann", 3, 480), board_row("bo", 2, 420)]),
        result(utc(2025, 11, 10), [board_row("bo", 6, 900), board_row("ann", 3, 500),
                                   board_row("cy", 1, 300), board_row("di", 0, 100)]),
    ]


class TestBuildReport:

    def test_one_row_per_week_board_user(self, results):
        df = build_report(results)
        assert list(df.columns) == COLUMNS
        assert len(df) == 6
        assert df.iloc[0].to_dict() == {
            "week_start": "2025-11-10", "board": "hibernator", "rank": 1, "userId": "bo",
            "displayName": "Bo", "points": 6, "value": 900, "nightsLogged": 1,
        }

    def test_empty(self):
        df = build_report([result(utc(2025, 11, 17), [])])
        assert df.empty
        assert list(df.columns) == COLUMNS


class TestSummarize:

    def test_points_and_podiums(self, results):
        summary = summarize(build_report(results))
        rows = {r["userId"]: r for r in summary.to_dict("records")}
        assert rows["ann"]["points"] == 6
        assert rows["ann"]["podiums"] == 2
        assert rows["ann"]["weeks"] == 2
        assert rows["di"]["podiums"] == 0
        assert summary.iloc[0]["userId"] == "bo"

    def test_empty(self):
        assert summarize(build_report([])).empty
