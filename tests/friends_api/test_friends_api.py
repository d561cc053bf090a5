import json
from unittest.mock import MagicMock, patch

import azure.functions as func
import pytest

import Friends_API
from conftest import FakeStore
from utils.record_store import FriendEdgeError


def make_req(action="", method="POST", payload=None, user="A"):
    return func.HttpRequest(
        method=method,
        url=f"http://localhost:7071/api/friends/{action}",
        headers={"X-User-Id": user} if user else {},
        route_params={"action": action},
        body=json.dumps(payload).encode() if payload is not None else b"",
    )


def body(resp):
    return json.loads(resp.get_body())


@pytest.fixture(autouse=True)
def dev_env(monkeypatch):
    monkeypatch.delenv("AZURE_FUNCTIONS_ENVIRONMENT", raising=False)


class TestListFriends:

    def test_lists_both_directions_sorted(self):
        s = FakeStore()
        s.add_user("A").add_user("B", email="b@x", display_name="Bo").add_user("C", email="c@x")
        s.add_edge("A", "C").add_edge("B", "A")
        with patch.object(Friends_API, "get_store", return_value=s):
            resp = Friends_API.main(make_req(method="GET"))
        assert resp.status_code == 200
        assert body(resp) == {"friends": [
            {"id": "B", "email": "b@x", "displayName": "Bo"},
            {"id": "C", "email": "c@x", "displayName": None},
        ]}

    def test_requires_identity(self):
        assert Friends_API.main(make_req(method="GET", user=None)).status_code == 401


class TestAddFriend:

    @pytest.fixture
    def store(self):
        s = MagicMock()
        s.find_user_by_email.return_value = {"id": "B", "email": "b@x"}
        with patch.object(Friends_API, "get_store", return_value=s):
            yield s

    def test_adds_edge(self, store):
        resp = Friends_API.main(make_req("add", payload={"email": " b@x "}))
        assert resp.status_code == 200
        store.find_user_by_email.assert_called_once_with("b@x")
        store.add_edge.assert_called_once_with("A", "B")

    def test_email_required(self, store):
        assert Friends_API.main(make_req("add", payload={})).status_code == 400

    def test_unknown_email(self, store):
        store.find_user_by_email.return_value = None
        assert Friends_API.main(make_req("add", payload={"email": "x@x"})).status_code == 404

    def test_edge_errors_are_400(self, store):
        store.add_edge.side_effect = FriendEdgeError("Already friends")
        resp = Friends_API.main(make_req("add", payload={"email": "b@x"}))
        assert resp.status_code == 400
        assert body(resp) == {"error": "Already friends"}


class TestRemoveFriend:

    @pytest.fixture
    def store(self):
        s = MagicMock()
        s.remove_edge.return_value = 1
        with patch.object(Friends_API, "get_store", return_value=s):
            yield s

    def test_removes_edge(self, store):
        resp = Friends_API.main(make_req("remove", payload={"friendId": "B"}))
        assert resp.status_code == 200
        store.remove_edge.assert_called_once_with("A", "B")

    def test_missing_friend_id(self, store):
        assert Friends_API.main(make_req("remove", payload={})).status_code == 400

    def test_cannot_remove_self(self, store):
        assert Friends_API.main(make_req("remove", payload={"friendId": "A"})).status_code == 400
        store.remove_edge.assert_not_called()

    def test_not_found(self, store):
        store.remove_edge.return_value = 0
        assert Friends_API.main(make_req("remove", payload={"friendId": "Z"})).status_code == 404
