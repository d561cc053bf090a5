import logging
import azure.functions as func

from Leaderboard.scope import friend_ids
from utils import rbac
from utils.http import error, options_response, read_json, respond
from utils.record_store import FriendEdgeError, MongoRecordStore


def get_store():
    return MongoRecordStore()


def main(req: func.HttpRequest) -> func.HttpResponse:
    logging.info('Friends_API processed a request.')

    if req.method == "OPTIONS":
        return options_response()

    action = (req.route_params.get("action") or "").strip("/")
    method = req.method.upper()

    try:
        if method == "GET" and action == "":
            return list_friends(req)
        elif method == "POST" and action == "add":
            return add_friend(req)
        elif method == "POST" and action == "remove":
            return remove_friend(req)
    except Exception:
        logging.exception("[Friends_API] Unhandled error action=%s", action)
        return error("internal_error", status=500)

    return error("not_found", status=404)


def list_friends(req):
    user_id = rbac.get_user_id(req)
    if not user_id:
        return error("unauthorized", status=401)

    store = get_store()
    ids = sorted(friend_ids(store, user_id))
    friends = [
        {"id": u["id"], "email": u.get("email"), "displayName": u.get("display_name")}
        for u in sorted(store.find_users(ids), key=lambda u: str(u["id"]))
    ]
    return respond({"friends": friends})


def add_friend(req):
    user_id = rbac.get_user_id(req)
    if not user_id:
        return error("unauthorized", status=401)

    body = read_json(req) or {}
    email = (body.get("email") or "").strip()
    if not email:
        return error("Email required")

    store = get_store()
    target = store.find_user_by_email(email)
    if not target:
        return error("User not found or has not opened the app yet", status=404)

    try:
        store.add_edge(user_id, target["id"])
    except FriendEdgeError as e:
        return error(str(e))

    logging.info("[Friends_API] %s added friend %s", user_id, target["id"])
    return respond({"ok": True})


def remove_friend(req):
    user_id = rbac.get_user_id(req)
    if not user_id:
        return error("unauthorized", status=401)

    body = read_json(req) or {}
    friend_id = body.get("friendId")
    if not friend_id:
        return error("Missing friendId in request body")
    if friend_id == user_id:
        return error("You cannot remove yourself as a friend")

    removed = get_store().remove_edge(user_id, friend_id)
    if removed == 0:
        return error("Friend relationship not found", status=404)

    logging.info("[Friends_API] %s removed friend %s (%d rows)", user_id, friend_id, removed)
    return respond({"success": True})
