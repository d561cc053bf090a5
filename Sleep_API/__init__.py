import logging
import math
import azure.functions as func
from datetime import datetime, timedelta, timezone

from utils import rbac
from utils.http import error, options_response, read_json, respond
from utils.record_store import MongoRecordStore

DEFAULT_DAYS = 7


def get_store():
    return MongoRecordStore()


def main(req: func.HttpRequest) -> func.HttpResponse:
    logging.info('Sleep_API processed a request.')

    if req.method == "OPTIONS":
        return options_response()

    action = (req.route_params.get("action") or "").strip("/")
    method = req.method.upper()

    try:
        if method == "POST" and action == "upload":
            return upload_night(req)
        elif method == "GET" and action == "me":
            return get_my_nights(req)
    except Exception:
        logging.exception("[Sleep_API] Unhandled error action=%s", action)
        return error("internal_error", status=500)

    return error("not_found", status=404)


def parse_date(raw) -> datetime | None:
    if not isinstance(raw, str) or not raw.strip():
        return None
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _finite_number(v) -> bool:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return False
    return math.isfinite(v)


def serialize_night(doc: dict) -> dict:
    return {
        "id": str(doc.get("_id")),
        "userId": doc.get("user_id"),
        "date": doc.get("date"),
        "totalSleepMinutes": doc.get("total_sleep_minutes"),
        "remSleepMinutes": doc.get("rem_sleep_minutes"),
        "deepSleepMinutes": doc.get("deep_sleep_minutes"),
        "score": doc.get("score", 0),
        "createdAt": doc.get("created_at"),
    }


def upload_night(req):
    user_id = rbac.get_user_id(req)
    if not user_id:
        return error("unauthorized", status=401)

    body = read_json(req)
    if body is None:
        return error("Invalid JSON")

    date = parse_date(body.get("date"))
    if date is None:
        return error("Invalid date")

    total = body.get("totalSleepMinutes")
    rem = body.get("remSleepMinutes")
    deep = body.get("deepSleepMinutes")
    if not _finite_number(total) or total <= 0:
        return error("Invalid totalSleepMinutes")
    if not _finite_number(rem) or rem < 0:
        return error("Invalid remSleepMinutes")
    if not _finite_number(deep) or deep < 0:
        return error("Invalid deepSleepMinutes")

    store = get_store()
    # make sure there is a User row for this caller
    store.ensure_user(user_id)
    night = store.upsert_night(user_id, date, total, rem, deep)

    return respond({"ok": True, "night": serialize_night(night)})


def get_my_nights(req):
    user_id = rbac.get_user_id(req)
    if not user_id:
        return error("unauthorized", status=401)

    try:
        days = int(req.params.get("days", DEFAULT_DAYS))
    except (TypeError, ValueError):
        days = DEFAULT_DAYS

    now = datetime.now(timezone.utc)
    since = datetime(now.year, now.month, now.day, tzinfo=timezone.utc) - timedelta(days=days)

    nights = get_store().recent_nights(user_id, since)
    return respond({"nights": [serialize_night(n) for n in nights]})
