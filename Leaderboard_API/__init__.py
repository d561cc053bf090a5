import logging
import azure.functions as func

from Leaderboard import Scope, compute_leaderboards, load_leaderboard_config
from Leaderboard.config import WINDOW_SHAPES
from utils import rbac
from utils.http import error, options_response, respond
from utils.record_store import MongoRecordStore


def get_store():
    return MongoRecordStore()


def main(req: func.HttpRequest) -> func.HttpResponse:
    logging.info('Leaderboard_API processed a request.')

    if req.method == "OPTIONS":
        return options_response()

    # Route format: "leaderboard/{*route}"
    subpath = (req.route_params.get("route") or "").strip("/")

    if subpath == "":
        return get_leaderboard(req)
    elif subpath == "health":
        return respond({"status": "ok", "service": "leaderboard-api"})

    return error("not_found", status=404)


def parse_week_offset(raw) -> int:
    if raw is None or str(raw).strip() == "":
        return 0
    try:
        value = int(str(raw).strip())
    except ValueError:
        raise ValueError("weekOffset must be an integer") from None
    if value < 0:
        raise ValueError("weekOffset must be >= 0")
    return value


def get_leaderboard(req):
    user_id = rbac.get_user_id(req)
    if not user_id:
        return error("unauthorized", status=401)

    # Malformed input is rejected here, before it reaches the engine
    try:
        scope = Scope.parse(req.params.get("scope") or Scope.FRIENDS.value)
        week_offset = parse_week_offset(req.params.get("weekOffset"))
    except ValueError as e:
        return error(str(e))

    window_shape = req.params.get("window")
    if window_shape is not None and window_shape not in WINDOW_SHAPES:
        return error(f"window must be one of {', '.join(WINDOW_SHAPES)}")

    try:
        store = get_store()
        config = load_leaderboard_config(store.db)
        result = compute_leaderboards(
            store,
            user_id,
            scope,
            week_offset=week_offset,
            config=config,
            window_shape=window_shape,
        )
    except Exception:
        logging.exception(
            "[Leaderboard_API] Failed computing leaderboards user=%s scope=%s weekOffset=%s",
            user_id, scope.value, week_offset,
        )
        return error("internal_error", status=500)

    return respond(result.to_dict())
