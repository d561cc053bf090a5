import logging
import azure.functions as func

from utils import rbac
from utils.http import error, options_response, respond
from utils.record_store import MongoRecordStore

SQUAD_LEVEL_NIGHTS_PER_MEMBER = 10

# (name, description, icon, stat key, base amount per member per tier, unit)
QUESTS = [
    ("Morning Squad", "Log nights together", "sunny", "nights", 7, "nights"),
    ("Century Club", "Total sleep duration", "time", "total_minutes", 1000, "mins"),
    ("Deep Sleepers", "Accumulate Deep Sleep", "bed", "deep_minutes", 300, "mins"),
]


def get_store():
    return MongoRecordStore()


def main(req: func.HttpRequest) -> func.HttpResponse:
    logging.info('Clan_API processed a request.')

    if req.method == "OPTIONS":
        return options_response()

    action = (req.route_params.get("action") or "").strip("/")

    try:
        if req.method.upper() == "GET":
            if action == "me":
                return get_my_clan(req)
            elif action == "dashboard":
                return get_dashboard(req)
    except Exception:
        logging.exception("[Clan_API] Unhandled error action=%s", action)
        return error("internal_error", status=500)

    return error("not_found", status=404)


def quest(name: str, description: str, icon: str, current: int, base_per_member: int, unit: str, member_count: int) -> dict:
    """Endless tiers: the bar to clear each tier scales with clan size."""
    tier_size = base_per_member * max(member_count, 1)
    tier = current // tier_size + 1
    return {
        "id": name.lower().replace(" ", "_"),
        "name": name,
        "description": description,
        "icon": icon,
        "tier": tier,
        "current": current,
        "target": tier * tier_size,
        "unit": unit,
    }


def build_dashboard(group: dict, stats: dict) -> dict:
    member_count = max(stats["member_count"], 1)
    nights = stats["nights"]

    level_size = SQUAD_LEVEL_NIGHTS_PER_MEMBER * member_count
    level = nights // level_size + 1

    return {
        "isInClan": True,
        "group": {
            "id": group.get("_id"),
            "name": group.get("name"),
            "code": group.get("code"),
            "memberCount": member_count,
        },
        "stats": {
            "totalHours": (stats["total_minutes"] + 30) // 60,
            "totalNights": nights,
        },
        "squadLevel": {
            "current": level,
            "progress": nights,
            "target": level * level_size,
        },
        "achievements": [
            quest(name, desc, icon, stats[key], base, unit, member_count)
            for name, desc, icon, key, base, unit in QUESTS
        ],
    }


def get_my_clan(req):
    user_id = rbac.get_user_id(req)
    if not user_id:
        return error("unauthorized", status=401)

    store = get_store()
    group_id = store.find_user_group(user_id)
    group = store.find_group(group_id) if group_id else None
    if not group:
        return respond({"group": None})

    members = store.find_users(store.find_group_members(group_id))
    return respond({
        "group": {
            "id": group["_id"],
            "name": group.get("name"),
            "code": group.get("code"),
            "members": [
                {
                    "id": m["id"],
                    "displayName": m.get("display_name"),
                    "email": m.get("email"),
                    "avatarUrl": m.get("avatar_url"),
                }
                for m in sorted(members, key=lambda m: str(m["id"]))
            ],
        }
    })


def get_dashboard(req):
    user_id = rbac.get_user_id(req)
    if not user_id:
        return error("unauthorized", status=401)

    store = get_store()
    group_id = store.find_user_group(user_id)
    group = store.find_group(group_id) if group_id else None
    if not group:
        return respond({"isInClan": False})

    return respond(build_dashboard(group, store.group_stats(group_id)))
