import json
import math
import azure.functions as func
import os
from datetime import date, datetime


def cors_headers():
    return {
        "Access-Control-Allow-Origin": os.getenv("ALLOWED_ORIGIN", "*"),
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "GET,POST,PUT,DELETE,OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type, Authorization",
    }


def json_serial(obj):
    """JSON serializer for objects not serializable by default json code"""
    if isinstance(obj, float) and (math.isnan(obj) or math.isinf(obj)):
        return None
    if isinstance(obj, datetime):
        iso = obj.isoformat()
        if obj.tzinfo is None:
            return iso + 'Z'
        return iso.replace('+00:00', 'Z')
    if isinstance(obj, date):
        return obj.isoformat()
    return str(obj)


def respond(body=None, status=200):
    return func.HttpResponse(
        json.dumps(body, default=json_serial) if body is not None else "",
        status_code=status,
        mimetype="application/json",
        headers=cors_headers()
    )


def error(message, status=400):
    return respond({"error": message}, status=status)


def options_response():
    return func.HttpResponse("", status_code=204, headers=cors_headers())


def read_json(req: func.HttpRequest):
    """Request body as a dict, or None when it is missing or not a JSON object."""
    try:
        body = req.get_json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None
