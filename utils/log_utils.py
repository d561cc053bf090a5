import os
import json
import time
import uuid
import logging
from contextlib import contextmanager
from datetime import datetime, timezone

# --- Structured logging helpers (safe-by-default) ---
LOG_FORMAT_MODE = os.getenv("LOG_FORMAT", "plain").strip().lower()  # 'plain' | 'json'


def configure_cli_logging(level=logging.INFO) -> None:
    # Let Azure Functions' worker manage handlers. Only set basicConfig if no handlers exist (local CLI / direct run).
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s - %(levelname)s - %(message)s",
        )


def new_run_id() -> str:
    rid = os.getenv("RUN_ID")
    if rid and rid.strip():
        return rid.strip()
    return uuid.uuid4().hex[:12].upper()


def _jsonify(v):
    try:
        return json.loads(json.dumps(v, default=str))
    except (TypeError, ValueError):
        return str(v)


def fmt_kv(msg: str, **kw) -> str:
    if LOG_FORMAT_MODE == "json":
        payload = {"ts": datetime.now(timezone.utc).isoformat(), "msg": msg, **kw}
        return json.dumps(payload, default=str)
    parts = [f"{k}={_jsonify(v)}" for k, v in kw.items()]
    return msg + (" | " + ", ".join(parts) if parts else "")


def log_kv(level: int, msg: str, **kw) -> None:
    logging.log(level, fmt_kv(msg, **kw))


@contextmanager
def timed(section: str, **kw):
    """Time a code section and always log duration (ms), even on exceptions."""
    t0 = time.perf_counter()
    try:
        yield
    except Exception:
        logging.exception("Section failed: %s", section)
        raise
    finally:
        ms = (time.perf_counter() - t0) * 1000.0
        log_kv(logging.INFO, "timing", section=section, ms=round(ms, 2), **kw)
