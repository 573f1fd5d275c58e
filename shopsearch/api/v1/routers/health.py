# shopsearch/api/v1/routers/health.py
import time
import subprocess
from fastapi import APIRouter, Request
from shopsearch.core.config import get_settings
from shopsearch.db import mongo
from shopsearch.db.redis import get_redis  # returns Redis instance or None

router = APIRouter(tags=["health"])
START_TIME = time.time()


def _git_sha(short: bool = True) -> str:
    try:
        cmd = ["git", "rev-parse", "--short" if short else "HEAD"]
        return subprocess.check_output(cmd, stderr=subprocess.DEVNULL).decode().strip()
    except (OSError, subprocess.CalledProcessError):
        return "unknown"


@router.get("/health")
async def health(request: Request):
    """
    Tolerant health check:
    - Mongo ping (required for the engine)
    - Redis 'skipped' when not configured
    - similarity index version/size; an unbuilt index is degraded, not down
    """
    settings = get_settings()
    checks: dict[str, object] = {
        "app_name": settings.APP_NAME,
        "env": settings.APP_ENV,
        "debug": settings.DEBUG,
        "version": settings.GIT_SHA if settings.GIT_SHA != "unknown" else _git_sha(),
        "uptime_seconds": int(time.time() - START_TIME),
    }

    # --- Mongo ---
    db = mongo.get_db()
    if db is None:
        checks["mongodb"] = "error: not configured"
    else:
        try:
            await db.command("ping")
            checks["mongodb"] = "ok"
        except Exception as e:
            checks["mongodb"] = f"error: {e}"

    # --- Redis (tolerant) ---
    try:
        r = get_redis()
        if r:
            await r.ping()
            checks["redis"] = "ok"
        else:
            checks["redis"] = "skipped"
    except Exception as e:
        checks["redis"] = f"error: {e}"

    # --- Index ---
    engine = getattr(request.app.state, "engine", None)
    state = engine.index.state if engine is not None else None
    checks["index"] = {
        "built": bool(state is not None and len(state.catalog)),
        "version": state.version if state else 0,
        "products": len(state.catalog) if state else 0,
        "built_at": state.built_at.isoformat() if state else None,
    }

    def _is_ok(v):
        return v in ("ok", "skipped")

    status = "ok" if all(_is_ok(checks.get(k)) for k in ("mongodb", "redis")) else "error"
    if status == "ok" and not checks["index"]["built"]:
        status = "degraded"

    return {"status": status, "checks": checks, "timestamp": int(time.time())}
