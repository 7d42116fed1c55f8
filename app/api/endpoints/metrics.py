# app/api/endpoints/metrics.py

import os
import time

import psutil
import redis.asyncio as redis
from fastapi import APIRouter, Depends
from loguru import logger

from app.core.config import settings
from app.core.database import check_connection
from app.core.rbac import require_international
from app.models.profile import Profile

router = APIRouter(
    prefix="/api/metrics",
    tags=["System & Metrics"]
)

# Track when the module is loaded for uptime calculation
START_TIME = time.time()


async def _database_status() -> tuple[str, float]:
    started = time.time()
    try:
        await check_connection()
        return "Connected", round((time.time() - started) * 1000, 2)
    except Exception as e:
        logger.warning(f"Health check: database unreachable ({e})")
        return "Error", 0.0


# ===================================================================
# 1. SYSTEM METRICS (public)
# ===================================================================
@router.get("")
async def metrics():
    try:
        disk_usage = psutil.disk_usage("/").percent
    except OSError:
        disk_usage = 0

    database, db_latency = await _database_status()

    return {
        "status": "Online",
        "uptime": int(time.time() - START_TIME),
        "cpu": psutil.cpu_percent(interval=None),
        "ram": psutil.virtual_memory().percent,
        "disk": disk_usage,
        "database": database,
        "db_latency": db_latency,
        "storage": "Configured" if settings.SUPABASE_URL and settings.SUPABASE_KEY else "Not Configured",
        "webhook": "Configured" if settings.WEBHOOK_URL else "Not Configured",
        "environment": "Serverless (Vercel)" if os.environ.get("VERCEL") else settings.ENV,
    }


# ===================================================================
# 2. RATE-LIMIT STORE (international office only)
# ===================================================================
@router.get("/redis-stats")
async def get_redis_statistics(_: Profile = Depends(require_international)):
    if not settings.REDIS_URL:
        return {"status": "Disabled", "message": "Redis is not configured."}

    client = None
    try:
        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=2
        )

        info = await client.info()
        dbsize = await client.dbsize()

        active_limits = []
        async for key in client.scan_iter(match="LIMITER/*", count=100):
            active_limits.append(key)
            if len(active_limits) >= 20:
                break

        return {
            "status": "Online",
            "metrics": {
                "redis_version": info.get("redis_version"),
                "connected_clients": info.get("connected_clients"),
                "used_memory": info.get("used_memory_human"),
                "total_keys": dbsize,
                "active_rate_limit_windows": len(active_limits),
            }
        }

    except redis.ConnectionError:
        return {"status": "Offline", "detail": "Redis server unreachable."}
    except Exception as e:
        logger.exception("Redis stats failed")
        return {"status": "Error", "detail": str(e)}
    finally:
        if client:
            await client.aclose()
