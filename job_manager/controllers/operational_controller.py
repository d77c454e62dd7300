"""
Operational/Infrastructure endpoints
These endpoints are used by monitoring systems, load balancers, and DevOps tools
"""

import os
import sys
import time
from datetime import datetime, timezone

import psutil
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from job_manager.container import ServiceContainer
from job_manager.core.errors import ErrorResponse
from job_manager.core.logger import logger

start_time = time.time()


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def health(container: ServiceContainer):
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": container.config.source_name,
        "timestamp": _timestamp(),
        "version": container.config.service_version,
    }


async def readiness(container: ServiceContainer):
    """Readiness check - database (and, for auth, every shard) must answer"""
    checks = {}
    try:
        await container.database.ping()
        checks["database"] = "connected"
        if container.shard_router is not None:
            shards = await container.shard_router.ping()
            checks["shards"] = {shard: "connected" if ok else "disconnected" for shard, ok in shards.items()}
            if not all(shards.values()):
                raise ErrorResponse("One or more auth shards are not reachable", status_code=503)
    except ErrorResponse as e:
        logger.error(f"Readiness check failed: {e.message}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "service": container.config.source_name,
                "timestamp": _timestamp(),
                "checks": checks,
                "error": e.message,
            }
        )

    if container.publisher is not None:
        checks["kafka_producer"] = "connected" if container.publisher.is_healthy() else "idle"

    return {
        "status": "ready",
        "service": container.config.source_name,
        "timestamp": _timestamp(),
        "checks": checks,
    }


def liveness(container: ServiceContainer):
    """Liveness check - the app is running"""
    return {
        "status": "alive",
        "service": container.config.source_name,
        "timestamp": _timestamp(),
        "uptime": time.time() - start_time,
    }


async def metrics(container: ServiceContainer):
    """Process metrics plus the number of events waiting for operator replay"""
    process = psutil.Process()
    memory_info = process.memory_info()

    undelivered = None
    if container.event_publisher is not None:
        try:
            undelivered = await container.event_publisher.undelivered_events.count_pending()
        except PyMongoError as e:
            logger.warning("Could not count undelivered events", error=e)

    return {
        "service": container.config.source_name,
        "timestamp": _timestamp(),
        "metrics": {
            "uptime": time.time() - start_time,
            "memory": {
                "rss": memory_info.rss,
                "vms": memory_info.vms,
            },
            "cpu_percent": process.cpu_percent(),
            "pid": os.getpid(),
            "python_version": sys.version,
            "undelivered_events": undelivered,
        }
    }
