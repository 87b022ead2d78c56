import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncEngine

from src.core.config.settings import settings
from src.core.logging import logger
from src.domain.interfaces.infrastructure import IKeyValueStore
from src.infrastructure.database.async_db import check_database_health

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    env: str
    services: Dict[str, Any]
    timestamp: datetime


async def check_store_health(store: Optional[IKeyValueStore]) -> Dict[str, Any]:
    """Check key-value store connectivity."""
    if store is None:
        return {"status": "unconfigured"}
    try:
        healthy = await store.ping()
        return {"status": "healthy" if healthy else "unhealthy"}
    except Exception as e:
        logger.error("store_health_check_failed", error=str(e))
        return {"status": "unhealthy", "error": str(e)}


async def check_database_health_async(engine: Optional[AsyncEngine]) -> Dict[str, Any]:
    """Check database connection health."""
    if engine is None:
        return {"status": "unconfigured"}
    try:
        is_healthy = await check_database_health(engine)
        return {"status": "healthy" if is_healthy else "unhealthy"}
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))
        return {"status": "unhealthy", "error": str(e)}


@router.get("", response_model=HealthResponse)
async def health_check(request: Request):
    """
    Health check covering the key-value store, the database and the membership filter.
    """
    state = request.app.state
    components = getattr(state, "password_reset", None)
    store = components.store if components is not None else None

    store_health, db_health = await asyncio.gather(
        check_store_health(store),
        check_database_health_async(getattr(state, "db_engine", None)),
    )
    membership = components.membership_index.stats() if components is not None else {"ready": False}

    services_healthy = (
        store_health["status"] != "unhealthy"
        and db_health["status"] != "unhealthy"
        and membership.get("ready", False)
    )

    return HealthResponse(
        status="ok" if services_healthy else "degraded",
        env=settings.APP_ENV,
        services={
            "store": store_health,
            "database": db_health,
            "membership_filter": membership,
        },
        timestamp=datetime.now(timezone.utc),
    )
