"""Liveness endpoint with a database probe."""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text

from lovedev.core.config.settings import settings
from lovedev.core.logging import logger

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    env: str
    version: str
    services: Dict[str, Any]
    timestamp: datetime


async def check_database(request: Request) -> Dict[str, Any]:
    """Single round trip to the database; no retries."""
    try:
        async with request.app.state.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "healthy"}
    except Exception as e:  # noqa: BLE001
        logger.error("database_health_check_failed", error=str(e))
        return {"status": "unhealthy"}


@router.get("", response_model=HealthResponse)
async def health_check(request: Request):
    """Return 200 when the database answers, 503 otherwise."""
    database = await check_database(request)
    healthy = database["status"] == "healthy"
    body = HealthResponse(
        status="ok" if healthy else "degraded",
        env=settings.APP_ENV,
        version=settings.VERSION,
        services={"database": database},
        timestamp=datetime.now(timezone.utc),
    )
    if healthy:
        return body
    return JSONResponse(status_code=503, content=body.model_dump(mode="json"))
