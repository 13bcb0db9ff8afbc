import logging

from fastapi import APIRouter, Depends, HTTPException
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cantina.app.core import redis_client as redis_module
from cantina.app.db.session import get_session


logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz() -> dict[str, bool]:
    """Basic liveness probe."""
    return {"ok": True}


@router.get("/readiness")
async def readiness(session: AsyncSession = Depends(get_session)) -> dict[str, bool]:
    """Ensure the database and Redis are reachable."""
    if redis_module.redis_client is None:
        raise HTTPException(status_code=503, detail="Redis unavailable")

    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error(f"Readiness check failed on database: {exc}")
        raise HTTPException(status_code=503, detail="Database unavailable") from exc
    try:
        await redis_module.redis_client.ping()
    except RedisError as exc:
        logger.error(f"Readiness check failed on Redis: {exc}")
        raise HTTPException(status_code=503, detail="Redis unavailable") from exc

    return {"ready": True}
