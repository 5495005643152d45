"""Health check endpoints."""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
import logging

from ..core.config import settings
from ..core.clock import local_now
from ..core.database import get_db, health_check_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """Basic health check"""
    return {
        "status": "OK",
        "service": "Tuition Center API",
        "version": settings.app_version,
        "environment": settings.environment,
        "timestamp": local_now().isoformat(),
    }


@router.get("/db")
async def database_health(session: AsyncSession = Depends(get_db)):
    """Database round trip through the request session"""
    try:
        await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        pool_ok = await health_check_db()
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "database": "unreachable", "pool_ok": pool_ok},
        )
    return {"status": "healthy", "database": "connected", "timestamp": local_now().isoformat()}
