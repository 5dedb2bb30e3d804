# This project was developed with assistance from AI tools.
"""Liveness and database connectivity."""

from db import DatabaseService, get_db_service
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from .. import __version__
from ..core.config import settings

router = APIRouter()


class HealthItem(BaseModel):
    name: str
    status: str
    message: str
    version: str | None = None


@router.get("/", response_model=list[HealthItem])
async def health(db: DatabaseService = Depends(get_db_service)) -> list[HealthItem]:
    db_ok = await db.health_check()
    return [
        HealthItem(
            name=settings.APP_NAME,
            status="healthy",
            message="API is running",
            version=__version__,
        ),
        HealthItem(
            name="Database",
            status="healthy" if db_ok else "unhealthy",
            message="PostgreSQL reachable" if db_ok else "PostgreSQL unreachable",
        ),
    ]
