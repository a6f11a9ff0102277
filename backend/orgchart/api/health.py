import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import func, select

from orgchart.config import get_settings
from orgchart.db import SessionDep
from orgchart.models.employee import Employee

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["ok", "degraded", "error"]
    version: str
    environment: str
    employees: int | None = None


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep) -> HealthResponse:
    """Report service status and the size of the directory."""
    settings = get_settings()
    status: Literal["ok", "degraded", "error"] = "ok"
    employees: int | None = None

    try:
        result = await session.execute(select(func.count()).select_from(Employee))
        employees = result.scalar_one()
    except Exception:
        logger.exception("Health check: database connectivity failed")
        status = "degraded"

    return HealthResponse(
        status=status,
        version=settings.app_version,
        environment=settings.environment,
        employees=employees,
    )
