"""Health check endpoint with database connectivity check. No authentication."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import check_db_connected, get_db
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> HealthResponse:
    """
    Return service status, version and whether the database answers.
    Always 200; an unreachable database reports status=degraded.
    """
    connected = check_db_connected(db)
    return HealthResponse(
        status="ok" if connected else "degraded",
        version=request.app.version,
        environment=get_settings().APP_ENV,
        database="connected" if connected else "disconnected",
    )
