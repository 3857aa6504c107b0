"""Health check endpoint with database connectivity and CMS configuration status."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from seofix.core.config import settings
from seofix.core.database import check_db_connected, get_db
from seofix.schemas.health import HealthResponse
from seofix.services.cms_adapter import build_cms_adapter
from seofix.services.errors import ConfigurationError

router = APIRouter()


def _cms_configured() -> bool:
    try:
        build_cms_adapter(settings)
    except ConfigurationError:
        return False
    return True


@router.get("/", response_model=HealthResponse)
def get_health(db: Session = Depends(get_db)) -> HealthResponse:
    """
    Return service health status and database connectivity.
    Used by load balancers and monitoring; never calls the CMS.
    """
    db_status = "connected" if check_db_connected(db) else "disconnected"

    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        database=db_status,
        cms_platform=settings.CMS_PLATFORM,
        cms_configured=_cms_configured(),
    )
