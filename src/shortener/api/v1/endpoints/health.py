from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from src.shortener.api.deps import get_app_settings, get_service, run_store_call
from src.shortener.core.config import Settings, logger
from src.shortener.core.exceptions import StoreUnavailableError
from src.shortener.schemas.url import HealthStatus
from src.shortener.services.url_service import URLService

router = APIRouter()


@router.get("/healthz", response_model=HealthStatus)
async def liveness():
    """Report that the process is alive."""
    return {"status": "ok"}


@router.get("/readyz", response_model=HealthStatus, responses={503: {"model": HealthStatus}})
async def readiness(
    service: URLService = Depends(get_service),
    settings: Settings = Depends(get_app_settings),
):
    """Report whether the backing store is reachable."""
    try:
        await run_store_call(settings, service.ping)
    except StoreUnavailableError as e:
        logger.warning(f"Readiness check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "unavailable"})
    return {"status": "ok"}
