# centerline/api/routers/status.py
import logging
from fastapi import APIRouter, Depends
from typing import Dict, Any

from centerline.api.dependencies import get_core_config
from centerline.api.schemas.status import StatusResponse
from centerline.core.config import get_setting

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/status",
    tags=["Status"],
)

@router.get(
    "/",
    summary="Get basic API and configuration status",
    response_model=StatusResponse
)
async def get_status(config: Dict[str, Any] = Depends(get_core_config)):
    """
    Returns a simple status message indicating the API is running
    and that the core configuration was accessible.
    """
    logger.info("Status endpoint requested.")
    return {
        "status": "ok",
        "message": "Centerline API is running.",
        "storage_backend": get_setting('app.storage_backend', 'file'),
    }
