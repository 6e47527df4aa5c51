# centerline/api/routers/layout.py
import logging
from fastapi import APIRouter, Body, Depends, HTTPException, status
from typing import List

from centerline.api.dependencies import get_store
from centerline.api.schemas.point import SaveResult
from centerline.core.exceptions import StoreError
from centerline.core.models import MachineModule
from centerline.core.storage import CatalogStore

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/layout",
    tags=["Layout"],
)


@router.get(
    "",
    summary="List stored layout modules",
    response_model=List[MachineModule]
)
async def list_layout(store: CatalogStore = Depends(get_store)) -> List[MachineModule]:
    try:
        modules = store.load_layout() or []
    except StoreError as e:
        logger.error(f"Failed to read stored layout: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to read layout")
    logger.info(f"Returning {len(modules)} layout modules.")
    return modules


@router.post(
    "",
    summary="Overwrite the stored layout",
    response_model=SaveResult
)
async def save_layout(modules: List[MachineModule] = Body(...), store: CatalogStore = Depends(get_store)):
    try:
        store.save_layout(modules)
    except StoreError as e:
        logger.error(f"Failed to write layout: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save layout")
    logger.info(f"Stored {len(modules)} layout modules.")
    return {"success": True}
