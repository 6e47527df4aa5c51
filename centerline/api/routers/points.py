# centerline/api/routers/points.py
import logging
from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, status
from typing import Any, Dict, List, Optional

from centerline.api.dependencies import get_session, get_store
from centerline.api.schemas.point import QrLinkResponse, SaveResult, StatusUpdate
from centerline.core.catalog import check_unique_ids, patch_point, set_point_status
from centerline.core.config import get_setting
from centerline.core.exceptions import DuplicatePointError, PointNotFoundError, PointValidationError, StoreError
from centerline.core.models import Point
from centerline.core.session import Session
from centerline.core.storage import CatalogStore

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/points",
    tags=["Points"],
)


def _load_stored_points(store: CatalogStore) -> List[Point]:
    try:
        return store.load_points() or []
    except StoreError as e:
        logger.error(f"Failed to read stored points: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to read points"
        )


def _save_points(store: CatalogStore, points: List[Point]) -> None:
    try:
        store.save_points(points)
    except StoreError as e:
        logger.error(f"Failed to write points: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save points"
        )


@router.get(
    "",
    summary="List stored points",
    response_model=List[Point]
)
async def list_points(store: CatalogStore = Depends(get_store)) -> List[Point]:
    """Returns the persisted point collection, or an empty list when nothing was saved yet."""
    points = _load_stored_points(store)
    logger.info(f"Returning {len(points)} stored points.")
    return points


@router.post(
    "",
    summary="Overwrite the stored point collection",
    response_model=SaveResult,
    responses={409: {"description": "Duplicate point ids while unique ids are enforced."}}
)
async def save_points(points: List[Point] = Body(...), store: CatalogStore = Depends(get_store)):
    """Replaces the whole collection (last write wins)."""
    if get_setting('app.catalog.enforce_unique_ids', False):
        try:
            check_unique_ids(points)
        except DuplicatePointError as e:
            logger.warning(f"Rejected point collection: {e}")
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    _save_points(store, points)
    logger.info(f"Stored {len(points)} points.")
    return {"success": True}


@router.patch(
    "/{point_id}",
    summary="Merge a partial update into one point",
    response_model=Point,
    responses={
        404: {"description": "No point with this id is stored."},
        422: {"description": "The merged record is not a valid point."},
    }
)
async def update_point(point_id: str, updates: Dict[str, Any] = Body(...),
                       store: CatalogStore = Depends(get_store)) -> Point:
    points = _load_stored_points(store)
    try:
        new_points, updated = patch_point(points, point_id, updates)
    except PointNotFoundError:
        logger.warning(f"PATCH for unknown point '{point_id}'.")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Point not found")
    except PointValidationError as e:
        logger.info(f"PATCH for point '{point_id}' rejected: {e}")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[issue._asdict() for issue in e.issues]
        )
    _save_points(store, new_points)
    logger.info(f"Patched point '{point_id}' ({', '.join(updates) or 'no fields'}).")
    return updated


@router.put(
    "/{point_id}/status",
    summary="Set the status of one point",
    response_model=Point,
    responses={404: {"description": "No point with this id is stored."}}
)
async def update_point_status(point_id: str, update: StatusUpdate,
                              store: CatalogStore = Depends(get_store)) -> Point:
    """Only `status` and `lastChecked` change; every other field is kept."""
    points = _load_stored_points(store)
    try:
        new_points, updated = set_point_status(points, point_id, update.status)
    except PointNotFoundError:
        logger.warning(f"Status update for unknown point '{point_id}'.")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Point not found")
    _save_points(store, new_points)
    logger.info(f"Status of '{point_id}' set to {update.status.value}.")
    return updated


@router.get(
    "/{point_id}/qr",
    summary="Deep link and QR image request for one point",
    response_model=QrLinkResponse,
    responses={404: {"description": "Point not found in the catalog."}}
)
async def get_point_qr(
    request: Request,
    point_id: str,
    size: Optional[int] = Query(None, gt=0, le=2000, description="QR image size in pixels."),
    origin: Optional[str] = Query(None, description="Origin the dashboard is served from; defaults to this server."),
    session: Session = Depends(get_session),
):
    try:
        session.points.get(point_id)
    except PointNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Point not found")

    origin = origin or str(request.base_url).rstrip('/')
    size = size or int(get_setting('services.qr.default_size', 200))
    builder = session.qr_builder(origin)
    return QrLinkResponse(
        point_id=point_id,
        deep_link=builder.deep_link(point_id),
        qr_image_url=builder.qr_image_url(point_id, size),
        base_url=builder.effective_base_url,
        needs_public_url_setup=builder.needs_public_url_setup,
        size=size,
    )
