# centerline/api/routers/views.py
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from typing import Optional

from centerline.api.dependencies import get_session
from centerline.api.schemas.views import DialSceneResponse, MapSceneResponse
from centerline.core.export import checklist_csv, checklist_frame
from centerline.core.models import PointStatus, Zone
from centerline.core.projection.map_projector import MapProjector, MapScene, RenderMode
from centerline.core.projection.phase_projector import DialScene, PhaseProjector
from centerline.core.session import Session
from centerline.core.visualization.renderer import MEDIA_TYPES, render_dial, render_map

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/views",
    tags=["Views"],
)


def _map_scene(session: Session, width: float, height: float, selected: Optional[str],
               mode: RenderMode) -> MapScene:
    projector = MapProjector(width, height, custom_map_url=session.settings.custom_map_url)
    return projector.project(session.points.points, selected_id=selected, mode=mode)


def _dial_scene(session: Session, angle: float) -> DialScene:
    return PhaseProjector.from_config().project(session.points.points, angle)


def _image_response(image_bytes: Optional[bytes], fmt: str, what: str) -> Response:
    if image_bytes is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to render {what}."
        )
    return Response(content=image_bytes, media_type=MEDIA_TYPES[fmt])


@router.get(
    "/map",
    summary="Marker placement for the machine map",
    response_model=MapSceneResponse
)
async def get_map_scene(
    width: float = Query(1000.0, gt=0, description="Surface width in pixels."),
    height: float = Query(500.0, gt=0, description="Surface height in pixels."),
    selected: Optional[str] = Query(None, description="Id of the selected point."),
    mode: RenderMode = Query(RenderMode.SCREEN, description="screen or print."),
    session: Session = Depends(get_session),
):
    scene = _map_scene(session, width, height, selected, mode)
    return MapSceneResponse(
        width=scene.width,
        height=scene.height,
        mode=scene.mode.value,
        background_image_url=scene.background.image_url,
        regions=[{
            'zone': r.zone.value, 'label': r.label, 'x': r.x, 'y': r.y,
            'width': r.width, 'height': r.height, 'color': r.color,
        } for r in scene.background.regions],
        markers=[{
            'point_id': m.point_id, 'number': m.number, 'label': m.label,
            'criticality': m.criticality.value, 'x': m.x, 'y': m.y,
            'left_pct': m.left_pct, 'top_pct': m.top_pct,
            'role': m.role.value, 'z_order': m.z_order,
        } for m in scene.draw_order()],
    )


@router.get(
    "/map.png",
    summary="Rendered machine map image",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}}
)
async def get_map_image(
    selected: Optional[str] = Query(None, description="Id of the selected point."),
    mode: RenderMode = Query(RenderMode.SCREEN, description="screen or print."),
    session: Session = Depends(get_session),
):
    scene = _map_scene(session, 1000.0, 500.0, selected, mode)
    return _image_response(render_map(scene, 'png'), 'png', 'map')


@router.get(
    "/phasing",
    summary="Points on the phasing dial",
    response_model=DialSceneResponse
)
async def get_dial_scene(
    angle: float = Query(0.0, ge=0, le=360, description="Simulated machine angle in degrees."),
    session: Session = Depends(get_session),
):
    scene = _dial_scene(session, angle)
    return DialSceneResponse(
        simulated_angle=scene.simulated_angle,
        near_threshold=scene.near_threshold,
        radius=scene.radius,
        center_x=scene.center[0],
        center_y=scene.center[1],
        needle_x=scene.needle_tip[0],
        needle_y=scene.needle_tip[1],
        markers=[{
            'point_id': m.point_id, 'number': m.number, 'name': m.name,
            'phase_angle': m.phase_angle, 'x': m.x, 'y': m.y, 'near': m.near,
        } for m in scene.markers],
    )


@router.get(
    "/phasing.png",
    summary="Rendered phasing dial image",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}}
)
async def get_dial_image(
    angle: float = Query(0.0, ge=0, le=360, description="Simulated machine angle in degrees."),
    mode: RenderMode = Query(RenderMode.SCREEN, description="screen or print."),
    session: Session = Depends(get_session),
):
    scene = _dial_scene(session, angle)
    return _image_response(render_dial(scene, mode, 'png'), 'png', 'phasing dial')


@router.get(
    "/checklist.csv",
    summary="Printable checklist as CSV",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}}
)
async def get_checklist(
    q: str = Query('', description="Text matched against point name or id."),
    zone: Optional[Zone] = Query(None),
    point_status: Optional[PointStatus] = Query(None, alias="status"),
    session: Session = Depends(get_session),
):
    df = checklist_frame(session.points.points, q, zone, point_status)
    logger.info(f"Checklist export with {len(df)} rows.")
    return Response(
        content=checklist_csv(df),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="centerline_checklist.csv"'},
    )
