# centerline/api/routers/settings.py
import logging
from fastapi import APIRouter, Depends, Request

from centerline.api.dependencies import get_session
from centerline.api.schemas.settings import SettingsResponse, SettingsUpdate
from centerline.core.session import Session

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/settings",
    tags=["Settings"],
)


def _settings_response(session: Session, request: Request) -> SettingsResponse:
    builder = session.qr_builder(str(request.base_url).rstrip('/'))
    return SettingsResponse(
        **session.settings.as_dict(),
        needs_public_url_setup=builder.needs_public_url_setup,
    )


@router.get(
    "",
    summary="Current operator settings",
    response_model=SettingsResponse
)
async def get_settings(request: Request, session: Session = Depends(get_session)):
    return _settings_response(session, request)


@router.put(
    "",
    summary="Change operator settings",
    response_model=SettingsResponse
)
async def update_settings(update: SettingsUpdate, request: Request, session: Session = Depends(get_session)):
    changes = update.model_dump(exclude_unset=True)
    session.update_settings(**changes)
    logger.info(f"Settings updated: {', '.join(changes) or 'nothing'}.")
    return _settings_response(session, request)
