# centerline/api/schemas/point.py
from pydantic import BaseModel, Field

from centerline.core.models import PointStatus


class SaveResult(BaseModel):
    """Acknowledgement returned after a collection has been overwritten."""
    success: bool = Field(..., description="True when the collection was written to disk")

    model_config = {
        "json_schema_extra": {
            "example": {"success": True}
        }
    }


class StatusUpdate(BaseModel):
    """Narrow status change for a single point; only status and lastChecked are touched."""
    status: PointStatus = Field(..., description="New status: OK, TaggedYellow or TaggedRed")

    model_config = {
        "json_schema_extra": {
            "example": {"status": "TaggedYellow"}
        }
    }


class QrLinkResponse(BaseModel):
    point_id: str = Field(..., description="Identifier of the point the link opens")
    deep_link: str = Field(..., description="URL that opens the dashboard at this point")
    qr_image_url: str = Field(..., description="Request URL for the QR image of the deep link")
    base_url: str = Field(..., description="Base the deep link was built from")
    needs_public_url_setup: bool = Field(..., description="True when the link is unlikely to open on another device")
    size: int = Field(..., description="QR image size in pixels")

    model_config = {
        "json_schema_extra": {
            "example": {
                "point_id": "LSK-B1",
                "deep_link": "http://192.168.1.20:3000/?p=LSK-B1",
                "qr_image_url": "https://api.qrserver.com/v1/create-qr-code/?size=200x200&data=http%3A%2F%2F192.168.1.20%3A3000%2F%3Fp%3DLSK-B1&margin=4&ecc=M&format=svg",
                "base_url": "http://192.168.1.20:3000",
                "needs_public_url_setup": False,
                "size": 200
            }
        }
    }
