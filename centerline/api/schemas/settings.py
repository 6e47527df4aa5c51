# centerline/api/schemas/settings.py
from pydantic import BaseModel, Field
from typing import Optional


class SettingsResponse(BaseModel):
    sidebar_collapsed: bool = Field(..., description="Whether the navigation sidebar is collapsed")
    custom_map_url: str = Field(..., description="Custom map background image; empty for the built-in schematic")
    public_base_url: str = Field(..., description="Base URL used for QR links when served from a local host")
    needs_public_url_setup: bool = Field(..., description="True when QR links from this deployment would not open on a phone")

    model_config = {
        "json_schema_extra": {
            "example": {
                "sidebar_collapsed": False,
                "custom_map_url": "",
                "public_base_url": "http://192.168.1.20:3000",
                "needs_public_url_setup": False
            }
        }
    }


class SettingsUpdate(BaseModel):
    """Partial settings change; omitted fields are left as they are."""
    sidebar_collapsed: Optional[bool] = None
    custom_map_url: Optional[str] = None
    public_base_url: Optional[str] = None
