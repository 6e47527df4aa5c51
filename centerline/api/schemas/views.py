# centerline/api/schemas/views.py
from pydantic import BaseModel, Field
from typing import List, Optional


class MapMarkerInfo(BaseModel):
    point_id: str
    number: int
    label: str
    criticality: str
    x: float = Field(..., description="Marker center on the surface, pixels from the left")
    y: float = Field(..., description="Marker center on the surface, pixels from the top")
    left_pct: float = Field(..., description="Marker center, % of surface width")
    top_pct: float = Field(..., description="Marker center, % of surface height")
    role: str = Field(..., description="normal, selected or preview")
    z_order: int


class SchematicRegionInfo(BaseModel):
    zone: str
    label: str
    x: float
    y: float
    width: float
    height: float
    color: str


class MapSceneResponse(BaseModel):
    """Marker placement for the machine map, as computed by the map projector."""
    width: float
    height: float
    mode: str
    background_image_url: Optional[str] = Field(None, description="Custom background, if one is configured")
    regions: List[SchematicRegionInfo] = Field(default_factory=list, description="Built-in schematic when no custom background is set")
    markers: List[MapMarkerInfo]

    model_config = {
        "json_schema_extra": {
            "example": {
                "width": 1000,
                "height": 500,
                "mode": "screen",
                "background_image_url": None,
                "regions": [],
                "markers": [{
                    "point_id": "LSK-B1", "number": 1, "label": "1", "criticality": "High",
                    "x": 100.0, "y": 105.0, "left_pct": 10.0, "top_pct": 21.0,
                    "role": "normal", "z_order": 20
                }]
            }
        }
    }


class DialMarkerInfo(BaseModel):
    point_id: str
    number: int
    name: str
    phase_angle: float
    x: float
    y: float
    near: bool = Field(..., description="Within the near threshold of the simulated angle")


class DialSceneResponse(BaseModel):
    """Points with a phase angle placed on the 360° dial."""
    simulated_angle: float
    near_threshold: float
    radius: float
    center_x: float
    center_y: float
    needle_x: float
    needle_y: float
    markers: List[DialMarkerInfo]

    model_config = {
        "json_schema_extra": {
            "example": {
                "simulated_angle": 0.0,
                "near_threshold": 10.0,
                "radius": 120.0,
                "center_x": 150.0,
                "center_y": 150.0,
                "needle_x": 150.0,
                "needle_y": 30.0,
                "markers": [{
                    "point_id": "LSK-CB2", "number": 40, "name": "Knife stop position CB-2",
                    "phase_angle": 2.8, "x": 155.86, "y": 30.14, "near": True
                }]
            }
        }
    }
