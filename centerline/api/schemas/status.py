# centerline/api/schemas/status.py
from pydantic import BaseModel, Field

class StatusResponse(BaseModel):
    """Basic status response model."""
    status: str = Field(..., examples=["ok"])
    message: str = Field(..., examples=["Centerline API is running."])
    storage_backend: str = Field(..., examples=["file"])

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "ok",
                "message": "Centerline API is running.",
                "storage_backend": "file"
            }
        }
    }
