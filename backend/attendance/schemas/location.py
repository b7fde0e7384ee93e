"""
Pydantic schemas for saved organization locations.
"""

from datetime import datetime
from pydantic import BaseModel


class LocationResponse(BaseModel):
    id: str
    label: str
    address: str
    lat: float
    lng: float
    use_count: int
    last_used_at: datetime

    model_config = {"from_attributes": True}
