"""
Pydantic schemas for organization accounts and authentication.
"""

from datetime import datetime
from pydantic import BaseModel, Field


class OrganizationCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=100, pattern=r"^[a-zA-Z0-9_-]+$")
    name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=8, max_length=128)


class OrganizationLogin(BaseModel):
    username: str
    password: str


class OrganizationResponse(BaseModel):
    id: str
    username: str
    name: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
