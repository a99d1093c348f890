from pydantic import BaseModel, ConfigDict
from datetime import datetime


class ShortenRequest(BaseModel):
    url: str


class URL(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    original_url: str
    created_at: datetime
    updated_at: datetime


class HealthStatus(BaseModel):
    status: str
