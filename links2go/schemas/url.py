from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime

from links2go.models.click import ClickEvent


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ShortenRequest(CamelModel):
    # Plain str: scheme and shape are checked by the service so that a bad
    # URL yields the same InvalidUrlError from the API and from direct calls
    url: str = Field(..., min_length=1, description="The original URL to be shortened")
    custom_code: Optional[str] = Field(None, description="Optional custom short code")
    expires_in: Optional[float] = Field(None, gt=0, description="Lifetime in seconds")


class ShortenResponse(CamelModel):
    short_code: str
    short_url: str
    original_url: str
    expires_at: Optional[datetime] = None


class AnalyticsResponse(CamelModel):
    short_code: str
    original_url: str
    click_count: int
    created_at: datetime
    expires_at: Optional[datetime] = None
    is_active: bool
    recent_clicks: List[ClickEvent] = Field(default_factory=list)


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
