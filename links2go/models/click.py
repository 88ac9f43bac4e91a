"""
Click event model for redirect analytics.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ClickEvent(BaseModel):
    """
    One recorded redirect.

    Pushed onto ``analytics:<short_code>`` as JSON with camelCase keys
    (``timestamp``, ``ip``, ``userAgent``, ``referer``).
    """

    timestamp: datetime = Field(default_factory=_utcnow, description="When the redirect happened")
    ip: str = Field(..., description="Client IP address")
    user_agent: Optional[str] = Field(None, description="User agent string")
    referer: Optional[str] = Field(None, description="HTTP referer")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "timestamp": "2025-10-29T10:30:00Z",
                "ip": "192.168.1.1",
                "userAgent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0",
                "referer": "https://twitter.com",
            }
        },
    )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)
