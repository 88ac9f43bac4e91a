from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class UrlRecord(BaseModel):
    """
    Canonical record for one shortened URL.

    Stored as the Redis hash ``url:<short_code>``. There is no tombstone
    state: a deleted record is physically removed from the store.

    ``expires_at`` is kept both as a field (checked on every read) and as
    a store-level EXPIREAT, so the application decides between "expired"
    and "not found" even before Redis evicts the key.
    """

    short_code: str
    original_url: str
    created_at: datetime
    expires_at: Optional[datetime] = None
    click_count: int = Field(default=0, ge=0)
    is_active: bool = True

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now
