"""
Pydantic models for the Quralyst waitlist API
"""
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


class WaitlistEntry(BaseModel):
    """One recorded email submission"""
    model_config = ConfigDict(populate_by_name=True)

    email: str
    timestamp: str  # ISO-8601, UTC
    id: int  # creation time in ms since epoch, not guaranteed unique
    ip: Optional[str] = None
    user_agent: Optional[str] = Field(default=None, alias="userAgent")

    def to_record(self) -> Dict[str, Any]:
        """Shape written to the JSON file and returned by the API"""
        return self.model_dump(by_alias=True, exclude_none=True)


class AppendResult(BaseModel):
    """Outcome of an append-with-dedup"""
    success: bool
    message: str
    entry: Optional[WaitlistEntry] = None
    total: int = 0
    error: Optional[str] = None  # invalid, duplicate, write, unavailable
