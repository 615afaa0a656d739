"""
Pydantic model for broadcast recipients (rows of the ``users`` table).
"""

from typing import Optional
from pydantic import BaseModel, field_validator


class Recipient(BaseModel):
    """A registered recipient. Only the email matters to a broadcast."""
    id: str
    email: str
    created_at: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return str(v)
