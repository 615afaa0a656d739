"""
Pydantic models for newsletters and broadcast results.
"""

from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


# RFC 5322 caps a header line at 998 characters
MAX_SUBJECT_LENGTH = 998


class NewsletterCreate(BaseModel):
    """
    Validated create request, built from the multipart form fields.

    The orchestrator trusts its inputs, so this is where blank subjects
    are rejected.
    """
    subject: str = Field(max_length=MAX_SUBJECT_LENGTH)
    description: str = ""

    @field_validator("subject")
    @classmethod
    def subject_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("subject must not be blank")
        # Sent verbatim as the Subject header
        if "\r" in v or "\n" in v:
            raise ValueError("subject must be a single line")
        return v

    @field_validator("description", mode="before")
    @classmethod
    def description_none_to_empty(cls, v):
        return "" if v is None else v


class Newsletter(BaseModel):
    """Full newsletter record from database."""
    id: str
    subject: str
    description: str = ""
    image_url: str = ""  # "" means no image
    created_at: str
    updated_at: Optional[str] = None

    class Config:
        from_attributes = True

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return str(v)

    @field_validator("description", "image_url", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v


class BroadcastOutcome(BaseModel):
    """Result of one delivery attempt to one recipient. Never persisted."""
    email: str
    succeeded: bool
    error: Optional[str] = None


class FailedDelivery(BaseModel):
    email: str
    reason: str


class BroadcastSummary(BaseModel):
    """Aggregate of every outcome for one publish."""
    recipient_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    failed: List[FailedDelivery] = Field(default_factory=list)


class PublishResult(BaseModel):
    newsletter: Newsletter
    broadcast: BroadcastSummary


class NewsletterPage(BaseModel):
    """One page of newsletters, most recent first."""
    newsletters: List[Newsletter]
    total_count: int
    total_pages: int
    current_page: int
    limit: int


class DeleteResult(BaseModel):
    id: str
    # Non-fatal asset cleanup failures
    warnings: List[str] = Field(default_factory=list)
