"""
Data models for query keys, source policy and API responses.
Implements schema validation with Pydantic.
"""
from typing import FrozenSet, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


VIEWS = frozenset({"collected", "occurred"})


class QueryKey(BaseModel):
    """
    Identifies one filtered projection of a day's events.

    Attributes:
        view: Collection axis, e.g. "collected" or "occurred"
        date: Calendar day as YYYY-MM-DD
        source: Optional source_id filter
        prefix: Optional DOI prefix filter
        work: Optional DOI of a single work (may contain slashes)
    """
    model_config = ConfigDict(frozen=True)

    view: str = Field(..., min_length=1)
    date: str = Field(..., min_length=1)
    source: Optional[str] = None
    prefix: Optional[str] = None
    work: Optional[str] = None

    @field_validator('view', 'date', 'source', 'prefix')
    @classmethod
    def validate_segment(cls, v: Optional[str]) -> Optional[str]:
        """Single path segments may not contain a slash"""
        if v is not None and "/" in v:
            raise ValueError(f"Path segment may not contain '/': {v}")
        return v

    @field_validator('work')
    @classmethod
    def validate_work(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v:
            raise ValueError("Work may not be empty")
        return v

    @model_validator(mode="after")
    def validate_shape(self) -> "QueryKey":
        # The prefix of a work key is derived from the work.
        if self.prefix is not None and self.work is not None:
            raise ValueError("prefix and work are mutually exclusive")
        return self

    def with_date(self, date: str) -> "QueryKey":
        """Same key shape, different day"""
        return self.model_copy(update={"date": date})


class Meta(BaseModel):
    """Envelope metadata. Serialized with hyphenated keys."""
    model_config = ConfigDict(populate_by_name=True)

    status: str = "ok"
    message_type: str = Field("event-list", alias="message-type")
    total: int = 0
    total_pages: int = Field(1, alias="total-pages")
    page: int = 1
    previous: Optional[str] = None
    next: Optional[str] = None


class SourcePolicy(BaseModel):
    """
    Process-wide source snapshot, loaded once at startup.

    Attributes:
        allowed: Source ids that may be served unless the client overrides
        excluded: Source ids dropped from every view before caching
    """
    model_config = ConfigDict(frozen=True)

    allowed: FrozenSet[str] = frozenset()
    excluded: FrozenSet[str] = frozenset()


class StatsResponse(BaseModel):
    """Response for statistics endpoint"""
    enqueued: int = Field(..., description="Uploads accepted by the queue")
    dropped: int = Field(..., description="Uploads dropped because the queue was full")
    uploaded: int = Field(..., description="Uploads written to the object store")
    failed: int = Field(..., description="Uploads that raised")
    queue_size: int = Field(..., description="Uploads currently waiting")
    uptime: str = Field(..., description="Service uptime")


class HealthResponse(BaseModel):
    """Response for health check endpoint"""
    status: str
    timestamp: str
