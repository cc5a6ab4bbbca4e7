import uuid
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ConcallSummaryCreate(BaseModel):
    """A summary produced by the ingestion pipeline, ready to be persisted."""

    id: UUID = Field(default_factory=uuid.uuid4)
    name: str
    date: str = Field(..., description="Filing date, YYYY-MM-DD")
    guidance: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ConcallLite(BaseModel):
    """Projection returned by list/find: no identifiers, no timestamps."""

    name: str
    date: str
    guidance: str

    model_config = ConfigDict(from_attributes=True)


class PageMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int = Field(..., serialization_alias="totalPages")
    query: str | None = None


class ConcallPage(BaseModel):
    meta: PageMeta
    data: list[ConcallLite] = Field(default_factory=list)

    def to_response(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class DuplicateMember(BaseModel):
    id: UUID
    created_at: datetime


class DuplicateGroup(BaseModel):
    """All stored records sharing one name, when there is more than one."""

    name: str
    members: list[DuplicateMember]

    @property
    def count(self) -> int:
        return len(self.members)


class CleanupReport(BaseModel):
    na_guidance_deleted: int = 0
    duplicates_deleted: int = 0
    duplicate_names_processed: int = 0
    failed_groups: list[str] = Field(default_factory=list)

    @property
    def total_deleted(self) -> int:
        return self.na_guidance_deleted + self.duplicates_deleted

    def to_response(self) -> dict[str, Any]:
        summary = {
            "naGuidanceDeleted": self.na_guidance_deleted,
            "duplicatesDeleted": self.duplicates_deleted,
            "duplicateNamesProcessed": self.duplicate_names_processed,
            "totalDeleted": self.total_deleted,
        }
        if self.failed_groups:
            summary["failedGroups"] = self.failed_groups
        return {"message": "Cleanup completed successfully", "summary": summary}


class EndpointStat(BaseModel):
    endpoint: str
    count: int


class AnalyticsSummary(BaseModel):
    total_visits: int = 0
    unique_users: int = 0
    api_hits: int = 0
    endpoint_stats: dict[str, int] = Field(default_factory=dict)
    last_updated: datetime = Field(default_factory=lambda: datetime.now(UTC))
