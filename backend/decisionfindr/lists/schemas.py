"""Prospect list schemas."""

from pydantic import Field

from decisionfindr.search.schemas import CamelModel, SearchResult

DEFAULT_LIST_COLOR = "#3b82f6"


class ProspectList(CamelModel):
    """A named, user-curated collection of prospects."""
    id: str
    name: str
    description: str = ""
    color: str = DEFAULT_LIST_COLOR
    created_at: int
    updated_at: int
    prospects: list[SearchResult] = Field(default_factory=list)


class ProspectListSummary(CamelModel):
    id: str
    name: str
    description: str = ""
    color: str = DEFAULT_LIST_COLOR
    created_at: int
    updated_at: int
    prospect_count: int = 0

    @classmethod
    def of(cls, prospect_list: ProspectList) -> "ProspectListSummary":
        return cls(
            **prospect_list.model_dump(exclude={"prospects"}),
            prospect_count=len(prospect_list.prospects),
        )


class ListCreateRequest(CamelModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    color: str | None = None
    prospects: list[SearchResult] = Field(default_factory=list)


class ListUpdateRequest(CamelModel):
    name: str | None = Field(None, min_length=1)
    description: str | None = None
    color: str | None = None


class AddProspectsRequest(CamelModel):
    prospects: list[SearchResult] = Field(..., min_length=1)


class RemoveProspectsRequest(CamelModel):
    """Prospects to drop, by identity key (the id, or ``name_email``)."""
    identity_keys: list[str] = Field(..., min_length=1)


class AddProspectsResponse(CamelModel):
    prospect_list: ProspectList
    added_count: int = 0
