"""Search API schemas (request/response models and canonical records)."""

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Upstream placeholder for a missing value.
NULL_SENTINEL = "[null]"


class CamelModel(BaseModel):
    """Base model speaking camelCase on the wire and in stored JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def clean_terms(values: list[str] | None) -> list[str]:
    """Strip whitespace and drop empty entries."""
    return [v.strip() for v in values or [] if v and v.strip()]


def split_terms(raw: str | None) -> list[str]:
    """Parse a comma separated query-string value into terms."""
    if not raw:
        return []
    return clean_terms(raw.split(","))


# =============================================================================
# Enums
# =============================================================================

class ResultsView(str, Enum):
    """Which result set the results page shows."""
    SEARCH = "search"
    ACCUMULATED = "accumulated"


# =============================================================================
# Canonical Records
# =============================================================================

class SearchParams(CamelModel):
    """Free-text search criteria. Order of entries is not significant."""
    job_titles: list[str] = Field(default_factory=list)
    companies: list[str] = Field(default_factory=list)
    job_levels: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)

    def normalized(self) -> "SearchParams":
        return SearchParams(
            job_titles=clean_terms(self.job_titles),
            companies=clean_terms(self.companies),
            job_levels=clean_terms(self.job_levels),
            locations=clean_terms(self.locations),
            keywords=clean_terms(self.keywords),
        )

    def has_search_terms(self) -> bool:
        return bool(clean_terms(self.job_titles) or clean_terms(self.companies))

    @classmethod
    def from_query(cls, titles: str | None, companies: str | None) -> "SearchParams":
        return cls(job_titles=split_terms(titles), companies=split_terms(companies))


class ProvenanceTag(CamelModel):
    """The search that first produced an accumulated result."""
    job_titles: list[str] = Field(default_factory=list)
    companies: list[str] = Field(default_factory=list)
    timestamp: int


class SearchResult(CamelModel):
    """A canonical prospect record."""
    id: str = ""
    name: str = ""
    job_title: str = ""
    company: str = ""
    email: str = ""
    phone: str = ""
    linkedin_url: str = Field(default="", alias="linkedInUrl")
    confidence: int | float = 85
    snippet: str = ""
    search_source: ProvenanceTag | None = Field(
        default=None,
        validation_alias=AliasChoices("searchSource", "__searchSource", "search_source"),
        serialization_alias="searchSource",
    )

    @field_validator(
        "id", "name", "job_title", "company", "email", "phone",
        "linkedin_url", "snippet",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def identity_key(self) -> str:
        """Dedup identity: the id, or ``name_email`` when there is none."""
        return self.id or f"{self.name}_{self.email}"

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def is_insertable(result: SearchResult | None) -> bool:
    """A result may be cached or accumulated only with a real name."""
    if result is None:
        return False
    name = result.name.strip()
    return bool(name) and name != NULL_SENTINEL


class StoredSearch(CamelModel):
    """A search history entry."""
    id: str
    params: SearchParams
    timestamp: int
    result_count: int = 0


class SearchTemplate(CamelModel):
    """A named, reusable set of search parameters."""
    id: str
    name: str
    description: str = ""
    params: SearchParams
    last_used: int | None = None


# =============================================================================
# Request Models
# =============================================================================

class TemplateCreateRequest(CamelModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    params: SearchParams


# =============================================================================
# Response Models
# =============================================================================

class SearchResponse(CamelModel):
    """Outcome of one search."""
    params: SearchParams
    results: list[SearchResult] = []
    added_count: int = 0
    from_cache: bool = False
    total_accumulated: int = 0


class ResultsPageResponse(CamelModel):
    """A page of the results view."""
    params: SearchParams | None = None
    recovered: bool = False
    view: ResultsView = ResultsView.SEARCH
    results: list[SearchResult] = []
    total: int = 0
    page: int = 1
    page_size: int = 20
    total_pages: int = 0


class RecoverResponse(CamelModel):
    params: SearchParams | None = None


class ClearResponse(CamelModel):
    cleared: bool = True
    cache_entries_removed: int = 0
