"""Normalization of raw webhook payloads into canonical search results.

Upstream items come in several shapes: some carry a combined
``"Name - Title - Company"`` string, others discrete fields with varying
casing. Each shape is handled by an extraction strategy returning a partial
record; strategies run in order and the first non-empty value wins per field.
"""

import logging
from typing import Any, Callable

from decisionfindr.search.schemas import NULL_SENTINEL, SearchResult

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 85
COMBINED_SEPARATOR = " - "

TEXT_FIELDS = (
    "id", "name", "job_title", "company", "email",
    "phone", "linkedin_url", "snippet",
)

# Raw key variants accepted for each canonical field, in preference order.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id", "Id", "ID"),
    "name": ("name", "Name", "fullName", "full_name"),
    "job_title": ("jobTitle", "JobTitle", "job_title", "title", "Title"),
    "company": ("company", "Company", "companyName", "company_name"),
    "email": ("email", "Email"),
    "phone": ("phone", "Phone"),
    "linkedin_url": ("linkedInUrl", "linkedinUrl", "LinkedInUrl", "linkedin_url", "linkedin"),
    "snippet": ("snippet", "Snippet"),
}

PartialRecord = dict[str, Any]
ExtractionStrategy = Callable[[dict[str, Any]], PartialRecord]


def clean_value(value: Any) -> str:
    """Render a raw field as text; the null sentinel and JSON null become empty."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    text = str(value).strip()
    return "" if text == NULL_SENTINEL else text


def _first_present(item: dict[str, Any], keys: tuple[str, ...]) -> str:
    for key in keys:
        value = clean_value(item.get(key))
        if value:
            return value
    return ""


def extract_combined_name(item: dict[str, Any]) -> PartialRecord:
    """Split ``"Name - Title - Company"`` into its parts."""
    raw = _first_present(item, FIELD_ALIASES["name"])
    if COMBINED_SEPARATOR not in raw:
        return {}

    parts = [p.strip() for p in raw.split(COMBINED_SEPARATOR)]
    record: PartialRecord = {"name": parts[0]}
    if len(parts) > 1:
        record["job_title"] = parts[1]
    if len(parts) > 2:
        record["company"] = parts[2]
    return record


def extract_discrete_fields(item: dict[str, Any]) -> PartialRecord:
    """Read each canonical field from its accepted key variants."""
    record: PartialRecord = {
        field: _first_present(item, keys) for field, keys in FIELD_ALIASES.items()
    }

    confidence = item.get("confidence")
    if isinstance(confidence, (int, float)) and not isinstance(confidence, bool):
        record["confidence"] = confidence
    return record


DEFAULT_STRATEGIES: tuple[ExtractionStrategy, ...] = (
    extract_combined_name,
    extract_discrete_fields,
)


def merge_partials(partials: list[PartialRecord]) -> PartialRecord:
    """Merge partial records, first non-empty value wins per field."""
    merged: PartialRecord = {}
    for partial in partials:
        for field, value in partial.items():
            if value in ("", None):
                continue
            merged.setdefault(field, value)
    return merged


def transform_item(
    item: Any,
    strategies: tuple[ExtractionStrategy, ...] = DEFAULT_STRATEGIES,
) -> SearchResult | None:
    """Transform one raw item, or None when it does not describe a person."""
    if not isinstance(item, dict):
        return None

    if any(item.get(key) == NULL_SENTINEL for key in FIELD_ALIASES["name"]):
        return None

    record = merge_partials([strategy(item) for strategy in strategies])

    name = record.get("name", "")
    job_title = record.get("job_title", "")
    company = record.get("company", "")
    if not (name or job_title or company):
        return None

    if not name:
        record["name"] = name = "Unknown"

    if not record.get("snippet") and name and job_title and company:
        record["snippet"] = f"{name} is a {job_title} at {company}"

    record.setdefault("confidence", DEFAULT_CONFIDENCE)
    for field in TEXT_FIELDS:
        record.setdefault(field, "")

    return SearchResult(**record)


def transform_profiles(data: Any) -> list[SearchResult]:
    """Normalize a decoded webhook payload into canonical results.

    A single object is treated as a one-element list; any other non-list
    payload yields no results.
    """
    if isinstance(data, dict):
        data = [data]
    elif not isinstance(data, list):
        logger.warning(f"Unexpected webhook payload type: {type(data).__name__}")
        return []

    results = []
    for index, item in enumerate(data):
        result = transform_item(item)
        if result is None:
            logger.debug(f"Skipping webhook item {index}: no usable person data")
            continue
        results.append(result)

    logger.info(f"Transformed {len(results)} of {len(data)} webhook items")
    return results
