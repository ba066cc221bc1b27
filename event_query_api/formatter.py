"""
API response envelopes.
"""
from typing import Any, Dict, Iterable, Optional

from .dates import next_date_str, prev_date_str
from .models import Meta, QueryKey
from .paths import cache_path


def format_api_response(
    key: QueryKey,
    events: Optional[Iterable[Dict[str, Any]]],
    service_base: str
) -> Dict[str, Any]:
    """
    Wrap events in an envelope complete with pagination.

    Pagination is one page per day: previous/next point at the same query
    for the adjacent days.
    """
    # if we got None, send an empty list
    events = list(events or [])
    meta = Meta(
        total=len(events),
        previous=service_base + cache_path(key.with_date(prev_date_str(key.date))),
        next=service_base + cache_path(key.with_date(next_date_str(key.date))),
    )
    return {
        "meta": meta.model_dump(by_alias=True),
        "events": events,
    }


def not_found_response() -> Dict[str, Any]:
    """Well-formed empty envelope with error status"""
    meta = Meta(status="error")
    return {
        "meta": meta.model_dump(by_alias=True, exclude_none=True),
        "events": [],
    }
