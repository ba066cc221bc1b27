"""
The chain of cached views over one day's events.

    date -> date+source
    date -> date+prefix -> date+work -> date+source+work

Every view returns the complete API envelope, and that envelope is what gets
cached, so a hit needs no further work. Work queries go through the prefix
view because a prefix narrows a day far more than a source does.

Events are passed through as the raw dicts the Event Bus sent. Only
`source_id`, `subj_id`, `obj_id` and `experimental` are ever read, and a value
of the wrong type simply fails to match.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from .cache import Document, Memoizer
from .doi import event_dois, event_prefixes, get_prefix, normalise_doi, well_formed
from .event_bus import EventBusClient
from .formatter import format_api_response
from .models import QueryKey, SourcePolicy
from .paths import cache_path

logger = logging.getLogger(__name__)

Predicate = Callable[[Dict[str, Any]], bool]


def event_source(event: Dict[str, Any]) -> Optional[str]:
    """source_id of the event, None unless it is a string"""
    source_id = event.get("source_id")
    return source_id if isinstance(source_id, str) else None


def is_experimental(event: Dict[str, Any]) -> bool:
    return bool(event.get("experimental"))


def select(events: Iterable[Any], predicate: Predicate) -> List[Dict[str, Any]]:
    """Keep events satisfying predicate; anything that isn't an object is dropped"""
    return [event for event in events if isinstance(event, dict) and predicate(event)]


class ViewPipeline:
    """
    Computes and caches the five views.

    Each `view_*` method computes a view from its parent; each `*_cached`
    method is the memoized entry point.
    """

    def __init__(
        self,
        memoizer: Memoizer,
        event_bus: EventBusClient,
        policy: SourcePolicy,
        service_base: str
    ):
        self.memoizer = memoizer
        self.event_bus = event_bus
        self.policy = policy
        self.service_base = service_base

    def _select_and_format(self, key: QueryKey, events, predicate: Predicate) -> Document:
        return format_api_response(key, select(events, predicate), self.service_base)

    async def _filter(self, key: QueryKey, events, predicate: Predicate) -> Document:
        # A full day can be large; filter in a thread so the loop keeps serving.
        return await asyncio.to_thread(self._select_and_format, key, events, predicate)

    async def _cached(self, key: QueryKey, compute) -> Optional[Document]:
        return await self.memoizer.get_or_compute(cache_path(key), compute, key)

    async def query(self, key: QueryKey) -> Optional[Document]:
        """Entry point matching the shape of the key"""
        if key.work is not None and key.source is not None:
            return await self.view_date_source_work_cached(key)
        if key.work is not None:
            return await self.view_date_work_cached(key)
        if key.source is not None:
            return await self.view_date_source_cached(key)
        if key.prefix is not None:
            return await self.view_date_prefix_cached(key)
        return await self.view_date_cached(key)

    async def view_date(self, key: QueryKey) -> Optional[Document]:
        """
        All activity for the view and date.
        Comes straight from the Event Bus, minus excluded sources.
        """
        archive = await self.event_bus.fetch_archive(key.date)
        events = archive.get("events") if archive else None
        if not isinstance(events, list):
            logger.warning(f"No events in archive for {key.date}")
            return None

        excluded = self.policy.excluded
        return await self._filter(key, events, lambda e: event_source(e) not in excluded)

    async def view_date_cached(self, key: QueryKey) -> Optional[Document]:
        return await self._cached(QueryKey(view=key.view, date=key.date), self.view_date)

    async def view_date_source(self, key: QueryKey) -> Optional[Document]:
        """All activity for the view, date and source"""
        parent = await self.view_date_cached(key)
        if parent is None:
            return None
        return await self._filter(key, parent["events"], lambda e: event_source(e) == key.source)

    async def view_date_source_cached(self, key: QueryKey) -> Optional[Document]:
        return await self._cached(key, self.view_date_source)

    async def view_date_prefix(self, key: QueryKey) -> Optional[Document]:
        """All activity for the view, date and DOI prefix"""
        parent = await self.view_date_cached(key)
        if parent is None:
            return None
        prefix = key.prefix.lower()
        return await self._filter(key, parent["events"], lambda e: prefix in event_prefixes(e))

    async def view_date_prefix_cached(self, key: QueryKey) -> Optional[Document]:
        return await self._cached(key, self.view_date_prefix)

    async def view_date_work(self, key: QueryKey) -> Optional[Document]:
        """
        All activity for the view, date and work.
        Subfilter of the prefix view for the work's own prefix.
        """
        if not well_formed(key.work):
            # Nothing can match a work that isn't a DOI.
            return format_api_response(key, [], self.service_base)

        prefix_key = QueryKey(view=key.view, date=key.date, prefix=get_prefix(key.work))
        parent = await self.view_date_prefix_cached(prefix_key)
        if parent is None:
            return None
        doi = normalise_doi(key.work)
        return await self._filter(key, parent["events"], lambda e: doi in event_dois(e))

    async def view_date_work_cached(self, key: QueryKey) -> Optional[Document]:
        return await self._cached(key, self.view_date_work)

    async def view_date_source_work(self, key: QueryKey) -> Optional[Document]:
        """
        All activity for the view, date, source and work.
        Subfilter of the work view.
        """
        work_key = QueryKey(view=key.view, date=key.date, work=key.work)
        parent = await self.view_date_work_cached(work_key)
        if parent is None:
            return None
        return await self._filter(key, parent["events"], lambda e: event_source(e) == key.source)

    async def view_date_source_work_cached(self, key: QueryKey) -> Optional[Document]:
        return await self._cached(key, self.view_date_source_work)
