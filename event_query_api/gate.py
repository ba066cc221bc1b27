"""
Per-request query handling: validate -> locate -> authorize -> respond.
"""
import asyncio
import logging
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, NamedTuple, Optional, Tuple

from pydantic import ValidationError

from .dates import in_served_range, today, try_parse_date
from .formatter import not_found_response
from .models import VIEWS, QueryKey, SourcePolicy
from .views import ViewPipeline, event_source, is_experimental, select

logger = logging.getLogger(__name__)


class QueryValidationError(ValueError):
    """Malformed date or unknown view; reported to the client, never retried"""


class GateState(str, Enum):
    VALIDATE = "validate"
    LOCATE = "locate"
    AUTHORIZE = "authorize"
    RESPOND = "respond"


class QueryOutcome(NamedTuple):
    """Terminal state of a query: HTTP status and envelope"""
    status_code: int
    body: Dict[str, Any]


class QueryGate:
    """
    Runs one query through the gate states.

    Validation failures raise QueryValidationError. Not-found is a normal
    outcome carrying an empty error envelope. Upstream failures propagate.
    """

    def __init__(
        self,
        pipeline: ViewPipeline,
        policy: SourcePolicy,
        clock: Callable[[], date] = today
    ):
        """
        Args:
            pipeline: View pipeline answering located queries
            policy: Source allowlist snapshot
            clock: Returns the current day; exclusive upper bound of served days
        """
        self.pipeline = pipeline
        self.policy = policy
        self.clock = clock

    def validate(
        self,
        view: str,
        date_str: str,
        source: Optional[str] = None,
        prefix: Optional[str] = None,
        work: Optional[str] = None
    ) -> Tuple[QueryKey, date]:
        """Build the query key, or raise QueryValidationError"""
        day = try_parse_date(date_str)
        if day is None:
            raise QueryValidationError(f"Invalid date: {date_str!r}, expected YYYY-MM-DD")
        if view not in VIEWS:
            raise QueryValidationError(f"Unknown view: {view!r}, expected one of {sorted(VIEWS)}")
        try:
            key = QueryKey(view=view, date=date_str, source=source, prefix=prefix, work=work)
        except ValidationError as e:
            raise QueryValidationError(str(e)) from e
        return key, day

    async def locate(self, key: QueryKey, day: date) -> Optional[Dict[str, Any]]:
        """Envelope for the key, or None if the day is out of range or has no data"""
        if not in_served_range(day, self.clock()):
            logger.info(f"Date out of served range: {key.date}")
            return None
        return await self.pipeline.query(key)

    def authorize(
        self,
        document: Dict[str, Any],
        apply_allowlist: bool = True,
        include_experimental: bool = False
    ) -> Dict[str, Any]:
        """
        Post-filter a located envelope.

        Args:
            document: Envelope from the pipeline; not modified
            apply_allowlist: Drop events whose source is not allowed
            include_experimental: Keep events flagged experimental
        """
        events = document.get("events") or []
        if apply_allowlist:
            allowed = self.policy.allowed
            events = select(events, lambda e: event_source(e) in allowed)
        if not include_experimental:
            events = select(events, lambda e: not is_experimental(e))

        meta = dict(document.get("meta") or {})
        meta["total"] = len(events)
        return {**document, "meta": meta, "events": events}

    async def handle(
        self,
        view: str,
        date_str: str,
        source: Optional[str] = None,
        prefix: Optional[str] = None,
        work: Optional[str] = None,
        apply_allowlist: bool = True,
        include_experimental: bool = False
    ) -> QueryOutcome:
        """Run the query through every state to a terminal outcome"""
        self._enter(GateState.VALIDATE, view, date_str)
        key, day = self.validate(view, date_str, source, prefix, work)

        self._enter(GateState.LOCATE, key)
        result = await self.locate(key, day)
        if result is None:
            return QueryOutcome(404, not_found_response())

        self._enter(GateState.AUTHORIZE, key)
        logger.info(
            f"Query override? {not apply_allowlist} experimental? {include_experimental} args {key}"
        )
        body = await asyncio.to_thread(self.authorize, result, apply_allowlist, include_experimental)

        self._enter(GateState.RESPOND, key)
        return QueryOutcome(200, body)

    def _enter(self, state: GateState, *context):
        logger.debug(f"{state.value}: {context}")
