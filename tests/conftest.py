"""
Shared fixtures: a fake Event Bus, sample events and a local object store.
"""
import pytest
import pytest_asyncio

from event_query_api.cache import Memoizer
from event_query_api.event_bus import UpstreamError
from event_query_api.models import SourcePolicy
from event_query_api.store import LocalObjectStore
from event_query_api.uploader import Uploader
from event_query_api.views import ViewPipeline

SERVICE_BASE = "http://query.test/"
DAY = "2017-03-01"


class FakeEventBus:
    """Serves canned archives and records every date requested"""

    def __init__(self, archives=None, fail=False):
        self.archives = archives or {}
        self.fail = fail
        self.calls = []

    async def fetch_archive(self, date):
        self.calls.append(date)
        if self.fail:
            raise UpstreamError("Internal error connecting to Event Bus.")
        return self.archives.get(date, {"events": []})


def make_event(event_id, source_id, subj_id=None, obj_id=None, **extra):
    event = {"id": event_id, "source_id": source_id, "subj_id": subj_id, "obj_id": obj_id}
    event.update(extra)
    return event


@pytest.fixture
def sample_events():
    """One day's archive covering every filter"""
    return [
        make_event("e1", "wikipedia", "https://en.wikipedia.org/wiki/Twin_Peaks",
                   "https://doi.org/10.5555/12345678", relation_type_id="references"),
        make_event("e2", "twitter", "http://twitter.com/status/1",
                   "http://dx.doi.org/10.5555/ABC"),
        make_event("e3", "reddit", "https://reddit.com/r/science/1",
                   "https://doi.org/10.4444/zzz", experimental=True),
        make_event("e4", "excluded-source", "http://example.com/page",
                   "https://doi.org/10.5555/12345678"),
        make_event("e5", "twitter", "http://twitter.com/status/2",
                   "https://doi.org/10.5555/12345678"),
        make_event("e6", "wikipedia", "https://en.wikipedia.org/wiki/Other",
                   "http://example.com/10.5555/not-a-doi"),
    ]


@pytest.fixture
def policy():
    return SourcePolicy(
        allowed=frozenset({"wikipedia", "twitter", "reddit"}),
        excluded=frozenset({"excluded-source"})
    )


@pytest.fixture
def event_bus(sample_events):
    return FakeEventBus({DAY: {"events": sample_events}})


@pytest.fixture
def store(tmp_path):
    return LocalObjectStore(tmp_path / "store")


@pytest_asyncio.fixture
async def uploader(store):
    """Running uploader with a small worker pool"""
    uploader = Uploader(store=store, bucket="test-bucket", maxsize=1024, workers=2)
    await uploader.start()
    yield uploader
    await uploader.stop()


@pytest.fixture
def pipeline(store, uploader, event_bus, policy):
    return ViewPipeline(
        memoizer=Memoizer(store, uploader),
        event_bus=event_bus,
        policy=policy,
        service_base=SERVICE_BASE
    )
