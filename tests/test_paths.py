"""
Test query key to cache path mapping.
"""
import itertools

import pytest
from pydantic import ValidationError

from event_query_api.models import QueryKey
from event_query_api.paths import cache_path


def test_path_shapes():
    assert cache_path(QueryKey(view="collected", date="2017-03-01")) == \
        "collected/2017-03-01/events.json"
    assert cache_path(QueryKey(view="collected", date="2017-03-01", source="twitter")) == \
        "collected/2017-03-01/sources/twitter/events.json"
    assert cache_path(QueryKey(view="occurred", date="2017-03-01", prefix="10.5555")) == \
        "occurred/2017-03-01/prefixes/10.5555/events.json"
    assert cache_path(QueryKey(view="collected", date="2017-03-01", work="10.5555/abc/def")) == \
        "collected/2017-03-01/works/10.5555/abc/def/events.json"
    assert cache_path(QueryKey(view="collected", date="2017-03-01", source="twitter",
                               work="10.5555/abc")) == \
        "collected/2017-03-01/sources/twitter/works/10.5555/abc/events.json"


def test_paths_have_no_leading_slash():
    assert not cache_path(QueryKey(view="collected", date="2017-03-01")).startswith("/")


def test_distinct_keys_give_distinct_paths():
    keys = set()
    for view, day, source, prefix, work in itertools.product(
        ["collected", "occurred"],
        ["2017-03-01", "2017-03-02"],
        [None, "twitter", "works"],
        [None, "10.5555", "sources"],
        [None, "10.5555/abc", "10.5555/abc/events.json", "sources/x"],
    ):
        if prefix is not None and work is not None:
            continue
        keys.add(QueryKey(view=view, date=day, source=source, prefix=prefix, work=work))

    paths = {cache_path(key) for key in keys}
    assert len(paths) == len(keys)


def test_keys_compare_on_present_fields():
    assert QueryKey(view="collected", date="2017-03-01", source="a") == \
        QueryKey(view="collected", date="2017-03-01", source="a")
    assert QueryKey(view="collected", date="2017-03-01", source="a") != \
        QueryKey(view="collected", date="2017-03-01")


def test_prefix_and_work_are_exclusive():
    with pytest.raises(ValidationError):
        QueryKey(view="collected", date="2017-03-01", prefix="10.5555", work="10.5555/abc")


def test_segments_may_not_contain_slash():
    with pytest.raises(ValidationError):
        QueryKey(view="collected", date="2017-03-01", source="a/b")


def test_with_date_keeps_shape():
    key = QueryKey(view="collected", date="2017-03-01", source="twitter", work="10.5555/abc")
    moved = key.with_date("2017-03-02")
    assert moved.date == "2017-03-02"
    assert (moved.view, moved.source, moved.work) == ("collected", "twitter", "10.5555/abc")
