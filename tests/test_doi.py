"""
Test DOI extraction from events.
"""
import pytest

from event_query_api.doi import (
    event_dois, event_prefixes, get_prefix, normalise_doi, well_formed
)


def test_event_dois_neither_position():
    event = dict(subj_id="http://example.com/10.5555/not-a-doi",
                 obj_id="https://en.wikipedia.org/w/Twin_Peaks")
    assert event_dois(event) == set()


def test_event_dois_object_only():
    event = dict(subj_id="http://example.com/10.5555/not-a-doi",
                 obj_id="http://doi.org/10.5555/12345678")
    assert event_dois(event) == {"https://doi.org/10.5555/12345678"}


def test_event_dois_both_positions():
    event = dict(subj_id="https://dx.doi.org/10.5555/242424",
                 obj_id="http://doi.org/10.5555/12345678")
    assert event_dois(event) == {
        "https://doi.org/10.5555/242424",
        "https://doi.org/10.5555/12345678",
    }


def test_event_dois_subject_only():
    event = dict(subj_id="https://dx.doi.org/10.5555/242424", obj_id="http://example.com/hi")
    assert event_dois(event) == {"https://doi.org/10.5555/242424"}


def test_event_dois_missing_ids():
    assert event_dois({}) == set()


def test_non_string_ids_are_ignored():
    event = {"subj_id": 12345, "obj_id": {"pid": "10.5555/12345678"}}
    assert event_dois(event) == set()
    assert event_prefixes(event) == set()


def test_event_prefixes_none():
    event = dict(subj_id="http://example.com/10.5555/not-a-doi",
                 obj_id="https://en.wikipedia.org/w/Twin_Peaks")
    assert event_prefixes(event) == set()


def test_event_prefixes_shared_prefix_counted_once():
    event = dict(subj_id="https://dx.doi.org/10.5555/242424",
                 obj_id="http://doi.org/10.5555/12345678")
    assert event_prefixes(event) == {"10.5555"}


def test_event_prefixes_two_prefixes():
    event = dict(subj_id="https://dx.doi.org/10.4444/242424",
                 obj_id="http://doi.org/10.5555/12345678")
    assert event_prefixes(event) == {"10.4444", "10.5555"}


def test_event_prefixes_subject_only():
    event = dict(subj_id="https://dx.doi.org/10.5555/242424", obj_id="http://example.com/hi")
    assert event_prefixes(event) == {"10.5555"}


@pytest.mark.parametrize("identifier", [
    "10.5555/12345678",
    "doi:10.5555/12345678",
    "http://doi.org/10.5555/12345678",
    "https://dx.doi.org/10.5555/12345678",
    "HTTPS://DOI.ORG/10.5555/ABC",
])
def test_well_formed(identifier):
    assert well_formed(identifier)


@pytest.mark.parametrize("identifier", [
    None,
    "",
    "http://example.com/10.5555/not-a-doi",
    "https://en.wikipedia.org/w/Twin_Peaks",
    "10.55/too-short-registrant",
    "https://doi.org/10.5555",
])
def test_not_well_formed(identifier):
    assert not well_formed(identifier)


def test_normalise_doi_lower_cases_and_uses_resolver():
    assert normalise_doi("http://dx.doi.org/10.5555/ABC") == "https://doi.org/10.5555/abc"
    assert normalise_doi("10.5555/abc") == "https://doi.org/10.5555/abc"


def test_get_prefix_handles_suffix_with_slashes():
    assert get_prefix("10.5555/abc/def") == "10.5555"
    assert get_prefix("https://doi.org/10.1371/journal.pone.0001") == "10.1371"


def test_normalise_doi_rejects_non_doi():
    with pytest.raises(ValueError):
        normalise_doi("http://example.com/hi")
