"""
DOI helpers for filtering events by work and by registrant prefix.
"""
import re
from typing import Any, Dict, Optional, Set

DOI_RESOLVER = "https://doi.org/"

# Bare DOI, doi: URI, or a doi.org / dx.doi.org resolver URL.
DOI_RE = re.compile(
    r"^(?:doi:|https?://(?:dx\.)?doi\.org/)?(10\.\d{4,9}/\S+)$",
    re.IGNORECASE,
)


def well_formed(identifier: Optional[str]) -> bool:
    """True if the identifier is DOI shaped"""
    return isinstance(identifier, str) and DOI_RE.match(identifier.strip()) is not None


def non_url_doi(identifier: str) -> str:
    """
    Strip resolver and scheme, lower-case.

    Raises:
        ValueError: if the identifier is not DOI shaped
    """
    match = DOI_RE.match(identifier.strip())
    if match is None:
        raise ValueError(f"Not a DOI: {identifier}")
    return match.group(1).lower()


def normalise_doi(identifier: str) -> str:
    """Canonical resolver URL form, e.g. https://doi.org/10.5555/12345678"""
    return DOI_RESOLVER + non_url_doi(identifier)


def get_prefix(identifier: str) -> str:
    """Registrant prefix, the part before the first slash"""
    return non_url_doi(identifier).split("/", 1)[0]


def event_dois(event: Dict[str, Any]) -> Set[str]:
    """
    An Event may have a DOI in the subj or obj or neither.
    Return the set of normalised DOIs found in either position.
    """
    return {
        normalise_doi(identifier)
        for identifier in (event.get("subj_id"), event.get("obj_id"))
        if well_formed(identifier)
    }


def event_prefixes(event: Dict[str, Any]) -> Set[str]:
    """Set of DOI prefixes found in subj or obj position"""
    return {
        get_prefix(identifier)
        for identifier in (event.get("subj_id"), event.get("obj_id"))
        if well_formed(identifier)
    }
