"""
Query key to cache path.

The same string is the object store key and, with a leading slash, the
request path, so pagination links and cached objects always agree.
"""
from .models import QueryKey


def cache_path(key: QueryKey) -> str:
    """
    Path for a query key, without a leading slash.

    Shapes:
        <view>/<date>/events.json
        <view>/<date>/sources/<source>/events.json
        <view>/<date>/prefixes/<prefix>/events.json
        <view>/<date>/works/<work>/events.json
        <view>/<date>/sources/<source>/works/<work>/events.json
    """
    parts = [key.view, key.date]
    if key.source is not None:
        parts += ["sources", key.source]
    if key.prefix is not None:
        parts += ["prefixes", key.prefix]
    if key.work is not None:
        parts += ["works", key.work]
    parts.append("events.json")
    return "/".join(parts)
