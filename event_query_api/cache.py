"""
Read-through cache over the object store.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from .store import ObjectStore
from .uploader import Uploader

logger = logging.getLogger(__name__)

Document = Dict[str, Any]


class Memoizer:
    """
    get-or-compute against the object store.

    Concurrent misses for the same path are not serialized: both compute and
    both enqueue, and the later write wins with identical content.
    """

    def __init__(self, store: ObjectStore, uploader: Uploader):
        self.store = store
        self.uploader = uploader

    async def get_or_compute(
        self,
        path: str,
        compute: Callable[..., Awaitable[Optional[Document]]],
        *args
    ) -> Optional[Document]:
        """
        Return the stored document for path, computing it on a miss.

        Args:
            path: Cache path, no leading slash
            compute: Coroutine function producing the document, or None
            *args: Arguments for compute

        Returns:
            Cached or freshly computed document, None if compute gave None
        """
        cached = await asyncio.to_thread(self.store.get, path)
        if cached is not None:
            return cached

        logger.debug(f"Cache miss: {path}")
        generated = await compute(*args)
        if generated is not None:
            self.uploader.enqueue(generated, path)
        return generated
