"""
Background persistence of computed responses.
Uploads are an optimisation, not on the critical path: the queue is bounded
and drops new work when full rather than blocking a request.
"""
import asyncio
import logging
from typing import Any, Dict, List, NamedTuple

from .store import ObjectStore

logger = logging.getLogger(__name__)


class PendingUpload(NamedTuple):
    """A document waiting to be written under its cache path"""
    document: Dict[str, Any]
    bucket: str
    path: str


class Uploader:
    """
    Fixed pool of workers draining a dropping queue into the object store.

    Each pending upload is attempted exactly once. Failures are logged and
    counted, never retried.
    """

    def __init__(
        self,
        store: ObjectStore,
        bucket: str = "",
        maxsize: int = 1024,
        workers: int = 10
    ):
        """
        Initialize the uploader.

        Args:
            store: Object store documents are written to
            bucket: Bucket name recorded with each pending upload
            maxsize: Queue capacity; enqueue drops beyond this
            workers: Number of background upload tasks
        """
        self.store = store
        self.bucket = bucket
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.workers = workers
        self.running = False
        self._tasks: List[asyncio.Task] = []

        self.stats = {
            'enqueued': 0,
            'dropped': 0,
            'uploaded': 0,
            'failed': 0
        }

    def enqueue(self, document: Dict[str, Any], path: str) -> bool:
        """
        Queue a document for upload without blocking.

        Returns:
            True if queued, False if the queue was full and it was dropped
        """
        try:
            self.queue.put_nowait(PendingUpload(document, self.bucket, path))
        except asyncio.QueueFull:
            self.stats['dropped'] += 1
            logger.warning(f"Upload queue full, dropped {path}")
            return False
        self.stats['enqueued'] += 1
        logger.info(f"Enqueue cache: {path}")
        return True

    async def start(self):
        """Start the background upload tasks"""
        if self.running:
            logger.warning("Uploader already running")
            return

        self.running = True
        self._tasks = [
            asyncio.create_task(self._upload_loop(i))
            for i in range(self.workers)
        ]
        logger.info(f"Starting background uploads ({self.workers} workers)")

    async def stop(self, drain: bool = True):
        """
        Stop the workers.

        Args:
            drain: Finish queued uploads first
        """
        if not self.running:
            return

        if drain:
            await self.queue.join()
        self.running = False
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Uploader stopped")

    async def _upload_loop(self, worker_id: int):
        """Take pending uploads off the queue forever"""
        logger.debug(f"Upload worker {worker_id} started")
        while True:
            pending = await self.queue.get()
            try:
                await self._upload(pending)
            finally:
                self.queue.task_done()

    async def _upload(self, pending: PendingUpload):
        logger.info(f"Background upload {pending.path}")
        try:
            ok = await asyncio.to_thread(self.store.put, pending.path, pending.document)
        except Exception as e:
            logger.error(f"Error uploading {pending.path}: {e}", exc_info=True)
            ok = False

        if ok:
            self.stats['uploaded'] += 1
            logger.info(f"Finished background upload {pending.path}")
        else:
            self.stats['failed'] += 1

    def get_stats(self) -> dict:
        """Get uploader statistics"""
        stats = self.stats.copy()
        stats['queue_size'] = self.queue.qsize()
        return stats
