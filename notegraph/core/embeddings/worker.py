"""
Background embedding worker.

Model inference is blocking, so it runs on a worker thread. Single requests
are queued and drained by one long-lived consumer task, which groups up to
`batch_size` of them into a single model call and resolves each caller's
future independently.
"""

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from notegraph.utils.exceptions import EmbeddingError
from notegraph.utils.id_generator import generate_request_id
from notegraph.utils.logger import get_logger

logger = get_logger(__name__)

# (texts, is_query) -> one vector per text; called on a worker thread
EncodeFn = Callable[[list[str], bool], Sequence[Sequence[float]]]


@dataclass
class EmbeddingRequest:
    """One queued text awaiting its vector."""

    request_id: str
    text: str
    is_query: bool
    future: asyncio.Future


class EmbeddingWorker:
    """
    Queue-backed embedding worker.

    Usage:
        worker = EmbeddingWorker(model_encode, batch_size=5)
        vector = await worker.submit("some text")
        vectors = await worker.submit_batch(["a", "b"])
        await worker.close()
    """

    def __init__(self, encode_fn: EncodeFn, batch_size: int = 5):
        """
        Initialize worker.

        Args:
            encode_fn: Blocking encoder called with (texts, is_query)
            batch_size: Maximum queued requests per model call
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        self._encode_fn = encode_fn
        self.batch_size = batch_size
        self._queue: asyncio.Queue[EmbeddingRequest] = asyncio.Queue()
        self._in_flight: list[EmbeddingRequest] = []
        self._worker_task: asyncio.Task | None = None
        self._closed = False

    @property
    def pending(self) -> int:
        """Requests queued but not yet picked up."""
        return self._queue.qsize()

    def start(self):
        """Start the consumer task if it is not running."""
        if self._closed:
            raise EmbeddingError("Embedding worker is closed")
        if self._worker_task is None or self._worker_task.done():
            self._worker_task = asyncio.create_task(self._consume())

    def submit(self, text: str, is_query: bool = False) -> asyncio.Future:
        """
        Queue a single text for embedding.

        Args:
            text: Text to embed
            is_query: True for search queries

        Returns:
            Future resolving to the embedding vector
        """
        self.start()

        future = asyncio.get_running_loop().create_future()
        request = EmbeddingRequest(
            request_id=generate_request_id(), text=text, is_query=is_query, future=future
        )
        self._queue.put_nowait(request)
        logger.debug(f"Queued embedding request {request.request_id} (pending={self.pending})")
        return future

    async def submit_batch(self, texts: list[str], is_query: bool = False) -> list[list[float]]:
        """
        Embed a list of texts directly, bypassing the queue.

        Raises:
            EmbeddingError: If the model call fails
        """
        if self._closed:
            raise EmbeddingError("Embedding worker is closed")
        if not texts:
            return []

        try:
            vectors = await asyncio.to_thread(self._encode_fn, list(texts), is_query)
        except Exception as e:
            logger.error(f"Batch embedding failed for {len(texts)} texts: {e}")
            raise EmbeddingError(
                f"Batch embedding failed: {e}", context={"num_texts": len(texts)}
            ) from e

        return [[float(x) for x in vector] for vector in vectors]

    async def close(self):
        """Stop the consumer and reject every request that has not been resolved."""
        self._closed = True

        if self._worker_task and not self._worker_task.done():
            self._worker_task.cancel()
            try:
                await self._worker_task
            except asyncio.CancelledError:
                pass

        pending = list(self._in_flight)
        while not self._queue.empty():
            pending.append(self._queue.get_nowait())

        for request in pending:
            if not request.future.done():
                request.future.set_exception(
                    EmbeddingError(
                        "Embedding worker closed before request completed",
                        context={"request_id": request.request_id},
                    )
                )

        self._in_flight = []
        if pending:
            logger.info(f"Embedding worker closed, rejected {len(pending)} pending requests")

    async def _consume(self):
        """Drain the queue in batches until cancelled."""
        while True:
            try:
                first = await self._queue.get()
                batch = [first]
                while len(batch) < self.batch_size and not self._queue.empty():
                    batch.append(self._queue.get_nowait())

                self._in_flight = batch
                await self._process(batch)
                self._in_flight = []
            except asyncio.CancelledError:
                logger.debug("Embedding worker stopped")
                raise
            except Exception as e:
                logger.error(f"Error in embedding worker: {e}")

    async def _process(self, batch: list[EmbeddingRequest]):
        # One model call per prompt type
        for is_query in (False, True):
            group = [r for r in batch if r.is_query == is_query and not r.future.done()]
            if not group:
                continue

            try:
                vectors = await asyncio.to_thread(
                    self._encode_fn, [r.text for r in group], is_query
                )
                if len(vectors) != len(group):
                    raise EmbeddingError(
                        f"Model returned {len(vectors)} vectors for {len(group)} texts"
                    )
            except Exception as e:
                logger.error(f"Embedding batch of {len(group)} failed: {e}")
                error = e if isinstance(e, EmbeddingError) else EmbeddingError(str(e))
                for request in group:
                    if not request.future.done():
                        request.future.set_exception(error)
                continue

            for request, vector in zip(group, vectors):
                if not request.future.done():
                    request.future.set_result([float(x) for x in vector])

            logger.debug(f"Resolved {len(group)} embedding requests")
