"""
Run removal requests in separate worker processes.

Each request is processed in its own process, so a large image doesn't stall
the caller and several images can be processed at once. Requests and
responses are pickled across the process boundary: the caller's buffer is
not modified, the processed copy comes back in the response.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from concurrent.futures import Future, ProcessPoolExecutor, as_completed

from bgcutout.api import RemovalRequest, RemovalResponse, process_request


class RemovalWorker:
    """
    Process pool for background removal requests.

    Responses may complete out of submission order; use their `id` to match
    them to requests.

    Example:
        >>> with RemovalWorker(max_workers=2) as worker:
        ...     for response in worker.process_all(requests):
        ...         results[response.id] = response.pixels
    """

    def __init__(self, max_workers: int | None = None, *, strict: bool = True):
        self.strict = strict
        self._executor = ProcessPoolExecutor(max_workers=max_workers)

    def submit(self, request: RemovalRequest) -> Future[RemovalResponse]:
        """Schedule a request; the future raises the pipeline's error if it fails."""
        return self._executor.submit(process_request, request, strict=self.strict)

    def process_all(self, requests: Iterable[RemovalRequest]) -> Iterator[RemovalResponse]:
        """
        Submit all requests and yield responses as they complete.

        Raises:
            RemovalError: The first failure encountered while collecting results.
        """
        futures = [self.submit(request) for request in requests]
        for future in as_completed(futures):
            yield future.result()

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=not wait)

    def __enter__(self) -> RemovalWorker:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
