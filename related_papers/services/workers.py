from __future__ import annotations

from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from typing import Callable, List, Optional

from ..core.cancellation import CancellationToken, raise_if_cancelled

CANCEL_POLL_SECONDS = 0.05


def pool_size(concurrency: int, item_count: int) -> int:
    return min(max(1, concurrency), max(1, item_count))


def run_striped(
    item_count: int,
    concurrency: int,
    handle: Callable[[int], None],
    *,
    token: Optional[CancellationToken] = None,
    name: str = "worker",
) -> None:
    """Run ``handle(index)`` for every index on a fixed pool of threads.

    Worker ``w`` owns indexes ``w, w + P, w + 2P, ...`` where ``P`` is the
    pool size, so no work queue is shared between threads. The token is
    checked before every index and once more after all workers settle; a
    cancellation outranks any other worker outcome. Once the token is set
    the call returns without waiting for a worker blocked in a request;
    that worker finishes in the background and its outcome is discarded.
    """

    if item_count <= 0:
        raise_if_cancelled(token)
        return

    size = pool_size(concurrency, item_count)

    def worker(offset: int) -> None:
        for index in range(offset, item_count, size):
            raise_if_cancelled(token)
            handle(index)

    executor = ThreadPoolExecutor(max_workers=size, thread_name_prefix=name)
    try:
        futures = [executor.submit(worker, offset) for offset in range(size)]
        pending = set(futures)
        while pending:
            if token is not None and token.cancelled:
                break
            _, pending = wait(
                pending,
                timeout=CANCEL_POLL_SECONDS if token is not None else None,
                return_when=FIRST_COMPLETED,
            )
    finally:
        executor.shutdown(wait=token is None or not token.cancelled, cancel_futures=True)

    raise_if_cancelled(token)
    errors: List[BaseException] = [
        error for error in (future.exception() for future in futures) if error is not None
    ]
    if errors:
        raise errors[0]
