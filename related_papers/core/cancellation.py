from __future__ import annotations

import threading
from typing import Optional

from ..exceptions import RelatedPapersCancelled


class CancellationToken:
    """Shared cancellation signal threaded through every fetch of one request."""

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RelatedPapersCancelled()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block for up to ``timeout`` seconds, returning early once cancelled."""

        return self._event.wait(timeout)


def raise_if_cancelled(token: Optional[CancellationToken]) -> None:
    if token is not None:
        token.raise_if_cancelled()
