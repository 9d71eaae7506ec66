import threading

import pytest

from related_papers.core.cancellation import CancellationToken
from related_papers.exceptions import RelatedPapersCancelled
from related_papers.services.workers import pool_size, run_striped


def test_pool_size_bounds():
    assert pool_size(0, 10) == 1
    assert pool_size(4, 2) == 2
    assert pool_size(3, 10) == 3


def test_each_worker_owns_a_stripe():
    owners = {}
    lock = threading.Lock()

    def handle(index):
        with lock:
            owners[index] = threading.current_thread().name

    run_striped(7, 3, handle, name="stripe")

    assert sorted(owners) == list(range(7))
    for index in range(7):
        assert owners[index] == owners[index % 3]


def test_worker_errors_propagate():
    def handle(index):
        if index == 2:
            raise ValueError("boom")

    with pytest.raises(ValueError):
        run_striped(4, 2, handle)


def test_cancellation_outranks_worker_errors():
    token = CancellationToken()

    def handle(index):
        token.cancel()
        raise ValueError("boom")

    with pytest.raises(RelatedPapersCancelled):
        run_striped(3, 1, handle, token=token)


def test_empty_input_still_checks_token():
    token = CancellationToken()
    token.cancel()

    with pytest.raises(RelatedPapersCancelled):
        run_striped(0, 2, lambda index: None, token=token)


def test_cancellation_returns_without_waiting_for_blocked_worker():
    token = CancellationToken()
    started = threading.Event()
    release = threading.Event()
    finished = []

    def handle(index):
        started.set()
        release.wait(5)
        finished.append(index)

    def cancel_once_started():
        started.wait(5)
        token.cancel()

    canceller = threading.Thread(target=cancel_once_started)
    canceller.start()
    try:
        with pytest.raises(RelatedPapersCancelled):
            run_striped(1, 1, handle, token=token)
        assert finished == []
    finally:
        release.set()
        canceller.join()
