import itertools
import threading

import pytest

from helpers import StubInspireClient, literature
from related_papers.core.cancellation import CancellationToken
from related_papers.core.models import Anchor, RelatedPapersParams
from related_papers.exceptions import RelatedPapersCancelled
from related_papers.services import coupling_service
from related_papers.services.coupling_service import MAX_SHARED_TITLES, CouplingAggregator
from related_papers.services.ranking import rank_candidates


def _anchors(*recids, weight=0.5):
    return [Anchor(recid=recid, title=f"Anchor {recid}", weight=weight) for recid in recids]


def _aggregator(client, *, params=None, excluded=(), token=None, on_progress=None, library=None):
    return CouplingAggregator(
        client,
        seed_recid="S",
        excluded_recids=excluded,
        params=params or RelatedPapersParams(),
        total_anchor_weight=1.5,
        token=token,
        on_progress=on_progress,
        library=library,
    )


def test_candidates_sharing_two_of_three_anchors():
    client = StubInspireClient(
        citing={
            "A1": [literature("X", citations=100), literature("Y", citations=50), literature("S"), literature("R")],
            "A2": [literature("X", citations=100), literature("Y", citations=50), literature("X", citations=100)],
            "A3": [literature("Z", citations=500)],
        }
    )

    candidates = _aggregator(client, excluded={"R"}).aggregate(_anchors("A1", "A2", "A3"))

    assert set(candidates) == {"X", "Y", "Z"}
    assert candidates["X"].shared_count == 2
    assert candidates["X"].weighted_score == pytest.approx(1.0)
    assert sorted(candidates["X"].shared_titles) == ["Anchor A1", "Anchor A2"]
    assert candidates["X"].entry.id == "related-S-X"

    ranked = rank_candidates(candidates.values(), 10, total_anchor_weight=1.5)
    assert [entry.recid for entry in ranked] == ["X", "Y", "Z"]
    assert ranked[0].coupling_score == pytest.approx(1.0 / 1.5)


def test_each_anchor_searched_once_with_citing_query():
    client = StubInspireClient()

    _aggregator(client, params=RelatedPapersParams(concurrency=3)).aggregate(_anchors("A1", "A2", "A3", "A4"))

    assert sorted(client.queries("search")) == [
        "refersto:recid:A1",
        "refersto:recid:A2",
        "refersto:recid:A3",
        "refersto:recid:A4",
    ]


def test_shared_titles_are_capped():
    anchors = _anchors("A1", "A2", "A3", "A4", "A5")
    client = StubInspireClient(citing={anchor.recid: [literature("X")] for anchor in anchors})

    candidates = _aggregator(client, params=RelatedPapersParams(concurrency=1)).aggregate(anchors)

    assert candidates["X"].shared_count == 5
    assert len(candidates["X"].shared_titles) == MAX_SHARED_TITLES
    assert candidates["X"].shared_titles == ["Anchor A1", "Anchor A2", "Anchor A3"]


def test_review_candidates_follow_toggle_and_generic_review_always_dropped():
    hits = [
        literature("pdg", title="Review of Particle Physics"),
        literature("rev", document_type=["review"]),
        literature("plain"),
        {"titles": [{"title": "No recid"}]},
    ]
    client = StubInspireClient(citing={"A1": hits})

    excluded = _aggregator(client).aggregate(_anchors("A1"))
    included = _aggregator(
        client, params=RelatedPapersParams(exclude_review_articles=False)
    ).aggregate(_anchors("A1"))

    assert set(excluded) == {"plain"}
    assert set(included) == {"rev", "plain"}


def test_failed_anchor_lookup_only_shrinks_pool():
    client = StubInspireClient(
        citing={"A1": [literature("X")], "A2": [literature("Y")]},
        failing={"refersto:recid:A2"},
    )

    candidates = _aggregator(client).aggregate(_anchors("A1", "A2"))

    assert set(candidates) == {"X"}


def test_progress_is_monotonic_and_ends_with_all_anchors():
    anchors = _anchors(*(f"A{i}" for i in range(8)))
    client = StubInspireClient(citing={anchor.recid: [literature(f"P{anchor.recid}")] for anchor in anchors})
    snapshots = []

    _aggregator(
        client, params=RelatedPapersParams(concurrency=3), on_progress=snapshots.append
    ).aggregate(anchors)

    processed = [snapshot.processed_anchors for snapshot in snapshots]
    assert processed == sorted(processed)
    assert processed[-1] == len(anchors)
    assert snapshots[-1].total_anchors == len(anchors)
    assert len(snapshots[-1].entries) == len(anchors)
    assert not any(snapshot.done for snapshot in snapshots)


def test_local_links_come_from_library_view():
    class Library:
        def get_seed_reference_ids(self):
            return []

        def get_local_link_for_record(self, recid):
            return f"zotero://select/{recid}" if recid == "X" else None

    client = StubInspireClient(citing={"A1": [literature("X"), literature("Y")]})

    candidates = _aggregator(client, library=Library()).aggregate(_anchors("A1"))

    assert candidates["X"].entry.local_link == "zotero://select/X"
    assert candidates["Y"].entry.local_link is None


def test_cancellation_before_start_fetches_nothing():
    token = CancellationToken()
    token.cancel()
    client = StubInspireClient(citing={"A1": [literature("X")]})

    with pytest.raises(RelatedPapersCancelled):
        _aggregator(client, token=token).aggregate(_anchors("A1", "A2"))

    assert client.queries("search") == []


def test_cancellation_during_aggregation_stops_further_fetches():
    token = CancellationToken()
    client = StubInspireClient(
        citing={"A1": [literature("X")], "A2": [literature("Y")], "A3": [literature("Z")]},
        on_search=lambda query: token.cancel(),
    )

    with pytest.raises(RelatedPapersCancelled):
        _aggregator(client, params=RelatedPapersParams(concurrency=1), token=token).aggregate(
            _anchors("A1", "A2", "A3")
        )

    assert client.queries("search") == ["refersto:recid:A1"]


def _progress_run(monkeypatch, clock, anchor_count=8):
    monkeypatch.setattr(coupling_service.time, "monotonic", clock)
    anchors = _anchors(*(f"A{i}" for i in range(anchor_count)))
    client = StubInspireClient(citing={anchor.recid: [literature(f"P{anchor.recid}")] for anchor in anchors})
    snapshots = []

    _aggregator(
        client, params=RelatedPapersParams(concurrency=1), on_progress=snapshots.append
    ).aggregate(anchors)

    return [snapshot.processed_anchors for snapshot in snapshots]


def test_progress_is_throttled_to_first_and_final_snapshot_when_clock_stands_still(monkeypatch):
    assert _progress_run(monkeypatch, lambda: 1000.0) == [1, 8]


def test_progress_reports_every_anchor_once_interval_has_elapsed(monkeypatch):
    ticks = itertools.count()

    processed = _progress_run(monkeypatch, lambda: 1000.0 + 0.25 * next(ticks))

    assert processed == list(range(1, 9))


def test_slow_progress_callback_does_not_hold_up_other_workers():
    anchors = _anchors("A1", "A2", "A3", "A4")
    searches = []
    third_search = threading.Event()
    search_lock = threading.Lock()

    def on_search(query):
        with search_lock:
            searches.append(query)
            if len(searches) >= 3:
                third_search.set()

    client = StubInspireClient(
        citing={anchor.recid: [literature(f"P{anchor.recid}")] for anchor in anchors},
        on_search=on_search,
    )
    waited = []

    def slow_callback(snapshot):
        if not waited:
            waited.append(third_search.wait(5))

    _aggregator(
        client, params=RelatedPapersParams(concurrency=2), on_progress=slow_callback
    ).aggregate(anchors)

    assert waited == [True]
    assert len(searches) == 4


def test_no_progress_after_cancellation():
    token = CancellationToken()
    client = StubInspireClient(
        citing={"A1": [literature("X")]},
        on_search=lambda query: token.cancel(),
    )
    snapshots = []

    with pytest.raises(RelatedPapersCancelled):
        _aggregator(client, token=token, on_progress=snapshots.append).aggregate(_anchors("A1"))

    assert snapshots == []
