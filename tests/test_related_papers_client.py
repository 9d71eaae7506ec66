import related_papers
from helpers import StubInspireClient, literature
from related_papers.api import RelatedPapersClient
from related_papers.config import RelatedPapersConfig
from related_papers.core.models import ReferenceEntry
from related_papers.core.settings import RelatedPapersSettings


def _reference(recid, title):
    return {"record": {"$ref": f"https://inspirehep.net/api/literature/{recid}"}, "reference": {"title": title}}


def _stub():
    return StubInspireClient(
        references={"900": [_reference(101, "Paper A"), _reference(102, "Paper B")]},
        records={"101": literature(101, citations=40), "102": literature(102, citations=60)},
        citing={
            "101": [literature(201, citations=5), literature(202, citations=9)],
            "102": [literature(201, citations=5)],
        },
    )


def _client(stub, **config):
    return RelatedPapersClient(
        RelatedPapersSettings(),
        config=RelatedPapersConfig(**config),
        inspire_client=stub,
    )


def test_fetch_related_for_recid_loads_references_first():
    stub = _stub()

    results = _client(stub).fetch_related_for_recid("900", max_results=5)

    assert [entry.recid for entry in results] == ["201", "202"]
    assert stub.calls[0] == ("references", "900")


def test_keyword_overrides_win_over_config():
    client = _client(_stub(), max_results=1)

    assert client.params().max_results == 1
    assert client.params(max_results=3).max_results == 3
    assert len(client.fetch_related_for_recid("900")) == 1


def test_select_anchors_uses_configured_policy():
    default_client = _client(_stub())
    tuned_client = _client(_stub(), anchor_target_citations=40)
    references = default_client.load_seed_references("900")

    assert [anchor.recid for anchor in default_client.select_anchors(references, 5)] == ["102", "101"]
    assert [anchor.recid for anchor in tuned_client.select_anchors(references, 5)] == ["101", "102"]
    assert default_client.select_anchors(references, 0) == []


def test_module_level_helpers_use_default_client(monkeypatch):
    monkeypatch.setattr(related_papers, "_default_client", _client(_stub()))

    references = related_papers.get_default_client().load_seed_references("900")
    results = related_papers.fetch_related("900", references)
    anchors = related_papers.select_anchors(references, 1)

    assert [entry.recid for entry in results] == ["201", "202"]
    assert len(anchors) == 1
    assert [entry.recid for entry in related_papers.fetch_related_for_recid("900")] == ["201", "202"]


def test_module_level_select_anchors_ignores_environment(monkeypatch):
    monkeypatch.setenv("RELATED_PAPERS_CONCURRENCY", "0")
    monkeypatch.setenv("RELATED_PAPERS_ANCHOR_TARGET_CITATIONS", "1000")
    monkeypatch.setattr(related_papers, "_default_client", None)
    references = [
        ReferenceEntry(id="0", recid="1", title="Near target", citation_count=50),
        ReferenceEntry(id="1", recid="2", title="Far from target", citation_count=250),
    ]

    anchors = related_papers.select_anchors(references, 5)

    assert [anchor.recid for anchor in anchors] == ["1", "2"]
    assert related_papers._default_client is None
