import json

import pytest

import related_papers.cli as cli
from helpers import StubInspireClient, literature
from related_papers.api import RelatedPapersClient


@pytest.fixture
def stub_client(monkeypatch):
    stub = StubInspireClient(
        references={
            "900": [
                {"record": {"$ref": "https://inspirehep.net/api/literature/101"}, "reference": {"title": "Anchor"}},
            ]
        },
        records={"101": literature(101, citations=40)},
        citing={"101": [literature(201, title="First"), literature(202, title="Second")]},
    )
    monkeypatch.setattr(
        cli,
        "RelatedPapersClient",
        lambda settings: RelatedPapersClient(settings, inspire_client=stub),
    )
    return stub


def test_prints_ranked_results(stub_client, capsys):
    exit_code = cli.main(["900", "--max-results", "1"])

    output = capsys.readouterr().out
    assert exit_code == 0
    assert "1. [1.000] First" in output
    assert "Second" not in output
    assert "shared refs: 1" in output


def test_json_output(stub_client, capsys):
    exit_code = cli.main(["900", "--json", "--include-reviews"])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert [item["recid"] for item in payload] == ["201", "202"]
    assert payload[0]["shared_ref_titles"] == ["Anchor"]


def test_unknown_record_exits_with_error(stub_client, capsys):
    exit_code = cli.main(["404"])

    assert exit_code == 2
    assert "not found" in capsys.readouterr().err


def test_rejects_non_positive_options(stub_client):
    with pytest.raises(SystemExit):
        cli.main(["900", "--max-anchors", "0"])
