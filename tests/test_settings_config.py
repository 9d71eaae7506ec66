import pytest
import requests
from pydantic import ValidationError

from related_papers.config import RelatedPapersConfig
from related_papers.core.models import RelatedPapersParams
from related_papers.core.settings import DEFAULT_TIMEOUT, RelatedPapersSettings
from related_papers.exceptions import ConfigError


def test_settings_apply_environment_overrides(monkeypatch):
    monkeypatch.setenv("RELATED_PAPERS_REQUEST_TIMEOUT_S", "3.5")
    monkeypatch.setenv("RELATED_PAPERS_INSPIRE_URL", "https://inspire.example/api/")
    monkeypatch.setenv("RELATED_PAPERS_DEBUG_HTTP", "yes")

    settings = RelatedPapersSettings()

    assert settings.timeout == 3.5
    assert settings.inspire_base_url == "https://inspire.example/api"
    assert settings.debug_logging is True


def test_explicit_settings_win_over_environment(monkeypatch):
    monkeypatch.setenv("RELATED_PAPERS_REQUEST_TIMEOUT_S", "3.5")
    monkeypatch.setenv("RELATED_PAPERS_INSPIRE_URL", "https://inspire.example/api")

    settings = RelatedPapersSettings(timeout=30.0, inspire_base_url="https://other.example/api")

    assert settings.timeout == 30.0
    assert settings.inspire_base_url == "https://other.example/api"


def test_build_session_sets_user_agent(monkeypatch):
    monkeypatch.delenv("RELATED_PAPERS_REQUEST_TIMEOUT_S", raising=False)
    session = requests.Session()
    session.headers.pop("User-Agent", None)

    settings = RelatedPapersSettings(session=session)

    assert settings.timeout == DEFAULT_TIMEOUT
    assert settings.build_session() is session
    assert session.headers["User-Agent"] == "inspire-related-papers"


def test_config_defaults_and_environment(monkeypatch):
    monkeypatch.setenv("RELATED_PAPERS_MAX_ANCHORS", "7")
    monkeypatch.setenv("RELATED_PAPERS_EXCLUDE_REVIEW_ARTICLES", "false")

    config = RelatedPapersConfig()
    params = config.to_params()

    assert params.max_anchors == 7
    assert params.exclude_review_articles is False
    assert params.per_anchor == 25
    assert params.max_results == 50
    assert params.concurrency == 2
    assert config.anchor_policy().target_citations == 50
    assert config.cocitation_model().max_weight == 0.5


@pytest.mark.parametrize(
    "overrides",
    [{"max_anchors": 0}, {"concurrency": -1}, {"cocitation_max_weight": 0.9}],
)
def test_config_rejects_invalid_values(overrides):
    with pytest.raises(ValidationError):
        RelatedPapersConfig(**overrides)


def test_params_normalization_falls_back_to_defaults():
    params = RelatedPapersParams.normalized(
        RelatedPapersParams(max_anchors=-4, per_anchor=10),
        max_results=float("nan"),
        concurrency=0,
        exclude_review_articles="no",
    )

    assert params.max_anchors == 15
    assert params.per_anchor == 10
    assert params.max_results == 50
    assert params.concurrency == 2
    assert params.exclude_review_articles is True
    assert RelatedPapersParams.normalized(None, per_anchor=7.9).per_anchor == 7


def test_invalid_timeout_environment_raises_config_error(monkeypatch):
    monkeypatch.setenv("RELATED_PAPERS_REQUEST_TIMEOUT_S", "soon")

    with pytest.raises(ConfigError):
        RelatedPapersSettings()


def test_settings_and_config_share_one_dotenv_file(tmp_path, monkeypatch):
    monkeypatch.delenv("RELATED_PAPERS_REQUEST_TIMEOUT_S", raising=False)
    monkeypatch.delenv("RELATED_PAPERS_MAX_ANCHORS", raising=False)
    (tmp_path / ".env").write_text(
        "RELATED_PAPERS_REQUEST_TIMEOUT_S=4.5\nRELATED_PAPERS_MAX_ANCHORS=9\nUNRELATED=1\n"
    )
    monkeypatch.chdir(tmp_path)

    assert RelatedPapersSettings().timeout == 4.5
    assert RelatedPapersConfig().max_anchors == 9
