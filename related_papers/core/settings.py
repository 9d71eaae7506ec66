from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
import requests

from ..exceptions import ConfigError

DEFAULT_INSPIRE_BASE_URL = "https://inspirehep.net/api"
DEFAULT_TIMEOUT = 15.0


@dataclass(slots=True)
class RelatedPapersSettings:
    """Configuration for the INSPIRE HTTP client."""

    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = "inspire-related-papers"
    inspire_base_url: Optional[str] = None
    debug_logging: bool = False
    session: Optional[requests.Session] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self._apply_env_overrides(HttpEnvironment())

    def _apply_env_overrides(self, env: HttpEnvironment) -> None:
        env_timeout = _clean(env.request_timeout_s)
        if env_timeout and self.timeout == DEFAULT_TIMEOUT:
            try:
                self.timeout = float(env_timeout)
            except ValueError as exc:
                raise ConfigError(
                    f"RELATED_PAPERS_REQUEST_TIMEOUT_S must be a number, got {env_timeout!r}"
                ) from exc

        env_base_url = _clean(env.inspire_url)
        if env_base_url and self.inspire_base_url is None:
            self.inspire_base_url = env_base_url.rstrip("/")

        env_debug = _clean(env.debug_http)
        if env_debug and not self.debug_logging:
            self.debug_logging = env_debug.lower() in {"1", "true", "yes", "on"}

    def build_session(self) -> requests.Session:
        """Return a configured :class:`requests.Session` using the settings."""

        session = self.session if self.session is not None else requests.Session()
        if self.user_agent:
            session.headers.setdefault("User-Agent", self.user_agent)
        return session


class HttpEnvironment(BaseSettings):  # type: ignore[misc]
    """Raw ``RELATED_PAPERS_*`` HTTP overrides from the environment or ``.env``."""

    request_timeout_s: Optional[str] = None
    inspire_url: Optional[str] = None
    debug_http: Optional[str] = None

    model_config = SettingsConfigDict(env_prefix="RELATED_PAPERS_", env_file=".env", extra="ignore")


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None
