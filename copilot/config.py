"""Runtime settings for the research co-pilot, read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from domain.papers import ARXIV_API_URL


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


@dataclass(slots=True)
class CopilotConfig:
    """Connection details, limits and timeouts for one server process."""

    host: str = "127.0.0.1"
    port: int = 5000
    openai_model_name: str = "gpt-5-nano"
    openai_api_base_url: str = "https://api.openai.com/v1"
    temperature: Optional[float] = None
    llm_timeout_seconds: float = 60.0
    arxiv_api_url: str = ARXIV_API_URL
    arxiv_max_results: int = 5
    arxiv_timeout_seconds: float = 30.0
    session_ttl_seconds: float = 3600.0
    max_sessions: int = 500
    history_limit: int = 20

    @classmethod
    def from_env(cls) -> "CopilotConfig":
        """Build a config from environment variables (call `load_dotenv()` first)."""
        defaults = cls()
        return cls(
            host=os.getenv("COPILOT_HOST", defaults.host),
            port=_env_int("PORT", defaults.port),
            openai_model_name=os.getenv("OPENAI_MODEL", defaults.openai_model_name),
            openai_api_base_url=os.getenv("OPENAI_API_BASE_URL", defaults.openai_api_base_url),
            temperature=_env_float("OPENAI_TEMPERATURE", defaults.temperature),
            llm_timeout_seconds=_env_float("LLM_TIMEOUT_SECONDS", defaults.llm_timeout_seconds),
            arxiv_api_url=os.getenv("ARXIV_API_URL", defaults.arxiv_api_url),
            arxiv_max_results=_env_int("ARXIV_MAX_RESULTS", defaults.arxiv_max_results),
            arxiv_timeout_seconds=_env_float("ARXIV_TIMEOUT_SECONDS", defaults.arxiv_timeout_seconds),
            session_ttl_seconds=_env_float("SESSION_TTL_SECONDS", defaults.session_ttl_seconds),
            max_sessions=_env_int("MAX_SESSIONS", defaults.max_sessions),
        )
