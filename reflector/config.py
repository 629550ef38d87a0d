from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional, List


class Settings(BaseSettings):
    # Models (OpenRouter ids: provider/model)
    summary_model: str = "google/gemini-2.5-flash"
    slug_model: str = "google/gemini-2.5-flash-lite"
    fallback_models: str = ""  # comma separated, shared by both stages

    # Transcript / generation
    max_chars: int = 80000
    timeout_ms: int = 60000

    # OpenRouter
    openrouter_api_key: Optional[str] = None
    openrouter_base_url: str = "https://openrouter.ai/api/v1"

    # Workspace
    workspace_root: str = "~/.openclaw/workspace"
    default_agent_id: str = "main"
    memory_subdir: str = "memory"

    # Service
    shutdown_grace_seconds: float = 30.0
    log_level: str = "INFO"

    class Config:
        env_prefix = "REFLECTOR_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    def get_fallback_models(self) -> List[str]:
        """Split the comma separated fallback list, dropping blanks"""
        return [m.strip() for m in (self.fallback_models or "").split(",") if m.strip()]


@lru_cache()
def get_settings():
    return Settings()
