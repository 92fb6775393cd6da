"""Application configuration via environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App
    debug: bool = False
    environment: str = "development"

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    # Relational store (PostgreSQL in production, SQLite locally)
    database_url: str = "sqlite:///./quill.db"
    database_echo: bool = False

    # Clerk session verification. clerk_jwt_key is the PEM public key for
    # networkless verification; otherwise keys are fetched from clerk_jwks_url.
    clerk_jwt_key: str = ""
    clerk_jwks_url: str = ""
    clerk_issuer: str = ""
    clerk_authorized_parties: list[str] = []

    # LLM provider for AI redesign: "anthropic" or "openai"
    llm_provider: str = "anthropic"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-3-5-sonnet-20241022"
    openai_api_key: str = ""
    openai_base_url: str = ""  # empty = api.openai.com; any OpenAI-compatible endpoint works
    openai_model: str = "gpt-4.1"

    # AI redesign request limits
    design_max_tokens: int = 8192
    design_temperature: float = 0.7
    design_timeout_seconds: float = 45.0
    design_max_retries: int = 1
    design_retry_backoff: float = 2.0

    # Public website serving
    website_cache_seconds: int = 60

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def llm_configured(self) -> bool:
        if self.llm_provider == "openai":
            return bool(self.openai_api_key)
        return bool(self.anthropic_api_key)

    @property
    def auth_configured(self) -> bool:
        return bool(self.clerk_jwt_key or self.clerk_jwks_url)


@lru_cache
def get_settings() -> Settings:
    return Settings()
