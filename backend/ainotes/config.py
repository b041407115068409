"""
AI Notes Backend: Application Configuration
============================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and exposes a `settings` object.
Who:   Read by the application factory, which hands the values to the
       collaborator clients it constructs.

Credential split:
    SUPABASE_URL and SUPABASE_ANON_KEY are public values (the anon key only
    grants what row-level security allows). GROQ_API_KEY is private and never
    leaves the server; a missing key only disables POST /api/summarize.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Defaults are suitable for local development against a local Supabase
    stack. Production deployments MUST set SUPABASE_URL, SUPABASE_ANON_KEY,
    GROQ_API_KEY and COOKIE_SECURE=true.
    """

    # ── Data Service (Supabase) ───────────────────────────────────────────
    supabase_url: str = Field(
        default="http://localhost:54321",
        description="Base URL of the Supabase project (REST + Auth)",
    )
    supabase_anon_key: str = Field(
        default="",
        description="Public anonymous key, sent as the `apikey` header",
    )
    notes_table: str = Field(default="notes")

    # ── Summarization Service (Groq, OpenAI-compatible) ───────────────────
    groq_api_key: str = Field(
        default="",
        description="Server-side bearer credential for the chat-completion API",
    )
    groq_api_url: str = Field(
        default="https://api.groq.com/openai/v1/chat/completions",
    )
    summary_model: str = Field(default="llama3-8b-8192")
    # Summaries are meant to be a couple of sentences
    summary_max_tokens: int = Field(default=100, ge=1, le=4096)
    summary_temperature: float = Field(default=0.5, ge=0.0, le=2.0)

    # What: Timeout in seconds for outbound HTTP calls (both collaborators)
    http_timeout: float = Field(default=30.0, gt=0)

    # ── Session Cookies ───────────────────────────────────────────────────
    access_token_cookie: str = Field(default="sb-access-token")
    refresh_token_cookie: str = Field(default="sb-refresh-token")
    browser_session_cookie: str = Field(default="ainotes-sid")
    cookie_secure: bool = Field(default=False)

    # What: Comma-separated public-only paths (reachable only WITHOUT a session)
    public_paths: str = Field(default="/login")
    login_path: str = Field(default="/login")
    home_path: str = Field(default="/")

    @property
    def public_paths_set(self) -> frozenset:
        return frozenset(p.strip() for p in self.public_paths.split(",") if p.strip())

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="http://localhost:8000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("supabase_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    # ── Rate Limiting ─────────────────────────────────────────────────────
    # What: Per-IP sliding window applied to /api/ paths (the summarize proxy)
    # Each call spends Groq quota billed to the server credential
    rate_limit_requests: int = Field(default=30, ge=1, le=10000)
    rate_limit_window: int = Field(default=60, ge=1, le=86400)  # seconds

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def missing_credentials(self) -> List[str]:
        """
        What:  Lists configuration problems worth reporting at startup.
        When:  Called during app startup (lifespan).
        Why:   The app still boots without them (health and login pages keep
               working) but operators should see the problem immediately.
        """
        problems = []
        if not self.supabase_anon_key:
            problems.append("SUPABASE_ANON_KEY is not set; Data Service calls will be rejected.")
        if not self.groq_api_key:
            problems.append("GROQ_API_KEY is not set; POST /api/summarize will return 500.")
        return problems


def get_settings() -> Settings:
    """Builds a fresh Settings object from the current environment."""
    return Settings()
