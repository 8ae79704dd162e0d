"""
Configuration management for the Classroom AI service.
"""
import os
from dotenv import load_dotenv

from .errors import ConfigurationError

# Load environment variables
load_dotenv()

# AI provider configuration
SUPPORTED_PROVIDERS = ('gemini', 'openai', 'anthropic')
DEFAULT_PROVIDER = "gemini"
DEFAULT_MODELS = {
    'gemini': 'gemini-2.0-flash',
    'openai': 'gpt-4o-mini',
    'anthropic': 'claude-sonnet-4-20250514',
}
PROVIDER_KEY_VARS = {
    'gemini': 'GEMINI_API_KEY',
    'openai': 'OPENAI_API_KEY',
    'anthropic': 'ANTHROPIC_API_KEY',
}

# Retry configuration for the AI gateway
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 2.0
DEFAULT_TIMEOUT_SECONDS = 60.0

# Storage
DEFAULT_STORAGE_BUCKET = "assignment-files"

# Server configuration
HOST = "0.0.0.0"
PORT = 8000


def _env_int(name, default):
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")


def _env_float(name, default):
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {value!r}")


class Config:
    """Application configuration class."""

    def __init__(self, ai_provider=DEFAULT_PROVIDER, ai_api_key="", ai_model="",
                 supabase_url="", supabase_key="",
                 storage_bucket=DEFAULT_STORAGE_BUCKET,
                 max_attempts=DEFAULT_MAX_ATTEMPTS,
                 backoff_seconds=DEFAULT_BACKOFF_SECONDS,
                 timeout_seconds=DEFAULT_TIMEOUT_SECONDS,
                 log_level="INFO", host=HOST, port=PORT):
        self.ai_provider = (ai_provider or DEFAULT_PROVIDER).lower()
        self.ai_api_key = ai_api_key
        self.ai_model = ai_model or DEFAULT_MODELS.get(self.ai_provider, "")
        self.supabase_url = supabase_url
        self.supabase_key = supabase_key
        self.storage_bucket = storage_bucket
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.timeout_seconds = timeout_seconds
        self.log_level = log_level
        self.host = host
        self.port = port

    @classmethod
    def from_env(cls):
        """Build a Config from process environment (after .env is loaded)."""
        provider = os.getenv("AI_PROVIDER", DEFAULT_PROVIDER).lower()
        key_var = PROVIDER_KEY_VARS.get(provider, "")
        return cls(
            ai_provider=provider,
            ai_api_key=os.getenv(key_var, "") if key_var else "",
            ai_model=os.getenv("AI_MODEL", ""),
            supabase_url=os.getenv("SUPABASE_URL", ""),
            # Edge functions call it the service role key; older deployments
            # used SUPABASE_SERVICE_KEY.
            supabase_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_SERVICE_KEY", ""),
            storage_bucket=os.getenv("STORAGE_BUCKET", DEFAULT_STORAGE_BUCKET),
            max_attempts=_env_int("AI_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS),
            backoff_seconds=_env_float("AI_BACKOFF_SECONDS", DEFAULT_BACKOFF_SECONDS),
            timeout_seconds=_env_float("AI_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            host=os.getenv("HOST", HOST),
            port=_env_int("PORT", PORT),
        )

    def validate(self):
        """
        Fail fast on missing credentials.

        Raises ConfigurationError listing every problem at once so a cold
        start reports the whole picture.
        """
        problems = []
        if self.ai_provider not in SUPPORTED_PROVIDERS:
            problems.append(
                f"AI_PROVIDER must be one of {', '.join(SUPPORTED_PROVIDERS)} (got {self.ai_provider!r})"
            )
        elif not self.ai_api_key:
            problems.append(f"{PROVIDER_KEY_VARS[self.ai_provider]} not configured")
        if not self.supabase_url:
            problems.append("SUPABASE_URL not configured")
        if not self.supabase_key:
            problems.append("SUPABASE_SERVICE_ROLE_KEY not configured")
        if self.max_attempts < 1:
            problems.append("AI_MAX_ATTEMPTS must be at least 1")
        if problems:
            raise ConfigurationError("; ".join(problems))
        return self

    def to_dict(self):
        return {
            "ai_provider": self.ai_provider,
            "ai_model": self.ai_model,
            "ai_api_key_configured": bool(self.ai_api_key),
            "supabase_url": self.supabase_url,
            "storage_bucket": self.storage_bucket,
            "max_attempts": self.max_attempts,
            "backoff_seconds": self.backoff_seconds,
            "timeout_seconds": self.timeout_seconds,
            "log_level": self.log_level,
        }
