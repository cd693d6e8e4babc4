"""
Application configuration.
All credentials loaded from environment variables.
"""
from typing import Optional, Tuple
from pydantic_settings import BaseSettings, SettingsConfigDict


# Model used when no per-provider override is set
DEFAULT_MODELS = {
    "anthropic": "claude-3-5-sonnet-20241022",
    "openai": "gpt-4o",
    "gemini": "gemini-1.5-pro",
    "custom": "custom",
}


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # AI Provider Configuration
    # Supported providers: anthropic, openai, gemini, custom
    AI_PROVIDER: str = "anthropic"

    ANTHROPIC_API_KEY: Optional[str] = None
    ANTHROPIC_MODEL: str = DEFAULT_MODELS["anthropic"]

    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = DEFAULT_MODELS["openai"]

    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = DEFAULT_MODELS["gemini"]

    # Custom endpoint, called as POST {CUSTOM_AI_URL}/chat
    CUSTOM_AI_URL: Optional[str] = None
    CUSTOM_AI_KEY: Optional[str] = None  # Bearer token, optional

    AI_TIMEOUT: float = 60.0
    AI_TEMPERATURE: float = 0.7
    AI_MAX_TOKENS: int = 1024

    # Chat
    CHAT_HISTORY_LIMIT: int = 10  # Prior turns sent with each request
    CHAT_MESSAGE_LIMIT: int = 50  # Records loaded into the conversation view
    CHAT_SESSION_LIMIT: int = 100  # Live conversations kept open before the least recent is closed

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or console

    # AI Debug Logging - enables message content logging
    # WARNING: Set to True only for debugging, logs will contain health data
    AI_DEBUG_LOG: bool = False
    # Maximum length of message content to log (0 = unlimited)
    AI_DEBUG_LOG_MAX_LENGTH: int = 2000

    def provider_config(self, provider: str) -> Tuple[Optional[str], str]:
        """
        Get (credential, model) for a provider.

        The credential is the API key, or the base URL for the custom provider.
        """
        provider = provider.lower()
        credentials = {
            "anthropic": (self.ANTHROPIC_API_KEY, self.ANTHROPIC_MODEL),
            "openai": (self.OPENAI_API_KEY, self.OPENAI_MODEL),
            "gemini": (self.GEMINI_API_KEY, self.GEMINI_MODEL),
            "custom": (self.CUSTOM_AI_URL, DEFAULT_MODELS["custom"]),
        }
        return credentials.get(provider, (None, ""))


settings = Settings()
