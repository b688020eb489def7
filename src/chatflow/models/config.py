"""Configuration settings for the flow engine."""

from functools import lru_cache

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = ConfigDict(
        env_prefix="CHATFLOW_",
        env_file=".env",
        extra="ignore",
    )

    environment: str = "development"

    # Conversation Settings
    conversation_timeout_minutes: int = 30
    max_context_messages: int = 10
    variables_ttl_seconds: int = 86400  # 24 hours
    profile_ttl_seconds: int = 3600  # 1 hour

    # Flow Engine
    max_step_executions: int = 25
    flows_path: str | None = None  # YAML file; built-in flows when unset

    # Bot Configuration
    bot_name: str = "AI Assistant"
    default_response: str = "I'm processing your request."
    fallback_message: str = (
        "I'm sorry, I encountered an error processing your message. "
        "Please try again or type 'menu' for options."
    )
    unsupported_message: str = (
        "I received your message! Currently, I can only process text messages. "
        "How can I help you? 😊"
    )
    done_message: str = "Great! Have a wonderful day! 🌟"

    @property
    def session_ttl_seconds(self) -> int:
        """Conversation timeout expressed in seconds."""
        return self.conversation_timeout_minutes * 60

    @property
    def history_capacity(self) -> int:
        """Maximum number of history entries kept per session."""
        return self.max_context_messages * 2


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
