"""centralized configuration management using pydantic settings.

this module provides type-safe, validated configuration for the operator agent.
configuration is loaded from environment variables and optional .env files.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """main settings class for the operator agent.

    configuration is loaded from environment variables. a .env file in the
    working directory is also loaded if present.

    attributes:
        anthropic_api_key: api key for anthropic (claude)
        openai_api_key: api key for openai
        llm_provider: explicit provider selection (auto-detected if not set)
        llm_model: model driving the reasoning loop (provider default if not set)
        memory_model: lightweight model for memory extraction and suggestions
        log_level: logging level (DEBUG, INFO, WARNING, ERROR)
        seed_path: yaml file seeding the in-memory platforms
        pending_ttl_seconds: how long a pending action may still be confirmed
        sweep_interval_seconds: how often expired pending actions are pruned
        max_tool_rounds: oracle round trips allowed per turn
        memory_extraction_interval: persisted messages between extractions
        memory_window: recent messages summarized per extraction
        memory_dedupe: skip facts that repeat an existing fact verbatim
        text_chunk_size: characters per streamed text event
        suggestions_enabled: emit follow-up suggestions after a turn
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # api keys for llm providers
    anthropic_api_key: str | None = None
    openai_api_key: str | None = None

    # llm configuration
    llm_provider: str | None = Field(default=None, alias="LLM_PROVIDER")
    llm_model: str | None = Field(default=None, alias="LLM_MODEL")
    memory_model: str | None = Field(default=None, alias="MEMORY_MODEL")

    log_level: str = Field(default="WARNING", alias="OPERATOR_AGENT_LOG_LEVEL")

    # yaml file seeding the in-memory platforms
    seed_path: str | None = Field(default="config.yaml", alias="OPERATOR_SEED_PATH")

    # confirmation gateway
    pending_ttl_seconds: float = Field(default=300.0, gt=0)
    sweep_interval_seconds: float = Field(default=60.0, gt=0)

    # reasoning loop
    max_tool_rounds: int = Field(default=10, ge=1)
    text_chunk_size: int = Field(default=20, ge=1)
    suggestions_enabled: bool = True

    # long-term memory
    memory_extraction_interval: int = Field(default=5, ge=1)
    memory_window: int = Field(default=10, ge=1)
    memory_dedupe: bool = True

    def detect_provider(self) -> str | None:
        """auto-detect provider based on available api keys.

        returns:
            provider name or None if no keys are set
        """
        if self.llm_provider:
            return self.llm_provider

        if self.anthropic_api_key:
            return "anthropic"
        if self.openai_api_key:
            return "openai"

        return None

    def get_api_key_for_provider(self, provider: str) -> str | None:
        """get the api key for a specific provider.

        args:
            provider: provider name (anthropic, openai)

        returns:
            api key or None if not set
        """
        key_map = {
            "anthropic": self.anthropic_api_key,
            "openai": self.openai_api_key,
        }
        return key_map.get(provider)


@lru_cache
def get_settings() -> Settings:
    """get the singleton settings instance.

    uses lru_cache to ensure only one instance is created.
    call get_settings.cache_clear() to reload settings if needed.

    returns:
        the settings instance
    """
    return Settings()
