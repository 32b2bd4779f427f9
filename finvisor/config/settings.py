"""
Application Settings
===================

Main application settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.

Provider credentials accept both the ``FINVISOR_`` prefixed name and the
vendor's conventional environment variable (``OPENAI_API_KEY`` and friends).
"""

from typing import Any, Optional, List, Union
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import json
from pathlib import Path


def _credential(name: str, description: str) -> Any:
    return Field(
        default=None,
        validation_alias=AliasChoices(f"FINVISOR_{name}", name),
        description=description,
    )


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="Finvisor", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    debug: bool = Field(default=True, description="Debug mode")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")

    # Storage Configuration
    log_path: Path = Field(default=Path("./storage/logs"), description="Log directory path")

    # API Documentation Configuration
    enable_docs: bool = Field(default=True, description="Enable FastAPI docs endpoint")

    # Security Configuration
    allowed_hosts: List[str] = Field(default=["*"], description="Allowed hosts for CORS")

    # Provider Credentials
    openai_api_key: Optional[str] = _credential("OPENAI_API_KEY", "OpenAI API key")
    anthropic_api_key: Optional[str] = _credential("ANTHROPIC_API_KEY", "Anthropic API key")
    perplexity_api_key: Optional[str] = _credential("PERPLEXITY_API_KEY", "Perplexity API key")
    browserbase_api_key: Optional[str] = _credential("BROWSERBASE_API_KEY", "Browserbase API key")
    browserbase_project_id: Optional[str] = _credential(
        "BROWSERBASE_PROJECT_ID", "Browserbase project ID"
    )
    fetchai_api_key: Optional[str] = _credential("FETCHAI_API_KEY", "Fetch.ai Agentverse API key")
    fetchai_agent_address: Optional[str] = _credential(
        "FETCHAI_AGENT_ADDRESS", "Fetch.ai agent address"
    )
    modal_token_id: Optional[str] = _credential("MODAL_TOKEN_ID", "Modal token ID")
    modal_token_secret: Optional[str] = _credential("MODAL_TOKEN_SECRET", "Modal token secret")
    decagon_api_key: Optional[str] = _credential("DECAGON_API_KEY", "Decagon API key")
    decagon_bot_id: Optional[str] = _credential("DECAGON_BOT_ID", "Decagon bot ID")
    zoom_account_id: Optional[str] = _credential("ZOOM_ACCOUNT_ID", "Zoom S2S OAuth account ID")
    zoom_client_id: Optional[str] = _credential("ZOOM_CLIENT_ID", "Zoom S2S OAuth client ID")
    zoom_client_secret: Optional[str] = _credential(
        "ZOOM_CLIENT_SECRET", "Zoom S2S OAuth client secret"
    )
    zoom_webhook_secret_token: Optional[str] = _credential(
        "ZOOM_WEBHOOK_SECRET_TOKEN", "Zoom webhook secret token"
    )

    # Provider Endpoints
    perplexity_api_url: str = Field(
        default="https://api.perplexity.ai/chat/completions", description="Perplexity chat URL"
    )
    browserbase_api_url: str = Field(
        default="https://api.browserbase.com/v1", description="Browserbase API base URL"
    )
    fetchai_api_url: str = Field(
        default="https://agentverse.ai/api/v1", description="Agentverse API base URL"
    )
    modal_api_url: str = Field(default="https://api.modal.com/v1", description="Modal API base URL")
    decagon_api_url: str = Field(
        default="https://api.decagon.ai/v1", description="Decagon API base URL"
    )
    zoom_api_url: str = Field(default="https://api.zoom.us/v2", description="Zoom API base URL")
    zoom_oauth_url: str = Field(
        default="https://zoom.us/oauth/token", description="Zoom OAuth token URL"
    )
    provider_timeout: int = Field(default=60, description="Provider HTTP timeout in seconds")

    # Model Configuration
    openai_model: str = Field(default="gpt-4-turbo-preview", description="OpenAI chat model")
    openai_embedding_model: str = Field(
        default="text-embedding-3-small", description="OpenAI embedding model"
    )
    anthropic_model: str = Field(
        default="claude-sonnet-4-20250514", description="Anthropic Messages model"
    )
    perplexity_model: str = Field(default="sonar-pro", description="Perplexity search model")

    # Demo Behaviour
    zoom_demo_mode: bool = Field(
        default=True, description="Serve mocked Zoom meetings instead of calling Zoom"
    )
    wizard_pace: float = Field(
        default=1.0, ge=0.0, description="Multiplier applied to every scripted wizard delay"
    )
    stream_word_delay: float = Field(
        default=0.05, ge=0.0, description="Seconds between words of a streamed appeal letter"
    )

    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("allowed_hosts", mode="before")
    @classmethod
    def parse_allowed_hosts(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse allowed hosts from string or list."""
        if isinstance(v, str):
            # Handle JSON-like string: ["*"] or ["host1", "host2"]
            v = v.strip()
            if v.startswith("[") and v.endswith("]"):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            # Handle comma-separated string: "*" or "host1,host2"
            return [host.strip() for host in v.split(",") if host.strip()]
        return v

    @field_validator("log_path")
    @classmethod
    def create_directories(cls, v: Path) -> Path:
        """Ensure directories exist."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def is_configured(self, provider: str) -> bool:
        """Whether credentials for ``provider`` are present."""
        required = {
            "openai": [self.openai_api_key],
            "anthropic": [self.anthropic_api_key],
            "perplexity": [self.perplexity_api_key],
            "browserbase": [self.browserbase_api_key],
            "fetchai": [self.fetchai_api_key],
            "modal": [self.modal_token_id],
            "decagon": [self.decagon_api_key],
            "zoom": [self.zoom_account_id, self.zoom_client_id, self.zoom_client_secret],
        }
        if provider not in required:
            raise ValueError(f"Unknown provider: {provider}")
        return all(required[provider])

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="FINVISOR_",
        populate_by_name=True,
        extra="ignore",
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings
