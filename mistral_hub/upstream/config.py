"""Upstream configuration with environment variable loading.

Pydantic-based configuration for the Mistral API client. Mistral exposes an
OpenAI-compatible REST API, so the base URL can point at any compatible proxy.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file
load_dotenv()

DEFAULT_BASE_URL = "https://api.mistral.ai/v1"


class UpstreamConfig(BaseModel):
    """Configuration for the Mistral API client.

    Attributes:
        api_key: Mistral API key.
        base_url: API base URL.
        timeout: Per-request timeout in seconds, applied to streams as well.
        max_retries: Client-side retries; 0 leaves failures to the caller.
    """

    api_key: str = Field(
        default_factory=lambda: os.getenv("MISTRAL_API_KEY", ""),
        description="API key for the Mistral API",
    )
    base_url: str = Field(
        default_factory=lambda: os.getenv("MISTRAL_BASE_URL") or DEFAULT_BASE_URL,
        description="API base URL",
    )
    timeout: float = Field(
        default_factory=lambda: float(os.getenv("MISTRAL_TIMEOUT", "120")),
        gt=0.0,
        description="Request timeout in seconds",
    )
    max_retries: int = Field(
        default=0,
        ge=0,
        le=10,
        description="Retries performed by the HTTP client",
    )

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate that API key is provided and non-empty."""
        if not v or not v.strip():
            raise ValueError("MISTRAL_API_KEY environment variable is not set")
        return v.strip()


def get_upstream_config() -> UpstreamConfig:
    """Create upstream configuration from environment.

    Returns:
        Configured UpstreamConfig instance.

    Raises:
        ValueError: If no API key is set.
    """
    return UpstreamConfig()
