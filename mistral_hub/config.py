"""Application configuration with environment variable loading.

Covers the server and UI side; upstream API settings live in
``mistral_hub.upstream.config``.
"""

import os
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class AppConfig(BaseModel):
    """Server and UI configuration.

    Attributes:
        api_base_url: Base URL the UI uses to reach the API.
        storage_backend: ``browser`` for NiceGUI user storage, ``memory`` for
            process-local storage that is lost on restart.
        storage_secret: Secret NiceGUI uses to sign browser storage.
        host: Bind address.
        port: Bind port for the API (and the UI in integrated mode).
        ui_port: UI port in separate mode.
        log_level: Root log level name.
        request_timeout: Timeout in seconds for UI-to-API requests.
    """

    api_base_url: str = Field(
        default_factory=lambda: os.getenv("API_BASE_URL", "http://localhost:8000"),
    )
    storage_backend: Literal["browser", "memory"] = Field(
        default_factory=lambda: os.getenv("STORAGE_BACKEND", "browser").lower(),
    )
    storage_secret: str = Field(
        default_factory=lambda: os.getenv("NICEGUI_STORAGE_SECRET", "mistral-hub-secret"),
    )
    host: str = Field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    ui_port: int = Field(default_factory=lambda: int(os.getenv("UI_PORT", "8080")))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    request_timeout: float = Field(
        default_factory=lambda: float(os.getenv("MISTRAL_TIMEOUT", "120")),
        gt=0.0,
    )


def get_app_config() -> AppConfig:
    """Create application configuration from environment."""
    return AppConfig()
