"""Mistral API access for the relay and modal endpoints.

Responsibilities:
    - Client construction from environment configuration
    - Streaming chat completions reduced to plain text deltas
    - Single-shot vision and document OCR / Q&A requests
    - Translation of SDK failures into the application's error taxonomy

Maintains clean separation from the HTTP layer.
"""

from mistral_hub.upstream.client import UpstreamClient
from mistral_hub.upstream.config import UpstreamConfig, get_upstream_config

__all__ = ["UpstreamClient", "UpstreamConfig", "get_upstream_config"]
