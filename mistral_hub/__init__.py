"""MistralHub - multi-modal chat client for the Mistral API.

Combines FastAPI for the SSE streaming relay, NiceGUI for the chat interface,
the OpenAI SDK against Mistral's compatible endpoint, and Pydantic for data
validation.

Components:
    - api: HTTP endpoints (chat relay, vision, document OCR + Q&A)
    - upstream: Mistral client construction and request shaping
    - client: SSE stream consumer and HTTP client used by the UI
    - storage: Browser-scoped conversation persistence
    - uploads: File encoding, classification and attachment handles
    - models: Catalog, conversation records and API schemas
    - ui: Web interface for chat interactions
"""

__version__ = "0.1.0"
