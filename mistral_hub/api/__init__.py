"""FastAPI endpoints for MistralHub.

HTTP and streaming routes with async request handling. Supports
Server-Sent Events for real-time chat streaming.

Endpoints:
    - GET /health: Service health status
    - GET /models: Model catalog
    - POST /chat: Streaming chat relay (text/event-stream)
    - POST /vision: Single-shot image analysis
    - POST /document: Document OCR with optional Q&A
"""

from mistral_hub.api.app import app, create_app

__all__ = ["app", "create_app"]
