"""Integration tests for the API as a system.

Requests go through the real FastAPI app over ASGITransport; only the SDK
client underneath UpstreamClient is faked.
"""
