"""Client side of the relay: SSE consumption and endpoint calls.

Used by the NiceGUI page; kept free of UI code so it can be tested directly.
"""

from mistral_hub.client.api_client import ChatApiClient
from mistral_hub.client.stream import StreamResult, consume_stream

__all__ = ["ChatApiClient", "StreamResult", "consume_stream"]
