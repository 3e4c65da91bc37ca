"""Transient attachment handles.

An attachment preview needs a URL that only lives as long as the attachment
is held by the page. Handles are acquired when a file is attached and must be
released when it is removed, sent, or the page goes away; a released handle
serves 404.
"""

import logging
import threading
import uuid
from dataclasses import dataclass, field

from fastapi import APIRouter, HTTPException, Response, status

logger = logging.getLogger(__name__)

ATTACHMENT_ROUTE_PREFIX = "/attachments"


@dataclass
class AttachmentHandle:
    """A registered attachment payload and its URL.

    Usable as a context manager; leaving the block releases the handle.
    """

    id: str
    mime_type: str
    registry: "AttachmentRegistry" = field(repr=False)

    @property
    def url(self) -> str:
        return f"{ATTACHMENT_ROUTE_PREFIX}/{self.id}"

    @property
    def released(self) -> bool:
        return not self.registry.contains(self.id)

    def release(self) -> None:
        self.registry.release(self.id)

    def __enter__(self) -> "AttachmentHandle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


class AttachmentRegistry:
    """In-process store of attachment bytes addressed by handle id."""

    def __init__(self) -> None:
        self._payloads: dict[str, tuple[bytes, str]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._payloads)

    def acquire(self, data: bytes, mime_type: str) -> AttachmentHandle:
        """Register a payload and return its handle."""
        handle_id = uuid.uuid4().hex
        with self._lock:
            self._payloads[handle_id] = (data, mime_type)
        logger.debug(f"Acquired attachment handle {handle_id} ({len(data)} bytes)")
        return AttachmentHandle(id=handle_id, mime_type=mime_type, registry=self)

    def contains(self, handle_id: str) -> bool:
        return handle_id in self._payloads

    def get(self, handle_id: str) -> tuple[bytes, str] | None:
        return self._payloads.get(handle_id)

    def release(self, handle_id: str) -> None:
        """Drop a payload. Releasing twice is a no-op."""
        with self._lock:
            if self._payloads.pop(handle_id, None) is not None:
                logger.debug(f"Released attachment handle {handle_id}")

    def release_all(self, handle_ids: list[str] | None = None) -> None:
        """Release the given handles, or every handle when none are given."""
        with self._lock:
            ids = list(self._payloads) if handle_ids is None else handle_ids
            for handle_id in ids:
                self._payloads.pop(handle_id, None)

    def router(self) -> APIRouter:
        """Build a router serving registered payloads by handle id."""
        router = APIRouter(prefix=ATTACHMENT_ROUTE_PREFIX, tags=["attachments"])

        @router.get("/{handle_id}")
        async def get_attachment(handle_id: str) -> Response:
            entry = self.get(handle_id)
            if entry is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Attachment handle released or unknown",
                )
            data, mime_type = entry
            return Response(content=data, media_type=mime_type)

        return router
