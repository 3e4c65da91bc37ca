"""Upload encoding using base64 and pypdf.

Turns a user-selected file into an ``Attachment`` ready for the vision or
document endpoint, with type classification and validation.
"""

import base64
import io
import logging

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from mistral_hub.errors import AttachmentError
from mistral_hub.models.conversation import Attachment
from mistral_hub.uploads.handles import AttachmentHandle, AttachmentRegistry

logger = logging.getLogger(__name__)

# Constants
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
PDF_MAGIC_BYTES = b"%PDF"

SUPPORTED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")
SUPPORTED_DOCUMENT_TYPES = ("application/pdf", "image/jpeg", "image/png")
ACCEPTED_TYPES = ",".join(dict.fromkeys(SUPPORTED_IMAGE_TYPES + SUPPORTED_DOCUMENT_TYPES))


def is_image_file(mime_type: str) -> bool:
    return mime_type in SUPPORTED_IMAGE_TYPES


def is_document_file(mime_type: str) -> bool:
    return mime_type in SUPPORTED_DOCUMENT_TYPES


def classify(mime_type: str) -> str | None:
    """Classify a MIME type as ``image`` or ``document``.

    Types supported as both (JPEG, PNG) are treated as images.

    Returns:
        The attachment type, or None if the type is unsupported.
    """
    if is_image_file(mime_type):
        return "image"
    if is_document_file(mime_type):
        return "document"
    return None


def format_file_size(size: int) -> str:
    """Format a byte count for display (``512 B``, ``1.5 KB``, ``2.0 MB``)."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def _validate_pdf_bytes(name: str, file_content: bytes) -> None:
    """Validate PDF content before it is sent for OCR.

    Raises:
        AttachmentError: If the file is not a readable PDF with pages.
    """
    if not file_content.lstrip()[:10].startswith(PDF_MAGIC_BYTES):
        raise AttachmentError(f"Invalid PDF: {name} does not start with PDF header")

    try:
        reader = PdfReader(io.BytesIO(file_content))
        pages = len(reader.pages)
    except PdfReadError as e:
        raise AttachmentError(f"Corrupt or invalid PDF: {e}") from e
    except Exception as e:
        raise AttachmentError(f"Failed to read PDF: {e}") from e

    if pages == 0:
        raise AttachmentError(f"PDF contains no pages: {name}")
    logger.debug(f"Validated PDF {name} ({pages} pages)")


def encode_file(
    name: str,
    mime_type: str,
    file_content: bytes,
    registry: AttachmentRegistry,
) -> tuple[Attachment, AttachmentHandle]:
    """Encode an uploaded file as an attachment.

    Args:
        name: Original file name.
        mime_type: MIME type reported by the browser.
        file_content: Raw file bytes.
        registry: Registry that issues the preview handle.

    Returns:
        The attachment and the handle backing its ``url``. The caller owns the
        handle and must release it when the attachment is discarded.

    Raises:
        AttachmentError: If the file is empty, too large, unsupported or a
            corrupt PDF.
    """
    if not file_content:
        raise AttachmentError(f"File {name} is empty.")

    if len(file_content) > MAX_FILE_SIZE:
        raise AttachmentError(f"File {name} is too large. Max size is 10MB.")

    attachment_type = classify(mime_type)
    if attachment_type is None:
        raise AttachmentError(f"File type {mime_type or 'unknown'} is not supported.")

    if mime_type == "application/pdf":
        _validate_pdf_bytes(name, file_content)

    handle = registry.acquire(file_content, mime_type)
    attachment = Attachment(
        type=attachment_type,
        name=name,
        url=handle.url,
        mime_type=mime_type,
        base64=base64.b64encode(file_content).decode("ascii"),
    )
    logger.info(f"Encoded {attachment_type} {name} ({format_file_size(len(file_content))})")
    return attachment, handle
