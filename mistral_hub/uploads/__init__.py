"""Upload handling for image and document attachments.

Responsibilities:
    - Base64 encoding of selected files
    - Image / document classification by MIME type
    - Size limits and PDF validation with pypdf
    - Transient preview handles with guaranteed release
"""

from mistral_hub.uploads.encoder import (
    ACCEPTED_TYPES,
    MAX_FILE_SIZE,
    classify,
    encode_file,
    format_file_size,
)
from mistral_hub.uploads.handles import AttachmentHandle, AttachmentRegistry

__all__ = [
    "ACCEPTED_TYPES",
    "MAX_FILE_SIZE",
    "AttachmentHandle",
    "AttachmentRegistry",
    "classify",
    "encode_file",
    "format_file_size",
]
