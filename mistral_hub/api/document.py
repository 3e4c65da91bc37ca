"""Document OCR and question-answering endpoint.

Two sequential stages: the OCR pass always runs first; the Q&A pass runs only
when a non-blank prompt is given and consumes the OCR output.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from mistral_hub.api.dependencies import get_upstream_client
from mistral_hub.errors import MissingFieldError
from mistral_hub.models.schemas import DocumentRequest, DocumentResponse, ErrorResponse
from mistral_hub.upstream import UpstreamClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/document", tags=["document"])


@router.post(
    "",
    response_model=DocumentResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def document(
    request: DocumentRequest,
    upstream: Annotated[UpstreamClient, Depends(get_upstream_client)],
) -> DocumentResponse:
    """Extract a document's text and optionally answer a question about it.

    Returns:
        DocumentResponse with ``extractedText`` and ``answer`` (null when no
        prompt was given).

    Raises:
        400: ``document`` missing.
        500: Upstream failure or no text extracted.
    """
    if not request.document:
        logger.warning("Rejected document request without document")
        raise MissingFieldError("Missing required field: document")

    extracted_text = await upstream.extract_document_text(request.document)
    logger.info(f"Extracted {len(extracted_text)} characters from document")

    if not request.prompt:
        return DocumentResponse(extracted_text=extracted_text, answer=None)

    answer = await upstream.answer_from_document(
        extracted_text,
        request.prompt,
        model=request.model,
    )
    return DocumentResponse(extracted_text=extracted_text, answer=answer)
