"""Single-shot image analysis endpoint."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from mistral_hub.api.dependencies import get_upstream_client
from mistral_hub.errors import MissingFieldError
from mistral_hub.models.schemas import ContentResponse, ErrorResponse, VisionRequest
from mistral_hub.upstream import UpstreamClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vision", tags=["vision"])


@router.post(
    "",
    response_model=ContentResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def vision(
    request: VisionRequest,
    upstream: Annotated[UpstreamClient, Depends(get_upstream_client)],
) -> ContentResponse:
    """Describe an image or answer a prompt about it.

    Raises:
        400: ``image`` missing.
        500: Upstream failure or empty model response.
    """
    if not request.image:
        logger.warning("Rejected vision request without image")
        raise MissingFieldError("Missing required field: image")

    content = await upstream.describe_image(
        request.image,
        prompt=request.prompt,
        model=request.model,
    )
    return ContentResponse(content=content)
