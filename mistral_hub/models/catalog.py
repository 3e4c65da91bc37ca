"""Static catalog of the Mistral models offered in the model picker."""

from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

ModelId = Literal[
    "mistral-large-latest",
    "mistral-medium-latest",
    "mistral-small-latest",
    "pixtral-large-latest",
    "codestral-latest",
]

DEFAULT_VISION_MODEL: ModelId = "pixtral-large-latest"
DEFAULT_DOCUMENT_MODEL: ModelId = "mistral-large-latest"
OCR_MODEL: ModelId = "pixtral-large-latest"


class ModelInfo(BaseModel):
    """A selectable model and its capabilities.

    Attributes:
        id: Upstream model identifier.
        name: Display name.
        description: One-line description shown in the picker.
        supports_vision: Whether the model accepts image input.
        supports_documents: Whether the model is suited to document Q&A.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: ModelId
    name: str
    description: str
    supports_vision: bool
    supports_documents: bool


MODELS: tuple[ModelInfo, ...] = (
    ModelInfo(
        id="mistral-large-latest",
        name="Mistral Large",
        description="Most capable model for complex reasoning",
        supports_vision=False,
        supports_documents=True,
    ),
    ModelInfo(
        id="mistral-medium-latest",
        name="Mistral Medium",
        description="Balanced performance and speed",
        supports_vision=False,
        supports_documents=True,
    ),
    ModelInfo(
        id="mistral-small-latest",
        name="Mistral Small",
        description="Fast responses for simpler tasks",
        supports_vision=False,
        supports_documents=False,
    ),
    ModelInfo(
        id="pixtral-large-latest",
        name="Pixtral Large",
        description="Vision-enabled for image analysis",
        supports_vision=True,
        supports_documents=True,
    ),
    ModelInfo(
        id="codestral-latest",
        name="Codestral",
        description="Specialized for code generation",
        supports_vision=False,
        supports_documents=False,
    ),
)

DEFAULT_MODEL = MODELS[0]


def get_model(model_id: str) -> ModelInfo | None:
    """Look up a catalog entry by id, or None if unknown."""
    return next((m for m in MODELS if m.id == model_id), None)
