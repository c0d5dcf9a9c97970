import base64
import logging
import re
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from app.errors import malformed_response
from app.schemas import EstimationResult, ImageUpload

logger = logging.getLogger("estimator")

PROMPT_TEMPLATE = (
    "Analyze the item in this image. Based on its apparent condition and features, "
    "and considering the local market dynamics of zip code {postal_code}, estimate its "
    "resale value on platforms like Facebook Marketplace or Craigslist."
)

# Field order as it appears in the structured-output schema
RESULT_FIELDS = ("itemName", "estimatedPrice", "priceRange", "confidence", "reasoning")


@dataclass(frozen=True)
class ImagePayload:
    """Image bytes tagged with their MIME type, ready for inline transport."""

    data: bytes
    mime_type: str

    @classmethod
    def from_upload(cls, upload: ImageUpload) -> "ImagePayload":
        return cls(data=upload.data, mime_type=upload.content_type or "image/jpeg")

    @property
    def b64(self) -> str:
        return base64.b64encode(self.data).decode("utf-8")

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.b64}"


class EstimationClient(Protocol):
    async def estimate(self, image: ImageUpload, postal_code: str) -> EstimationResult: ...


def build_prompt(postal_code: str) -> str:
    return PROMPT_TEMPLATE.format(postal_code=postal_code)


def field_description(alias: str) -> str:
    # Fields without an alias go over the wire under their own name
    for name, field in EstimationResult.model_fields.items():
        if (field.alias or name) == alias:
            return field.description or ""
    raise KeyError(alias)


def _strip_fences(text: str) -> str:
    """Strip markdown code fences if present."""
    text = text.strip()
    text = re.sub(r"^```(?:json)?\s*", "", text)
    text = re.sub(r"\s*```$", "", text)
    return text.strip()


def parse_result(raw_text: str | None) -> EstimationResult:
    """Decode the model's JSON text into an EstimationResult.

    Anything that does not satisfy the schema exactly raises a
    MalformedResponse error carrying the raw text.
    """
    if not raw_text or not raw_text.strip():
        logger.error("Estimation service returned an empty response")
        raise malformed_response(raw_text)

    try:
        return EstimationResult.model_validate_json(_strip_fences(raw_text))
    except ValidationError as e:
        logger.error(
            "Failed to parse estimation response",
            extra={"extra_data": {"raw_response": raw_text, "errors": e.error_count()}},
        )
        raise malformed_response(raw_text) from e
