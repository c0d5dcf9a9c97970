import logging

from google import genai
from google.genai import types

from app.errors import classify_api_error
from app.estimation.base import ImagePayload, RESULT_FIELDS, build_prompt, field_description, parse_result
from app.schemas import Confidence, EstimationResult, ImageUpload

logger = logging.getLogger("estimator")

RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "itemName": types.Schema(type=types.Type.STRING, description=field_description("itemName")),
        "estimatedPrice": types.Schema(type=types.Type.INTEGER, description=field_description("estimatedPrice")),
        "priceRange": types.Schema(type=types.Type.STRING, description=field_description("priceRange")),
        "confidence": types.Schema(
            type=types.Type.STRING,
            description=field_description("confidence"),
            enum=[c.value for c in Confidence],
        ),
        "reasoning": types.Schema(type=types.Type.STRING, description=field_description("reasoning")),
    },
    required=list(RESULT_FIELDS),
    property_ordering=list(RESULT_FIELDS),
)


class GeminiEstimationClient:
    """Market value estimation using Google Gemini structured output."""

    def __init__(self, api_key: str | None = None, model: str = "gemini-2.5-flash", client=None):
        self.model = model
        self._client = client if client is not None else genai.Client(api_key=api_key)

    def build_request(self, image: ImageUpload, postal_code: str) -> dict:
        payload = ImagePayload.from_upload(image)
        return {
            "model": self.model,
            "contents": [
                types.Part.from_text(text=build_prompt(postal_code)),
                types.Part.from_bytes(data=payload.data, mime_type=payload.mime_type),
            ],
            "config": types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=RESPONSE_SCHEMA,
            ),
        }

    async def estimate(self, image: ImageUpload, postal_code: str) -> EstimationResult:
        request = self.build_request(image, postal_code)
        try:
            response = await self._client.aio.models.generate_content(**request)
        except Exception as e:
            error = classify_api_error(e)
            logger.warning(
                f"Gemini request failed: {e}",
                extra={"extra_data": {"kind": error.kind.value, "model": self.model}},
            )
            raise error from e

        return parse_result(response.text)
