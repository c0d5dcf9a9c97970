import logging

from agents import Agent, ModelBehaviorError, Runner, set_default_openai_key

from app.errors import classify_api_error, malformed_response
from app.estimation.base import ImagePayload, build_prompt
from app.schemas import EstimationResult, ImageUpload

logger = logging.getLogger("estimator")

INSTRUCTIONS = """\
You are a local resale market appraiser. Given a photo of an item and a US zip code, estimate what the item would sell for secondhand.

Rules:
- itemName: the name of the item identified in the image, as specific as the photo allows
- estimatedPrice: your best single-point estimate in whole USD, no currency symbol
- priceRange: a likely range formatted exactly as "$min - $max"
- confidence: exactly one of High, Medium, Low
- reasoning: a concise explanation mentioning condition, brand if identifiable, and how the zip code affects the price"""


class OpenAIEstimationClient:
    """Market value estimation using OpenAI Agents SDK with GPT-4o vision."""

    def __init__(self, api_key: str | None = None, model: str = "gpt-4o"):
        if api_key:
            set_default_openai_key(api_key)
        self.agent = Agent(
            name="Market Value Estimator",
            instructions=INSTRUCTIONS,
            model=model,
            output_type=EstimationResult,
        )

    async def estimate(self, image: ImageUpload, postal_code: str) -> EstimationResult:
        payload = ImagePayload.from_upload(image)

        try:
            result = await Runner.run(
                self.agent,
                input=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "input_text", "text": build_prompt(postal_code)},
                            {"type": "input_image", "image_url": payload.data_url},
                        ],
                    }
                ],
            )
        except ModelBehaviorError as e:
            logger.error(f"OpenAI returned output outside the schema: {e}")
            raise malformed_response(str(e)) from e
        except Exception as e:
            error = classify_api_error(e)
            logger.warning(
                f"OpenAI request failed: {e}",
                extra={"extra_data": {"kind": error.kind.value}},
            )
            raise error from e

        output = result.final_output
        if not isinstance(output, EstimationResult):
            raise malformed_response(repr(output))
        return output
