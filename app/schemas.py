from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# --- Estimation ---

class Confidence(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class EstimationResult(BaseModel):
    item_name: str = Field(
        alias="itemName",
        description="The name of the item identified in the image "
        "(e.g., 'Vintage Leather Armchair', 'Used Mountain Bike').",
    )
    estimated_price: int = Field(
        alias="estimatedPrice",
        ge=0,
        strict=True,
        description="Your best single-point estimate for the local selling price in USD. "
        "Do not include currency symbols.",
    )
    price_range: str = Field(
        alias="priceRange",
        description="A likely price range for the item, formatted as '$min - $max'.",
    )
    confidence: Confidence = Field(
        description="Your confidence level in this estimate: High, Medium, or Low.",
    )
    reasoning: str = Field(
        description="A detailed but concise explanation for your valuation. Mention the item's "
        "condition, brand (if identifiable), and how the zip code might influence the price.",
    )

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


# --- Errors ---

class ErrorKind(str, Enum):
    INVALID_INPUT = "InvalidInput"
    AUTH_ERROR = "AuthError"
    QUOTA_EXCEEDED = "QuotaExceeded"
    MALFORMED_RESPONSE = "MalformedResponse"
    UNKNOWN_API_ERROR = "UnknownApiError"


class ErrorReport(BaseModel):
    message: str
    classification: ErrorKind

    model_config = ConfigDict(frozen=True)


# --- Form input ---

class ImageUpload(BaseModel):
    data: bytes
    content_type: str | None = None
    filename: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def size(self) -> int:
        return len(self.data)


class PostalCodeIn(BaseModel):
    postal_code: str = Field(alias="postalCode")

    model_config = {"populate_by_name": True}
