from app.controller import FormSnapshot, FormState
from app.errors import GENERIC_MESSAGE
from app.schemas import Confidence, ErrorReport, EstimationResult

BADGE_VARIANTS = {
    Confidence.HIGH: "success",
    Confidence.MEDIUM: "warning",
    Confidence.LOW: "danger",
}

BADGE_CLASSES = {
    "success": "badge badge-success",
    "warning": "badge badge-warning",
    "danger": "badge badge-danger",
}


def format_price(amount: int) -> str:
    return f"${amount:,}"


def present_badge(confidence: Confidence) -> dict:
    variant = BADGE_VARIANTS[confidence]
    return {
        "label": confidence.value,
        "variant": variant,
        "className": BADGE_CLASSES[variant],
    }


def present_result(result: EstimationResult) -> dict:
    return {
        "itemName": result.item_name,
        "price": format_price(result.estimated_price),
        "estimatedPrice": result.estimated_price,
        "priceRange": result.price_range,
        "confidence": result.confidence.value,
        "badge": present_badge(result.confidence),
        "reasoning": result.reasoning,
    }


def present_error(report: ErrorReport) -> str:
    return report.message.strip() or GENERIC_MESSAGE


def present_state(snapshot: FormSnapshot) -> dict:
    return {
        "state": snapshot.state.value,
        "postalCode": snapshot.postal_code,
        "imageName": snapshot.image_name,
        "previewUrl": snapshot.preview_url,
        "canSubmit": snapshot.can_submit,
        "isLoading": snapshot.state is FormState.SUBMITTING,
        "imageError": snapshot.image_error,
        "result": present_result(snapshot.result) if snapshot.result is not None else None,
        "error": (
            {"message": present_error(snapshot.error), "classification": snapshot.error.classification.value}
            if snapshot.error is not None
            else None
        ),
    }
