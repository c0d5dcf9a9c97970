from app.schemas import ErrorKind, ErrorReport

AUTH_MESSAGE = "Invalid API key. Please check the estimation service API key configuration."
QUOTA_MESSAGE = "API quota exceeded. Please try again later or check your API usage limits."
MALFORMED_MESSAGE = "The AI returned an unexpected response format. Please try again."
INVALID_INPUT_MESSAGE = "Please provide a valid image and a 5-digit zip code."
GENERIC_MESSAGE = "An unexpected error occurred while processing your request. Please try again."

AUTH_MARKERS = ("api key", "api_key", "permission denied", "permission_denied", "unauthenticated")
QUOTA_MARKERS = ("quota", "rate limit", "resource_exhausted", "limit")
AUTH_STATUS_CODES = {401, 403}
QUOTA_STATUS_CODES = {429}


class EstimationError(Exception):
    """A failed estimate, already classified for display."""

    def __init__(self, kind: ErrorKind, message: str, raw_response: str | None = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.raw_response = raw_response

    def to_report(self) -> ErrorReport:
        return ErrorReport(message=self.message, classification=self.kind)


class SubmissionInProgress(Exception):
    """Raised when submit is called while an estimate is already running."""


def _status_code(exc: Exception) -> int | None:
    # google-genai exposes .code, openai exposes .status_code
    for attr in ("status_code", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    return None


def classify_api_error(exc: Exception) -> EstimationError:
    """Map a provider exception onto the error taxonomy.

    Auth markers are checked before quota markers: a message such as
    "API key limit reached" is still a credential problem.
    """
    if isinstance(exc, EstimationError):
        return exc

    text = str(exc)
    lowered = text.lower()
    status = _status_code(exc)

    if status in AUTH_STATUS_CODES or any(m in lowered for m in AUTH_MARKERS):
        return EstimationError(ErrorKind.AUTH_ERROR, AUTH_MESSAGE)
    if status in QUOTA_STATUS_CODES or any(m in lowered for m in QUOTA_MARKERS):
        return EstimationError(ErrorKind.QUOTA_EXCEEDED, QUOTA_MESSAGE)
    if not text:
        return EstimationError(ErrorKind.UNKNOWN_API_ERROR, GENERIC_MESSAGE)
    return EstimationError(ErrorKind.UNKNOWN_API_ERROR, f"API Error: {text}")


def malformed_response(raw_response: str | None) -> EstimationError:
    return EstimationError(ErrorKind.MALFORMED_RESPONSE, MALFORMED_MESSAGE, raw_response=raw_response)
