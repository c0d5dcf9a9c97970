import re
from dataclasses import dataclass

from app.schemas import ImageUpload

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB
ACCEPTED_CONTENT_TYPES = {"image/png", "image/jpeg", "image/jpg", "image/webp"}
POSTAL_CODE_PATTERN = re.compile(r"[0-9]{5}")

MISSING_IMAGE = "missing image"
UNSUPPORTED_TYPE = "unsupported type"
EMPTY_FILE = "empty file"
TOO_LARGE = "too large"
INVALID_POSTAL_CODE = "invalid postal code"

REASON_MESSAGES = {
    MISSING_IMAGE: "Please select an image of the item.",
    UNSUPPORTED_TYPE: "Please select a valid image file (PNG, JPG, or WEBP).",
    EMPTY_FILE: "The selected file is empty.",
    TOO_LARGE: "File size must be less than 10MB.",
    INVALID_POSTAL_CODE: "Please enter a 5-digit zip code.",
}


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    reason: str | None = None

    @property
    def message(self) -> str | None:
        if self.reason is None:
            return None
        return REASON_MESSAGES[self.reason]


VALID = ValidationResult(ok=True)


def _reject(reason: str) -> ValidationResult:
    return ValidationResult(ok=False, reason=reason)


def validate_file(file: ImageUpload | None) -> ValidationResult:
    if file is None:
        return _reject(MISSING_IMAGE)
    if file.content_type not in ACCEPTED_CONTENT_TYPES:
        return _reject(UNSUPPORTED_TYPE)
    if file.size == 0:
        return _reject(EMPTY_FILE)
    if file.size > MAX_FILE_SIZE:
        return _reject(TOO_LARGE)
    return VALID


def validate_postal_code(postal_code: str | None) -> ValidationResult:
    # fullmatch with [0-9] so "12345\n" and non-ASCII digits are rejected
    if postal_code is None or not POSTAL_CODE_PATTERN.fullmatch(postal_code):
        return _reject(INVALID_POSTAL_CODE)
    return VALID


def validate(file: ImageUpload | None, postal_code: str | None) -> ValidationResult:
    """Check a submission before any network call is made.

    The file is checked first so its reason wins when both fields are bad.
    """
    result = validate_file(file)
    if not result.ok:
        return result
    return validate_postal_code(postal_code)


def can_submit(file: ImageUpload | None, postal_code: str | None) -> bool:
    return validate(file, postal_code).ok
