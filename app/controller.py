import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from app.errors import INVALID_INPUT_MESSAGE, SubmissionInProgress, classify_api_error
from app.estimation.base import EstimationClient
from app.previews import PreviewHandle, PreviewStore
from app.schemas import ErrorKind, ErrorReport, EstimationResult, ImageUpload
from app.validation import ValidationResult, can_submit, validate, validate_file

logger = logging.getLogger("estimator")


class FormState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class FormSnapshot:
    state: FormState
    postal_code: str
    image_name: str | None
    preview_url: str | None
    can_submit: bool
    result: EstimationResult | None
    error: ErrorReport | None
    image_error: str | None


class FormController:
    """Server-side state of one estimate form.

    Every input edit bumps ``generation``. A submission remembers the
    generation it started under and only applies its outcome if nothing was
    edited while the call was in flight.
    """

    def __init__(self, previews: PreviewStore):
        self._previews = previews
        self.state = FormState.IDLE
        self.image: ImageUpload | None = None
        self.postal_code = ""
        self.preview: PreviewHandle | None = None
        self.result: EstimationResult | None = None
        self.error: ErrorReport | None = None
        self.image_error: str | None = None
        self.generation = 0
        self.closed = False

    def _edited(self) -> None:
        self.generation += 1
        self.state = FormState.IDLE
        self.result = None
        self.error = None

    def _release_preview(self) -> None:
        self._previews.release(self.preview)
        self.preview = None

    def select_image(self, upload: ImageUpload) -> ValidationResult:
        check = validate_file(upload)
        if not check.ok:
            # A rejected file leaves the current selection in place
            self.image_error = check.message
            logger.info("Image rejected", extra={"extra_data": {"reason": check.reason}})
            return check

        self._release_preview()
        self.preview = self._previews.acquire(upload)
        self.image = upload
        self.image_error = None
        self._edited()
        return check

    def change_postal_code(self, postal_code: str) -> None:
        self.postal_code = postal_code
        self._edited()

    def can_submit(self) -> bool:
        return self.state is not FormState.SUBMITTING and can_submit(self.image, self.postal_code)

    async def submit(self, client: EstimationClient) -> FormSnapshot:
        if self.state is FormState.SUBMITTING:
            raise SubmissionInProgress()

        check = validate(self.image, self.postal_code)
        if not check.ok:
            self.result = None
            self.error = ErrorReport(message=INVALID_INPUT_MESSAGE, classification=ErrorKind.INVALID_INPUT)
            logger.info("Submission blocked", extra={"extra_data": {"reason": check.reason}})
            return self.snapshot()

        self.generation += 1
        generation = self.generation
        image, postal_code = self.image, self.postal_code
        self.result = None
        self.error = None
        self.state = FormState.SUBMITTING

        result = None
        failure = None
        try:
            result = await client.estimate(image, postal_code)
        except asyncio.CancelledError:
            if generation == self.generation:
                self.state = FormState.IDLE
            raise
        except Exception as e:
            failure = classify_api_error(e)

        if generation != self.generation or self.closed:
            logger.info("Discarded stale estimate", extra={"extra_data": {"generation": generation}})
            return self.snapshot()

        if failure is not None:
            self.error = failure.to_report()
            self.state = FormState.FAILURE
            logger.warning(
                "Estimate failed",
                extra={"extra_data": {"kind": failure.kind.value, "postal_code": postal_code}},
            )
        else:
            self.result = result
            self.state = FormState.SUCCESS
            logger.info(
                "Estimate completed",
                extra={"extra_data": {
                    "item_name": result.item_name,
                    "confidence": result.confidence.value,
                    "postal_code": postal_code,
                }},
            )
        return self.snapshot()

    def reset(self) -> None:
        self._release_preview()
        self.image = None
        self.postal_code = ""
        self.image_error = None
        self._edited()

    def close(self) -> None:
        self._release_preview()
        self.image = None
        self.generation += 1
        self.closed = True

    def snapshot(self) -> FormSnapshot:
        return FormSnapshot(
            state=self.state,
            postal_code=self.postal_code,
            image_name=self.image.filename if self.image else None,
            preview_url=self.preview.url if self.preview else None,
            can_submit=self.can_submit(),
            result=self.result,
            error=self.error,
            image_error=self.image_error,
        )
