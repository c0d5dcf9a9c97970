from fastapi import APIRouter, Depends, File, HTTPException, Request, Response, UploadFile
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.controller import FormController
from app.deps import get_client, get_controller, get_previews
from app.errors import SubmissionInProgress
from app.estimation.base import EstimationClient
from app.presenter import present_state
from app.previews import PreviewStore
from app.ratelimit import limiter
from app.schemas import ErrorKind, ImageUpload, PostalCodeIn
from app.validation import MAX_FILE_SIZE

router = APIRouter()


def _estimate_rate_limit() -> str:
    return get_settings().estimate_rate_limit


def _upload_rate_limit() -> str:
    return get_settings().upload_rate_limit


@router.get("/form")
def get_form(controller: FormController = Depends(get_controller)):
    return present_state(controller.snapshot())


@router.post("/form/image")
@limiter.limit(_upload_rate_limit)
async def select_image(
    request: Request,
    file: UploadFile = File(...),
    controller: FormController = Depends(get_controller),
):
    # One byte past the limit is enough to reject an oversized file
    image_bytes = await file.read(MAX_FILE_SIZE + 1)
    upload = ImageUpload(data=image_bytes, content_type=file.content_type, filename=file.filename)

    check = controller.select_image(upload)
    body = present_state(controller.snapshot())
    if not check.ok:
        return JSONResponse(body, status_code=400)
    return body


@router.post("/form/postal-code")
def change_postal_code(data: PostalCodeIn, controller: FormController = Depends(get_controller)):
    controller.change_postal_code(data.postal_code)
    return present_state(controller.snapshot())


@router.post("/form/submit")
@limiter.limit(_estimate_rate_limit)
async def submit_form(
    request: Request,
    controller: FormController = Depends(get_controller),
    client: EstimationClient = Depends(get_client),
):
    try:
        snapshot = await controller.submit(client)
    except SubmissionInProgress:
        # The page re-renders from the state body, so send it with the conflict
        return JSONResponse(present_state(controller.snapshot()), status_code=409)

    body = present_state(snapshot)
    if snapshot.error is None:
        return body
    if snapshot.error.classification is ErrorKind.INVALID_INPUT:
        return JSONResponse(body, status_code=422)
    return JSONResponse(body, status_code=502)


@router.post("/form/reset")
def reset_form(controller: FormController = Depends(get_controller)):
    controller.reset()
    return present_state(controller.snapshot())


@router.get("/previews/{token}")
def get_preview(token: str, previews: PreviewStore = Depends(get_previews)):
    preview = previews.get(token)
    if preview is None:
        raise HTTPException(status_code=404, detail="Preview not found")
    data, content_type = preview
    return Response(content=data, media_type=content_type, headers={"Cache-Control": "no-store"})
