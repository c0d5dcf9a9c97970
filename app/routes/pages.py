from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.templating import Jinja2Templates

from app.controller import FormController
from app.deps import get_controller
from app.presenter import present_state
from app.validation import ACCEPTED_CONTENT_TYPES

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter()


@router.get("/")
def index(request: Request, controller: FormController = Depends(get_controller)):
    context = {
        "title": "Local Market Estimator",
        "form": present_state(controller.snapshot()),
        "accept": ", ".join(sorted(ACCEPTED_CONTENT_TYPES - {"image/jpg"})),
    }
    return templates.TemplateResponse(request, "index.html", context)
