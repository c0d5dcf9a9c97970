from fastapi import Depends, Request

from app.controller import FormController
from app.estimation.base import EstimationClient
from app.estimation.factory import get_estimation_client
from app.previews import PreviewStore
from app.sessions import SessionRegistry


def get_sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_previews(request: Request) -> PreviewStore:
    return request.app.state.sessions.previews


def get_session_id(request: Request) -> str:
    """Read the session key assigned by SessionMiddleware."""
    return request.state.session_id


def get_controller(
    session_id: str = Depends(get_session_id),
    sessions: SessionRegistry = Depends(get_sessions),
) -> FormController:
    return sessions.get(session_id)


def get_client() -> EstimationClient:
    return get_estimation_client()
