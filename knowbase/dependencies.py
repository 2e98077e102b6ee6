"""FastAPI dependencies shared by the routers."""

from fastapi import HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from knowbase.config import Settings
from knowbase.services.store import PageStore

limiter = Limiter(key_func=get_remote_address)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> PageStore:
    return request.app.state.store


def is_authenticated(request: Request) -> bool:
    return bool(request.session.get("auth"))


def require_session(request: Request) -> None:
    """Reject the request with 401 unless the session has logged in."""
    if not is_authenticated(request):
        raise HTTPException(status_code=401, detail="Login required.")
