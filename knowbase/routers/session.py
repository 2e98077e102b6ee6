import hmac
import logging

from fastapi import APIRouter, Depends, Form, HTTPException, Request

from knowbase.config import Settings
from knowbase.dependencies import get_settings, is_authenticated, limiter
from knowbase.models.session_response import StatusResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Session"])


@router.get("/", response_model=StatusResponse, summary="Wiki name and login state")
async def status(request: Request, settings: Settings = Depends(get_settings)) -> StatusResponse:
    return StatusResponse(name=settings.name, authenticated=is_authenticated(request))


@router.post("/login", response_model=StatusResponse, summary="Log in with the access code")
@limiter.limit("5/minute")
async def login(
    request: Request,
    password: str = Form(...),
    settings: Settings = Depends(get_settings),
) -> StatusResponse:
    """Mark the session as authenticated when *password* matches the access code.

    Surrounding whitespace in the submitted code is ignored.
    """
    if not hmac.compare_digest(password.strip().encode(), settings.access_code.encode()):
        logger.warning("Rejected login attempt", extra={"client": request.client and request.client.host})
        raise HTTPException(status_code=401, detail="Invalid access code")

    request.session["auth"] = True
    return StatusResponse(name=settings.name, authenticated=True)


@router.post("/logout", response_model=StatusResponse, summary="Log out")
async def logout(request: Request, settings: Settings = Depends(get_settings)) -> StatusResponse:
    request.session.clear()
    return StatusResponse(name=settings.name, authenticated=False)
