import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from astrawrite.api.models import LoginRequest, SuccessResponse
from astrawrite.config import Settings, get_settings
from astrawrite.core.security import end_session, start_session, verify_demo_credentials

router = APIRouter()
logger = logging.getLogger("astrawrite.api.routes.auth")


@router.post("/login", response_model=SuccessResponse)
async def login(  # noqa: B008
  payload: LoginRequest,
  request: Request,
  settings: Settings = Depends(get_settings),  # noqa: B008
) -> SuccessResponse:
  """Start a session for the demo account."""
  if not verify_demo_credentials(payload.email, payload.password, settings):
    logger.info("Rejected login attempt")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

  start_session(request, payload.email)
  return SuccessResponse()


@router.post("/logout", response_model=SuccessResponse)
async def logout(request: Request) -> SuccessResponse:
  """End the current session."""
  end_session(request)
  return SuccessResponse()
