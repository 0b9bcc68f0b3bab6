from __future__ import annotations

import hmac
from typing import Any

from fastapi import HTTPException, Request, status

from astrawrite.config import Settings

_SESSION_USER_KEY = "user"


def verify_demo_credentials(email: str, password: str, settings: Settings) -> bool:
  """Check a login attempt against the configured demo account."""
  # Refuse every login when no demo account is configured.
  if not settings.demo_user or not settings.demo_pass:
    return False
  email_ok = hmac.compare_digest(email.encode("utf-8"), settings.demo_user.encode("utf-8"))
  password_ok = hmac.compare_digest(password.encode("utf-8"), settings.demo_pass.encode("utf-8"))
  return email_ok and password_ok


def start_session(request: Request, email: str) -> None:
  request.session[_SESSION_USER_KEY] = {"email": email}


def end_session(request: Request) -> None:
  request.session.clear()


async def get_session_user(request: Request) -> dict[str, Any]:
  """Return the signed-in user from the session cookie or reject the request."""
  user = request.session.get(_SESSION_USER_KEY)
  if not user:
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
  return user
