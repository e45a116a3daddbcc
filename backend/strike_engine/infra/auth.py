"""Authentication helpers for FastAPI endpoints.

- Bearer JWTs (HS256, settings.secret_key) identify the acting principal.
- A dev-only `X-User-Id` header is honoured for local tools.
- Admin capability itself is decided by the moderation AuthorizationChecker,
  not by the token.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from strike_engine.infra import jwt as jwt_helper
from strike_engine.settings import settings


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	display_name: Optional[str] = None


_bearer_scheme = HTTPBearer(auto_error=False)


def verify_access_jwt(token: str) -> AuthenticatedUser:
	"""Decode and validate an access JWT and return an AuthenticatedUser."""
	try:
		payload = jwt_helper.decode_access(token)
	except Exception:
		# Normalise all decode failures to invalid_token for the API surface
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")

	sub = str(payload.get("sub") or "").strip()
	if not sub:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
	display_name = payload.get("name") or payload.get("display_name")
	return AuthenticatedUser(
		id=sub,
		display_name=str(display_name) if display_name is not None else None,
	)


async def get_current_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser:
	"""Resolve the authenticated user.

	In development we allow simple headers. In all other environments, headers are
	ignored and a valid Bearer JWT is required.
	"""
	if credentials and credentials.scheme.lower() == "bearer":
		return verify_access_jwt(credentials.credentials)

	if settings.is_dev() and x_user_id:
		return AuthenticatedUser(id=x_user_id.strip())

	raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
