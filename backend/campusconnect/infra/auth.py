"""Caller identity for HTTP routes and the socket namespace.

Access tokens are issued elsewhere; this service verifies them and resolves
the caller's role exactly once, so handlers receive a typed identity rather
than inspecting raw claims. Development builds additionally trust the
``X-User-Id`` / ``X-User-Roles`` headers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from campusconnect.infra import jwt as jwt_helper
from campusconnect.obs import logging as obs_logging
from campusconnect.settings import settings


class Role(str, Enum):
	ADMIN = "admin"
	STUDENT = "student"

	@classmethod
	def resolve(cls, claim: object) -> "Role":
		"""Map a roles claim (list, comma-separated string or single value) to a Role."""
		if isinstance(claim, str):
			claim = claim.split(",")
		if not isinstance(claim, (list, tuple, set)):
			return cls.STUDENT
		names = {str(item).strip().lower() for item in claim}
		return cls.ADMIN if cls.ADMIN.value in names else cls.STUDENT


def _optional_str(value: Any) -> Optional[str]:
	if value is None:
		return None
	text = str(value).strip()
	return text or None


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	role: Role = Role.STUDENT
	display_name: Optional[str] = None
	session_id: Optional[str] = None

	@property
	def is_admin(self) -> bool:
		return self.role is Role.ADMIN

	@classmethod
	def from_claims(cls, claims: Mapping[str, Any]) -> "AuthenticatedUser":
		return cls(
			id=str(claims["sub"]).strip(),
			role=Role.resolve(claims.get("roles") or claims.get("role")),
			display_name=_optional_str(claims.get("name") or claims.get("display_name")),
			session_id=_optional_str(claims.get("sid")),
		)


_bearer = HTTPBearer(auto_error=False)


def verify_access_jwt(token: str) -> AuthenticatedUser:
	try:
		claims = jwt_helper.decode_access(token)
	except Exception:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token") from None
	return AuthenticatedUser.from_claims(claims)


def _attach(request: Request, user: AuthenticatedUser) -> AuthenticatedUser:
	request.state.user_id = user.id
	# the request runs in its own context copy, so this binding ends with it
	obs_logging.bind_context(user_id=user.id)
	return user


async def get_current_user(
	request: Request,
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_roles: Optional[str] = Header(default=None, alias="X-User-Roles"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> AuthenticatedUser:
	if credentials is not None and credentials.scheme.lower() == "bearer":
		return _attach(request, verify_access_jwt(credentials.credentials))
	if x_user_id and settings.is_dev():
		return _attach(request, AuthenticatedUser(id=x_user_id, role=Role.resolve(x_user_roles)))
	raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")


async def get_admin_user(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
	if not user.is_admin:
		raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="insufficient_role")
	return user


def require_owner(param: str = "user_id"):
	"""Dependency factory: the caller must own the ``param`` path value, or be an admin."""

	async def _owner_or_admin(
		request: Request,
		user: AuthenticatedUser = Depends(get_current_user),
	) -> AuthenticatedUser:
		if user.is_admin or str(request.path_params.get(param, "")) == user.id:
			return user
		raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="forbidden")

	return _owner_or_admin


def parse_socket_token(token: Optional[str]) -> AuthenticatedUser:
	"""Verify a token presented on the real-time channel; ValueError when unusable."""
	token = (token or "").strip()
	if not token:
		raise ValueError("empty_token")
	try:
		return verify_access_jwt(token)
	except HTTPException:
		raise ValueError("invalid_token") from None
