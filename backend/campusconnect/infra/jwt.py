"""HS256 access tokens.

Tokens are issued by the identity service; this module only needs to read
them (``decode_access``). ``encode_access`` exists for tooling and tests.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Mapping

import jwt

from campusconnect.settings import settings

ALGORITHM = "HS256"
ISSUER = "campusconnect-api"
AUDIENCE = "campusconnect-fe"
REQUIRED_CLAIMS = ("sub", "exp", "iat", "iss", "aud")
CLOCK_SKEW_SECONDS = 5


def encode_access(claims: Mapping[str, Any], *, ttl_seconds: int = 3600) -> str:
    issued_at = int(time.time())
    body: Dict[str, Any] = {
        "iss": ISSUER,
        "aud": AUDIENCE,
        "iat": issued_at,
        "exp": issued_at + ttl_seconds,
        **claims,
    }
    return jwt.encode(body, settings.secret_key, algorithm=ALGORITHM)


def decode_access(token: str) -> Dict[str, Any]:
    """Return the verified claims; raises ``jwt.InvalidTokenError`` otherwise."""
    claims = jwt.decode(
        token,
        settings.secret_key,
        algorithms=[ALGORITHM],
        audience=AUDIENCE,
        issuer=ISSUER,
        leeway=CLOCK_SKEW_SECONDS,
        options={"require": list(REQUIRED_CLAIMS)},
    )
    if not str(claims.get("sub") or "").strip():
        raise jwt.InvalidTokenError("empty subject")
    return claims
