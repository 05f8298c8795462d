"""
api/services/identity.py — bearer token → user id.

Identity is resolved per request from the token alone; nothing is cached
between calls. Tokens are HS256 JWTs issued by the identity provider and
the user id is their `sub` claim.

A missing or invalid token is not an error here: it resolves to None
(anonymous) and the caller decides what anonymous may do.
"""
import logging
import os
from typing import Optional, Protocol

from jose import JWTError, jwt

log = logging.getLogger("study_share.identity")


class IdentityResolver(Protocol):
    def resolve(self, token: Optional[str]) -> Optional[str]:
        ...


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an `Authorization: Bearer <token>` header value."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


class JwtIdentityResolver:
    """Verify the token signature and return its subject."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        audience: Optional[str] = None,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._audience = audience

    def resolve(self, token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                options={"verify_aud": self._audience is not None},
            )
        except JWTError as exc:
            log.debug("Rejected bearer token: %s", exc)
            return None
        sub = claims.get("sub")
        return str(sub) if sub else None


def resolver_from_env() -> JwtIdentityResolver:
    """Build the resolver from JWT_SECRET / JWT_ALGORITHM / JWT_AUDIENCE."""
    return JwtIdentityResolver(
        secret=os.environ["JWT_SECRET"],
        algorithm=os.environ.get("JWT_ALGORITHM", "HS256"),
        audience=os.environ.get("JWT_AUDIENCE") or None,
    )
