"""
api/dependencies/auth.py

Caller identity for routes. The Authorization header is optional
everywhere; routes that need a signed-in user depend on require_user.
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from api.services.identity import IdentityResolver, bearer_token


async def get_identity(request: Request) -> IdentityResolver:
    """FastAPI dependency — the resolver built in the lifespan."""
    return request.app.state.identity


async def get_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    return bearer_token(authorization)


async def current_user(
    token: Optional[str] = Depends(get_token),
    identity: IdentityResolver = Depends(get_identity),
) -> Optional[str]:
    """User id of the caller, or None when anonymous."""
    return identity.resolve(token)


async def require_user(user_id: Optional[str] = Depends(current_user)) -> str:
    if user_id is None:
        raise HTTPException(status_code=401, detail="Authentication required.")
    return user_id
