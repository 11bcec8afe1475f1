from fastapi import Depends, Header, Request
from netscan.core.bootstrap import Services, get_services
from netscan.services.access import extract_bearer
from netscan.storage.base import Identity

def services_dep() -> Services:
    """FastAPI dependency returning the active service graph."""
    return get_services()

async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
    services: Services = Depends(services_dep),
) -> Identity:
    """
    FastAPI dependency to get the current authenticated user.

    The credential is taken from either:
    1. Authorization header (Bearer token) - preferred method
    2. HttpOnly cookie (accessToken) - fallback method

    Returns:
        Identity: sanitized identity of the caller

    Raises (mapped to responses by netscan.api.v1.errors):
        Unauthenticated (401): no token, bad/expired token, user gone, logged out
        SessionSuperseded (401): token belongs to a session replaced by a newer login

    Usage:
        @router.get("/protected")
        async def protected_route(user: Identity = Depends(get_current_user)):
            return {"user_id": user.id}
    """
    # 1) Prioritize Authorization: Bearer xxx
    token = extract_bearer(authorization)
    # 2) Secondly HttpOnly Cookie: accessToken
    if not token:
        token = request.cookies.get("accessToken")
    return await services.gate.authenticate(token)
