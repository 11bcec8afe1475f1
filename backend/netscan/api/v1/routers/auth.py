import logging
from fastapi import APIRouter, Depends, Response, status
from netscan.api.v1.deps import get_current_user, services_dep
from netscan.core.bootstrap import Services
from netscan.schemas.auth import ChangePasswordIn, LoginIn, ProfileUpdateIn, RegisterIn
from netscan.storage.base import Identity

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger("uvicorn.error")


def _user_to_dict(u: Identity) -> dict:
    """Sanitized identity as returned to clients (never includes the hash)"""
    return {
        "id": u.id,
        "name": u.name,
        "email": u.email,
        "createdAt": u.created_at.isoformat(),
        "lastLogin": u.last_login_at.isoformat(),
    }


async def _open_session(services: Services, user_id: str, response: Response) -> str:
    """Start a fresh session (superseding any other) and hand out its token"""
    marker = await services.sessions.start_session(user_id)
    token = services.sessions.issue_token(user_id, marker)
    response.set_cookie("accessToken", token, httponly=True, secure=False, samesite="lax")
    return token


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterIn, response: Response, services: Services = Depends(services_dep)):
    """
    Register a new account and log it in.

    Returns:
        dict: success envelope with the sanitized user and an accessToken
              (also set as the HttpOnly "accessToken" cookie)

    Error codes:
        - VALIDATION_ERROR (400): bad name/email/password
        - EMAIL_EXISTS (409): email already registered (case/whitespace-insensitive)
    """
    user = await services.credentials.create_identity(body.name, body.email, body.password)
    token = await _open_session(services, user.id, response)
    logger.info("[auth] registered %s", user.email)
    return {"success": True, "data": {"user": _user_to_dict(user), "accessToken": token}}


@router.post("/login")
async def login(payload: LoginIn, response: Response, services: Services = Depends(services_dep)):
    """
    Authenticate and start a new session.

    Any session started by an earlier login stops working immediately; its
    token is rejected with AUTH_SESSION_SUPERSEDED from then on.

    Error codes:
        - AUTH_INVALID_CREDENTIALS (401): unknown email or wrong password
    """
    record = await services.credentials.authenticate(payload.email, payload.password)
    token = await _open_session(services, record.id, response)
    user = await services.credentials.touch_login(record.id)
    logger.info("[auth] login %s", record.email)
    return {"success": True, "data": {"user": _user_to_dict(user), "accessToken": token}}


@router.get("/me")
async def me(user: Identity = Depends(get_current_user)):
    """Current authenticated user"""
    return {"success": True, "data": _user_to_dict(user)}


@router.post("/logout")
async def logout(
    response: Response,
    user: Identity = Depends(get_current_user),
    services: Services = Depends(services_dep),
):
    """
    End the current session server-side and clear the cookie.
    Tokens issued for this session fail with AUTH_SESSION_ENDED afterwards.
    """
    await services.sessions.end_session(user.id)
    response.delete_cookie("accessToken")
    logger.info("[auth] logout %s", user.email)
    return {"success": True}


@router.put("/profile")
async def update_profile(
    body: ProfileUpdateIn,
    user: Identity = Depends(get_current_user),
    services: Services = Depends(services_dep),
):
    """Rename the current user; blank names fail with VALIDATION_ERROR"""
    updated = await services.credentials.rename_identity(user.id, body.name)
    return {"success": True, "data": _user_to_dict(updated)}


@router.post("/change-password")
async def change_password(
    body: ChangePasswordIn,
    user: Identity = Depends(get_current_user),
    services: Services = Depends(services_dep),
):
    """
    Change the current user's password.
    The current password must be supplied; the session stays active.
    """
    await services.credentials.change_password(user.id, body.currentPassword, body.newPassword)
    return {"success": True, "data": {"ok": True}}
