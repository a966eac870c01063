"""
Session endpoints.

POST /api/v1/auth/logout — Revoke the current session and clear its cookies
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from backoffice.core.auth import authorization_header, revoke_session, session_token
from backoffice.core.middleware import CSRF_COOKIE, SESSION_COOKIE
from backoffice_shared.schemas.common import SuccessResponse

router = APIRouter()


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    request: Request,
    response: Response,
    authorization: Optional[str] = Depends(authorization_header),
):
    """Invalidate the current session. Already-invalid tokens just get their cookies cleared."""
    token = session_token(request, authorization)
    if token:
        await revoke_session(token)

    response.delete_cookie(SESSION_COOKIE, path="/")
    response.delete_cookie(CSRF_COOKIE, path="/")
    return SuccessResponse()
