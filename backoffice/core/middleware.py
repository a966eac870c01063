"""
HTTP hardening for the back-office API.

The API only serves JSON, so every response gets a deny-all content policy
and admin data is never cached. The interactive docs (served only with
``debug`` on) get a policy that lets Swagger UI load its CDN assets.

Cookie-authenticated mutations of the API must echo the CSRF cookie in a
header (double-submit). Bearer-token clients carry no ambient credentials
and are not checked.
"""

from __future__ import annotations

import secrets

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

API_PREFIX = "/api/v1/"
DOCS_PATHS = ("/docs", "/redoc")

# The only unsafe methods the API routes use
CSRF_PROTECTED_METHODS = frozenset({"POST", "DELETE"})

SESSION_COOKIE = "bo_session"
CSRF_COOKIE = "bo_csrf"
CSRF_HEADER = "X-CSRF-Token"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "Strict-Transport-Security": "max-age=63072000; includeSubDomains",
}

DOCS_CSP = (
    "default-src 'self'; "
    "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "img-src 'self' data: https://fastapi.tiangolo.com; "
    "frame-ancestors 'none'"
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, docs_enabled: bool = False):
        super().__init__(app)
        self.docs_enabled = docs_enabled

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)

        path = request.url.path
        if self.docs_enabled and path.startswith(DOCS_PATHS):
            response.headers["Content-Security-Policy"] = DOCS_CSP
        if path.startswith(API_PREFIX):
            response.headers["Cache-Control"] = "no-store"
        return response


def _requires_csrf(request: Request) -> bool:
    if request.method not in CSRF_PROTECTED_METHODS:
        return False
    if not request.url.path.startswith(API_PREFIX):
        return False
    # A Bearer token wins over the cookie when resolving the caller
    if request.headers.get("Authorization", "").startswith("Bearer "):
        return False
    return SESSION_COOKIE in request.cookies


class CSRFMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        if _requires_csrf(request):
            cookie_token = request.cookies.get(CSRF_COOKIE, "")
            header_token = request.headers.get(CSRF_HEADER, "")
            if not cookie_token or not secrets.compare_digest(
                cookie_token.encode(), header_token.encode()
            ):
                return JSONResponse(
                    status_code=403,
                    content={"detail": "Invalid or missing CSRF token"},
                )
        return await call_next(request)
