"""
Authentication routes: password login, logout and current user.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from core.config import AppConfig
from core.exceptions import AuthenticationError, NotFoundError
from core.repositories import UserRepository
from core.validators import validate_required
from web.config import TEMPLATES_DIR
from web.schemas import LoginRequest
from web.services.auth_service import SessionManager, authenticate, extract_token
from web.routes.api._deps import limiter, ok, get_config, get_users

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def get_sessions(request: Request) -> SessionManager:
    return request.app.state.sessions


def _set_session_cookie(response: Response, token: str, config: AppConfig) -> None:
    response.set_cookie(
        key=config.auth.cookie_name,
        value=token,
        max_age=config.auth.session_max_age,
        path="/",
        httponly=True,
        samesite="lax",
        secure=config.auth.cookie_secure,
    )


def _safe_redirect(target: Optional[str]) -> str:
    """Only same-site relative paths are followed after login."""
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return "/"


# ─── Pages ────────────────────────────────────────────────────────────────────

@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request, redirect: Optional[str] = None, error: Optional[str] = None):
    """Show the login form; signed-in users go straight to their target."""
    config = get_config(request)
    session = get_sessions(request).verify(request.cookies.get(config.auth.cookie_name))
    if session:
        return RedirectResponse(url=_safe_redirect(redirect), status_code=302)

    return templates.TemplateResponse(request, "login.html", {
        "redirect": _safe_redirect(redirect),
        "error": error,
        "version": config.version,
    })


@router.get("/logout")
async def logout_page(request: Request):
    """Log out user by clearing session cookie."""
    response = RedirectResponse(url="/login", status_code=302)
    response.delete_cookie(get_config(request).auth.cookie_name, path="/")
    return response


# ─── API ──────────────────────────────────────────────────────────────────────

@router.post("/api/v1/auth/login")
@limiter.limit("10/minute")
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    users: UserRepository = Depends(get_users),
):
    """
    Exchange email and password for a session token.

    The token is returned in the body and set as the `auth_token` cookie.
    """
    email = validate_required(body.email, "email")
    password = validate_required(body.password, "password")

    user = await authenticate(users, email, password)
    token = get_sessions(request).issue(user)
    _set_session_cookie(response, token, get_config(request))

    return ok({"user": user.to_dict(), "token": token}, "Login successful")


@router.post("/api/v1/auth/logout")
async def logout(request: Request, response: Response):
    response.delete_cookie(get_config(request).auth.cookie_name, path="/")
    return ok(message="Logged out")


@router.get("/api/v1/auth/me")
@limiter.limit("60/minute")
async def me(
    request: Request,
    users: UserRepository = Depends(get_users),
):
    """Current user from the session cookie or bearer token."""
    config = get_config(request)
    session = get_sessions(request).verify(extract_token(request, config.auth.cookie_name))
    if session is None:
        raise AuthenticationError("Authentication required")

    user = await users.get(session["user_id"])
    if user is None:
        raise NotFoundError("User", session["user_id"])

    data = user.to_dict()
    data["accountIds"] = await users.account_ids(user.id)
    return ok(data)
