"""
Session authentication.

A signed cookie (``<sid>.<signature>``) points at a server-side session; the
session names the user. ``authenticate`` turns a request into a verified
``Principal`` or ``None``. Sign-in is either the local development login
(any password) or Google OpenID Connect when credentials are configured.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import requests
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import RedirectResponse

from jamakers.config import Settings
from jamakers.db import DbClient
from jamakers.dependencies import get_db_client, get_session_store, get_settings_dep
from jamakers.schemas import LoginPayload, UserUpdate
from jamakers.sessions import SessionStore
from shared.json_utils import to_json
from shared.records import User
from shared.types import UserRole

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30  # seconds
GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
OAUTH_STATE_COOKIE = "jamakers.oauth_state"
OAUTH_STATE_TTL_SECONDS = 600

router = APIRouter()


@dataclass
class Principal:
    """The authenticated caller of a request."""

    user_id: str
    role: Optional[str] = None
    user: Optional[User] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


def _signature(value: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), value.encode("utf-8"), hashlib.sha256)
    return base64.urlsafe_b64encode(digest.digest()).decode("ascii").rstrip("=")


def sign_value(value: str, secret: str) -> str:
    return f"{value}.{_signature(value, secret)}"


def unsign_value(signed: str, secret: str) -> Optional[str]:
    """Return the original value, or None when the signature does not match."""
    value, _, signature = signed.rpartition(".")
    if not value or not signature:
        return None
    if not hmac.compare_digest(signature, _signature(value, secret)):
        return None
    return value


def authenticate(request: Request) -> Optional[Principal]:
    """Resolve the session cookie on ``request`` into a principal."""
    settings: Settings = request.app.state.settings
    cookie = request.cookies.get(settings.session_cookie_name)
    if not cookie:
        return None
    sid = unsign_value(cookie, settings.session_secret)
    if sid is None:
        return None
    session = request.app.state.sessions.get(sid)
    if session is None:
        return None
    user = request.app.state.db.get_user(session.user_id)
    return Principal(
        user_id=session.user_id,
        role=user.role if user else None,
        user=user,
    )


def get_principal(request: Request) -> Optional[Principal]:
    return authenticate(request)


def require_authenticated(
    principal: Optional[Principal] = Depends(get_principal),
) -> Principal:
    if principal is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return principal


def start_session(
    response: Response, user_id: str, settings: Settings, sessions: SessionStore
) -> None:
    session = sessions.create(user_id, settings.session_ttl_seconds)
    response.set_cookie(
        settings.session_cookie_name,
        sign_value(session.sid, settings.session_secret),
        max_age=settings.session_ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )


@router.get("/login")
def login_instructions():
    return {
        "message": "Use POST /api/login with { username, password, role } to sign in locally."
    }


@router.post("/login")
def login(
    payload: LoginPayload,
    response: Response,
    settings: Settings = Depends(get_settings_dep),
    db: DbClient = Depends(get_db_client),
    sessions: SessionStore = Depends(get_session_store),
):
    """Local development login: any password is accepted."""
    if not settings.enable_dev_login:
        raise HTTPException(status_code=404, detail="Local login is disabled")
    user_id = payload.username or f"user-{secrets.token_hex(4)}"
    existing = db.get_user(user_id)
    # Returning users keep their stored name and role unless new ones are sent.
    user = db.upsert_user(
        {
            "id": user_id,
            "email": payload.email,
            "first_name": payload.first_name or (None if existing else payload.username),
            "last_name": payload.last_name,
            "profile_image_url": payload.profile_image_url,
            "role": payload.role
            or (existing.role if existing else None)
            or UserRole.BRAND.value,
        }
    )
    start_session(response, user.id, settings, sessions)
    logger.info("User %s signed in as %s", user.id, user.role)
    return {"success": True}


@router.get("/logout")
def logout(
    request: Request,
    settings: Settings = Depends(get_settings_dep),
    sessions: SessionStore = Depends(get_session_store),
):
    cookie = request.cookies.get(settings.session_cookie_name)
    sid = unsign_value(cookie, settings.session_secret) if cookie else None
    if sid:
        sessions.delete(sid)
    response = RedirectResponse("/", status_code=302)
    response.delete_cookie(settings.session_cookie_name)
    return response


@router.get("/auth/user")
def get_current_user(principal: Principal = Depends(require_authenticated)):
    if principal.user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return to_json(principal.user)


@router.patch("/auth/user")
def update_current_user(
    payload: UserUpdate,
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    updated = db.update_user(
        principal.user_id, payload.model_dump(exclude_unset=True, exclude_none=True)
    )
    if updated is None:
        raise HTTPException(status_code=404, detail="User not found")
    return to_json(updated)


# Google OpenID Connect


def _google_redirect_uri(request: Request, settings: Settings) -> str:
    return settings.google_redirect_uri or str(request.url_for("google_callback"))


def _require_google(settings: Settings) -> None:
    if not settings.google_login_enabled:
        raise HTTPException(status_code=404, detail="Google sign-in is not configured")


def fetch_google_profile(settings: Settings, code: str, redirect_uri: str) -> dict:
    """Exchange an authorization code for the signed-in user's profile."""
    token_response = requests.post(
        GOOGLE_TOKEN_URL,
        data={
            "code": code,
            "client_id": settings.google_client_id,
            "client_secret": settings.google_client_secret,
            "redirect_uri": redirect_uri,
            "grant_type": "authorization_code",
        },
        timeout=REQUEST_TIMEOUT,
    )
    token_response.raise_for_status()
    access_token = token_response.json()["access_token"]
    profile_response = requests.get(
        GOOGLE_USERINFO_URL,
        headers={"Authorization": f"Bearer {access_token}"},
        timeout=REQUEST_TIMEOUT,
    )
    profile_response.raise_for_status()
    return profile_response.json()


@router.get("/auth/google")
def google_login(request: Request, settings: Settings = Depends(get_settings_dep)):
    _require_google(settings)
    state = secrets.token_urlsafe(16)
    query = urlencode(
        {
            "client_id": settings.google_client_id,
            "redirect_uri": _google_redirect_uri(request, settings),
            "response_type": "code",
            "scope": "openid email profile",
            "state": state,
            "prompt": "select_account",
        }
    )
    response = RedirectResponse(f"{GOOGLE_AUTH_URL}?{query}", status_code=302)
    response.set_cookie(
        OAUTH_STATE_COOKIE,
        sign_value(state, settings.session_secret),
        max_age=OAUTH_STATE_TTL_SECONDS,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )
    return response


@router.get("/auth/google/callback", name="google_callback")
def google_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    settings: Settings = Depends(get_settings_dep),
    db: DbClient = Depends(get_db_client),
    sessions: SessionStore = Depends(get_session_store),
):
    _require_google(settings)
    cookie = request.cookies.get(OAUTH_STATE_COOKIE)
    expected = unsign_value(cookie, settings.session_secret) if cookie else None
    if not code or not state or expected is None or not hmac.compare_digest(state, expected):
        logger.warning("Rejected Google callback with missing or mismatched state")
        raise HTTPException(status_code=400, detail="Invalid OAuth state")

    try:
        profile = fetch_google_profile(settings, code, _google_redirect_uri(request, settings))
    except requests.RequestException as exc:
        logger.warning("Google token exchange failed: %s", exc)
        raise HTTPException(status_code=502, detail="Google sign-in failed") from exc

    existing = db.get_user(profile["sub"])
    user = db.upsert_user(
        {
            "id": profile["sub"],
            "email": profile.get("email"),
            "first_name": profile.get("given_name"),
            "last_name": profile.get("family_name"),
            "profile_image_url": profile.get("picture"),
            "role": (existing.role if existing else None) or UserRole.BRAND.value,
        }
    )
    response = RedirectResponse("/", status_code=302)
    response.delete_cookie(OAUTH_STATE_COOKIE)
    start_session(response, user.id, settings, sessions)
    logger.info("User %s signed in with Google", user.id)
    return response
