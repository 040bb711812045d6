"""Authentication routes: register, login, logout, me, and the session test probe.

A session is a JWT carried either in the Authorization header (Bearer) or in
the session cookie set by /auth/login. The header wins when both are present.

PySecure-4-Minimal:
- Validate inputs via Pydantic models.
- Hash passwords; do not log secrets.
- HttpOnly session cookie.
"""
from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Dict, Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordBearer

from src.core.config import get_settings
from src.security.jwt import create_access_token, decode_token, hash_password, verify_password
from src.models.auth import (
    AuthTestResponse,
    MeResponse,
    SessionIdentity,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserPublic,
)
from src.db import sqlite as sqlite_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])
api_router = APIRouter(prefix="/api/auth", tags=["auth"])

# auto_error=False so that a missing header falls through to the session cookie
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _get_user_by_email(email: str) -> Optional[Dict]:
    with sqlite_db.get_conn() as conn:
        return sqlite_db.auth_get_user_by_email(conn, _normalize_email(email))


def _get_user_by_id(user_id: str) -> Optional[Dict]:
    with sqlite_db.get_conn() as conn:
        return sqlite_db.auth_get_user_by_id(conn, user_id)


def _create_user(email: str, full_name: Optional[str], pwd_hash: str) -> Dict:
    record = {
        "id": str(uuid4()),
        "email": _normalize_email(email),
        "full_name": full_name.strip() if isinstance(full_name, str) else None,
        "password_hash": pwd_hash,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    try:
        with sqlite_db.get_conn() as conn:
            sqlite_db.auth_insert_user(conn, record)
    except sqlite3.IntegrityError:
        # Unique constraint violation (email)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    return record


def _user_public(rec: Dict) -> UserPublic:
    return UserPublic(id=rec["id"], email=rec["email"], full_name=rec.get("full_name"))


def _session_token(request: Request, bearer: Optional[str]) -> Optional[str]:
    if bearer:
        return bearer
    return request.cookies.get(get_settings().session_cookie_name) or None


def resolve_session_user(request: Request, bearer: Optional[str]) -> UserPublic:
    """Resolve the caller from the bearer header or session cookie.

    Raises:
        HTTPException: 401 when there is no session or it cannot be resolved.
    """
    token = _session_token(request, bearer)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    try:
        payload = decode_token(token)
    except Exception:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    rec = _get_user_by_id(sub)
    if not rec:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return _user_public(rec)


def get_current_user(request: Request, bearer: Optional[str] = Depends(oauth2_scheme)) -> UserPublic:
    """Dependency requiring an authenticated caller."""
    return resolve_session_user(request, bearer)


def get_optional_user(request: Request, bearer: Optional[str] = Depends(oauth2_scheme)) -> Optional[UserPublic]:
    """Dependency returning the caller when a valid session exists, else None."""
    try:
        return resolve_session_user(request, bearer)
    except HTTPException:
        return None


def _set_session_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )


# PUBLIC_INTERFACE
@router.post(
    "/register",
    response_model=UserPublic,
    status_code=status.HTTP_201_CREATED,
    summary="Register user",
    description="Create a new owner account.",
)
def register(payload: UserCreate):
    """Register a new user with hashed password.

    Returns:
        201 with public user if created.
        409 if email already exists.
        400 if the password policy fails.
    """
    email_norm = _normalize_email(str(payload.email))
    if _get_user_by_email(email_norm):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    try:
        pwd_hash = hash_password(payload.password)
    except ValueError as ve:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(ve))
    rec = _create_user(email_norm, payload.full_name, pwd_hash)
    logger.info("Registered user %s", rec["id"])
    return _user_public(rec)


# PUBLIC_INTERFACE
@router.post("/login", response_model=TokenResponse, summary="Login", description="Authenticate, receive an access token and a session cookie.")
def login(payload: UserLogin, response: Response):
    """Authenticate a user, return a JWT access token and set the session cookie."""
    rec = _get_user_by_email(str(payload.email))
    if not rec or not verify_password(payload.password, rec["password_hash"]):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    token = create_access_token(subject=rec["id"], claims={"email": rec["email"]})
    _set_session_cookie(response, token)
    return TokenResponse(access_token=token)


# PUBLIC_INTERFACE
@router.post("/logout", summary="Logout", description="Clear the session cookie.")
def logout(response: Response):
    """Clear the session cookie. Bearer tokens stay valid until they expire."""
    response.delete_cookie(get_settings().session_cookie_name, path="/")
    return {"success": True}


# PUBLIC_INTERFACE
@router.get("/me", response_model=MeResponse, summary="Current user", description="Return the current authenticated user.")
def me(current: UserPublic = Depends(get_current_user)):
    """Return current user data."""
    return MeResponse(**current.model_dump())


# PUBLIC_INTERFACE
@api_router.get("/test", response_model=AuthTestResponse, summary="Session test", description="Report the identity behind the current session, if any.")
def auth_test(request: Request, bearer: Optional[str] = Depends(oauth2_scheme)):
    """Return the session's identity fields, or the reason none could be resolved."""
    try:
        user = resolve_session_user(request, bearer)
    except HTTPException as exc:
        return AuthTestResponse(user=None, error=str(exc.detail))
    return AuthTestResponse(user=SessionIdentity(id=user.id, email=user.email))
