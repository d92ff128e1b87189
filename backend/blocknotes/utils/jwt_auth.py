from __future__ import annotations

import os
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Header, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

bearer = HTTPBearer(auto_error=False)

# ids handed out by the users table are uuid4 strings; hints must at least look like an id
_HINT_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def _secret() -> str:
    s = os.getenv("JWT_SECRET", "")
    if not s:
        raise RuntimeError("JWT_SECRET is not set")
    return s


def _algo() -> str:
    return os.getenv("JWT_ALGORITHM", "HS256")


def _exp_minutes() -> int:
    try:
        return int(os.getenv("JWT_EXP_MINUTES", "15"))
    except ValueError:
        return 15


def tokens_enabled() -> bool:
    return bool(os.getenv("JWT_SECRET", ""))


def hints_allowed() -> bool:
    return os.getenv("ALLOW_IDENTITY_HINT", "true").strip().lower() in ("1", "true", "yes", "on")


def create_access_token(subject: str) -> str:
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=_exp_minutes())
    payload = {"sub": subject, "iat": int(now.timestamp()), "exp": int(exp.timestamp())}
    return jwt.encode(payload, _secret(), algorithm=_algo())


def decode_token(token: str) -> dict:
    return jwt.decode(token, _secret(), algorithms=[_algo()])


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
    user_id_param: Optional[str] = Query(default=None, alias="userId"),
) -> str:
    """Resolve the caller's user id.

    A bearer token signed with JWT_SECRET is the only verified source of
    identity. While ALLOW_IDENTITY_HINT is on, the X-User-Id header and then
    the userId query parameter are accepted as-is. Those hints are not
    authentication, they only say who the caller claims to be.
    """
    if creds is not None and creds.scheme.lower() == "bearer":
        if not tokens_enabled():
            raise _unauthorized("Token authentication is not configured")
        try:
            payload = decode_token(creds.credentials)
        except JWTError:
            raise _unauthorized("Invalid or expired token")
        sub = payload.get("sub")
        if not sub:
            raise _unauthorized("Invalid token")
        return str(sub)

    if hints_allowed():
        hint = x_user_id or user_id_param
        if hint:
            if not _HINT_RE.match(hint):
                raise _unauthorized("Invalid user id")
            return hint

    raise _unauthorized("Missing credentials")
