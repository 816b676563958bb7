# docstore/core/security.py
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Header, Request
from werkzeug.security import check_password_hash, generate_password_hash

from docstore.core.config import Settings
from docstore.core.errors import UnauthorizedError

ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def create_access_token(username: str, settings: Settings, expires_delta: timedelta | None = None) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    now = datetime.now(timezone.utc)
    payload = {"username": username, "iat": now, "exp": now + expires_delta}
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> str:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise UnauthorizedError("Token expired") from e
    except jwt.InvalidTokenError as e:
        raise UnauthorizedError("Invalid token") from e

    username = payload.get("username")
    if not isinstance(username, str) or not username:
        raise UnauthorizedError("Invalid token")
    return username


def _strip_scheme(authorization: str) -> str:
    # the raw token is expected, but "Bearer <token>" is tolerated
    scheme, _, rest = authorization.strip().partition(" ")
    if rest and scheme.lower() == "bearer":
        return rest.strip()
    return authorization.strip()


# --- dependency: username from the authorization header, always enforced ---
def get_current_username(request: Request, authorization: str | None = Header(default=None)) -> str:
    if not authorization:
        raise UnauthorizedError("Token not provided")
    return decode_access_token(_strip_scheme(authorization), request.app.state.settings)


# --- dependency: enforced only when the service runs with require_auth ---
def get_optional_username(request: Request, authorization: str | None = Header(default=None)) -> str | None:
    if not request.app.state.settings.require_auth:
        return None
    return get_current_username(request, authorization)
