"""
ParkShare Backend — Passwords, Tokens, Ownership
==================================================

What:  Password hashing (Werkzeug), bearer token issue/verify (PyJWT), and
       the owner-or-admin rule shared by every write on a specific record.
Who:   AuthService (hash/verify, issue), dependencies.get_current_user
       (decode), ParkingSpaceService/BookingService (ownership).

Token claims:
    sub   user id (UUID string)
    role  role at issue time (informational; the stored role is authoritative)
    iat   issued at
    exp   expiry, settings.jwt_expire_days after issue
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from parkshare.config import settings
from parkshare.exceptions import AuthenticationError, AuthorizationError
from parkshare.models.user import User


# ── Passwords ─────────────────────────────────────────────────────────────


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


# ── Tokens ────────────────────────────────────────────────────────────────


def create_access_token(user_id: uuid.UUID, role: str) -> str:
    """Issue a signed bearer token for the given user."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_expire_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify signature and expiry and return the claims.

    Raises:
        AuthenticationError: expired, tampered, or malformed token,
                             or one without a usable subject.
    """
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token")

    try:
        claims["sub"] = uuid.UUID(str(claims["sub"]))
    except ValueError:
        raise AuthenticationError("Invalid token")
    return claims


# ── Ownership ─────────────────────────────────────────────────────────────


def ensure_owner_or_admin(caller: User, owner_id: uuid.UUID, resource: str = "resource") -> None:
    """Allow the record's owner and admins; everyone else gets a 403."""
    if caller.is_admin or caller.id == owner_id:
        return
    raise AuthorizationError(
        f"Only the owner of this {resource} or an admin can modify it",
        context={"user_id": str(caller.id), "owner_id": str(owner_id)},
    )
