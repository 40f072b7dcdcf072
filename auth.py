"""
Bearer-token guards for staff and members.

Both guards share one design: pull the token from the Authorization header,
verify it against a symmetric secret and hand the decoded claims to the
route. Tokens are not revocable; they stay valid until they expire.
"""

import logging
import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt
from fastapi import Header

from database import create_document, get_documents
from errors import Forbidden, Unauthenticated
from schemas import User

logger = logging.getLogger(__name__)

STAFF_TOKEN_TTL = timedelta(hours=24)
MEMBER_TOKEN_TTL = timedelta(days=7)
ALGORITHM = "HS256"


def staff_secret() -> str:
    return os.getenv("JWT_SECRET", "goat-grids-secret-key-change-in-production")


def member_secret() -> str:
    return os.getenv("MEMBER_JWT_SECRET", "goat-grids-member-secret-change-in-production")


# -----------------------------
# Passwords
# -----------------------------
def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def check_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


# -----------------------------
# Tokens
# -----------------------------
def _issue(claims: Dict[str, Any], secret: str, ttl: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {**claims, "iat": now, "exp": now + ttl}
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def issue_staff_token(user: Dict[str, Any]) -> str:
    return _issue({"id": user["id"], "username": user["username"]}, staff_secret(), STAFF_TOKEN_TTL)


def issue_member_token(member: Dict[str, Any]) -> str:
    claims = {"id": member["id"], "email": member["email"], "displayName": member["displayName"]}
    return _issue(claims, member_secret(), MEMBER_TOKEN_TTL)


def _bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split(" ")
    if len(parts) < 2 or not parts[1]:
        return None
    return parts[1]


def verify_token(authorization: Optional[str], secret: str, missing: str) -> Dict[str, Any]:
    """Decode the bearer token in an Authorization header value.

    Raises Unauthenticated when there is no token and Forbidden when the
    signature is bad or the token has expired.
    """
    token = _bearer(authorization)
    if not token:
        raise Unauthenticated(missing)
    try:
        claims = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.InvalidTokenError:
        raise Forbidden("Invalid or expired token")
    claims.pop("iat", None)
    claims.pop("exp", None)
    return claims


def require_staff(authorization: Optional[str] = Header(None)) -> Dict[str, Any]:
    return verify_token(authorization, staff_secret(), "Access token required")


def require_member(authorization: Optional[str] = Header(None)) -> Dict[str, Any]:
    return verify_token(authorization, member_secret(), "Member access token required")


# -----------------------------
# Default staff account
# -----------------------------
def ensure_admin_user() -> Optional[Dict[str, Any]]:
    """Create the default staff account when no staff user exists yet."""
    if get_documents("users"):
        return None
    username = os.getenv("ADMIN_USERNAME", "admin")
    user = User(
        id=str(uuid.uuid4()),
        username=username,
        password=hash_password(os.getenv("ADMIN_PASSWORD", "admin123")),
    )
    doc = create_document("users", user)
    logger.info("Default admin account '%s' initialized", username)
    return doc
