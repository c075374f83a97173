"""
Bearer-token identity resolution.

Tokens are issued by the account service and signed with the shared
``secret_key``. This module only verifies them and maps the ``sub`` claim to
an Identity row; it never issues sessions for real users.
"""

from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, Optional, cast

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
import jwt
from jwt import PyJWTError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .core.config import settings
from .database import get_db
from .models.identity import Identity

logger = logging.getLogger(__name__)

oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)

DEFAULT_TOKEN_TTL = timedelta(minutes=60)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and verify a JWT access token."""
    payload_raw = jwt.decode(
        token,
        settings.secret_key.get_secret_value(),
        algorithms=[settings.algorithm],
        options={"verify_aud": False, "require": ["sub"]},
    )
    return cast(Dict[str, Any], payload_raw)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Used by local tooling and tests; production tokens come from the account
    service.
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or DEFAULT_TOKEN_TTL)
    to_encode.update({"exp": expire})
    return cast(str, jwt.encode(to_encode, settings.secret_key.get_secret_value(), algorithm=settings.algorithm))


def get_current_identity(
    token: Optional[str] = Depends(oauth2_scheme_optional),
    db: Session = Depends(get_db),
) -> Optional[Identity]:
    """
    Resolve the caller's identity from the Authorization header.

    Returns None for a missing, invalid or expired token, or an unknown
    subject. Callers decide whether anonymous access is an error.
    """
    if not token:
        return None

    try:
        payload = decode_access_token(token)
    except PyJWTError as exc:
        logger.info(f"Rejected access token: {exc}")
        return None

    identity_id = payload.get("sub")
    if not identity_id:
        return None

    try:
        identity = db.query(Identity).filter(Identity.id == str(identity_id)).first()
    except SQLAlchemyError as exc:
        logger.error(f"Identity lookup failed for {identity_id}: {exc}")
        raise
    if identity is None:
        logger.info(f"Token subject {identity_id} has no identity record")
    return identity
