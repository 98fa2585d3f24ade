"""
Auth Module - Dependencies
===========================
FastAPI dependencies for user authentication and authorization.
These are injected into route handlers via Depends().

The bearer token (or auth_token cookie) carries the user id in `sub`.
"""

from fastapi import Request, Depends
from sqlalchemy.orm import Session

from config.database import get_db
from common.exceptions import AuthenticationError, AuthorizationError
from common.helpers import safe_int
from common.security import decode_token, extract_token
from modules.user.models import User


def get_current_active_user(request: Request, db: Session = Depends(get_db)):
    """
    Identify the current user from the request token.
    Returns User object or None.
    """
    token = extract_token(request)
    if not token:
        return None

    payload = decode_token(token)
    if not payload:
        return None

    user_id = safe_int(payload.get("sub"))
    if not user_id:
        return None

    return db.query(User).filter(User.id == user_id, User.is_active == True).first()


def require_login(user=Depends(get_current_active_user)):
    """Require any authenticated active user. Raises 401 if not logged in."""
    if not user:
        raise AuthenticationError()
    return user


def require_customer(user=Depends(require_login)):
    """Cart and checkout belong to customers only."""
    if not user.is_customer:
        raise AuthorizationError("Only customers can do that.")
    return user


def require_admin(user=Depends(require_login)):
    """Only allow admin users. Raises 403 otherwise."""
    if not user.is_admin:
        raise AuthorizationError("Admin access required.")
    return user
