"""Authentication middleware and dependencies"""
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from homestock.core.dependencies import get_account_store, get_login_issuer
from homestock.errors.exceptions import ForbiddenException, UnauthorizedException
from homestock.models.user import User
from homestock.services.account_store import AccountStore
from homestock.services.session_issuer import SessionIssuer

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    issuer: SessionIssuer = Depends(get_login_issuer),
    store: AccountStore = Depends(get_account_store),
) -> User:
    """Get current authenticated user from the bearer token"""
    if not token:
        raise UnauthorizedException()

    token_data = issuer.decode(token)
    if token_data is None:
        raise UnauthorizedException(message="Could not validate credentials")

    user = store.find_by_id(token_data.user_id)
    if user is None:
        raise UnauthorizedException(message="User not found")

    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Admin rights are read from the account, not from the token claims"""
    if not current_user.is_admin:
        raise ForbiddenException(message="Admin access required")
    return current_user
