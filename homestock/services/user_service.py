"""Administrative account management"""
import logging
from typing import List

from homestock.errors.exceptions import AccountNotFoundException, BadRequestException
from homestock.models.user import User
from homestock.services.account_store import AccountStore

logger = logging.getLogger(__name__)


def list_users(store: AccountStore) -> List[User]:
    return store.list_all()


def get_user_or_404(store: AccountStore, user_id: str) -> User:
    user = store.find_by_id(user_id)
    if user is None:
        raise AccountNotFoundException()
    return user


def delete_user(store: AccountStore, user_id: str, acting_admin: User) -> None:
    """Delete an account. Admins cannot delete themselves."""
    user = get_user_or_404(store, user_id)
    if user.id == acting_admin.id:
        raise BadRequestException("You cannot delete your own account")
    store.delete(user)
    logger.warning(
        f"Account {user_id} deleted by admin",
        extra={"user_id": acting_admin.id, "user_email": acting_admin.email},
    )


def set_admin_flag(store: AccountStore, user_id: str, is_admin: bool, acting_admin: User) -> User:
    """
    The only runtime path that changes ``is_admin``. An admin cannot revoke
    their own flag, so at least one admin always remains reachable.
    """
    user = get_user_or_404(store, user_id)
    if user.id == acting_admin.id and not is_admin:
        raise BadRequestException("You cannot revoke your own admin rights")
    user.is_admin = is_admin
    store.save(user)
    logger.warning(
        f"Admin flag for {user_id} set to {is_admin}",
        extra={"user_id": acting_admin.id, "user_email": acting_admin.email},
    )
    return user
