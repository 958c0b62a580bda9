"""User registration and admin user management"""
import asyncio
from typing import List

from fastapi import APIRouter, Depends, status

from homestock.core.dependencies import get_account_store, get_auth_service
from homestock.middleware.auth import require_admin
from homestock.models.user import User
from homestock.schemas.auth_schemas import (
    AdminUpdateRequest,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    UserResponse,
)
from homestock.services import user_service
from homestock.services.account_store import AccountStore
from homestock.services.auth_service import AuthService

router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, auth: AuthService = Depends(get_auth_service)):
    """
    ## Register a new password account

    **Role:** Public — no authentication required.

    ### Required fields (JSON body)
    | Field    | Type   | Description          |
    |----------|--------|----------------------|
    | fullName | string | Display name         |
    | email    | string | Unique account email |
    | password | string | Minimum 6 characters |

    Returns the new account with a token valid for 7 days.
    HTTP 400 → "User already exists".
    """
    result = await asyncio.to_thread(auth.register, body.full_name, body.email, body.password)
    return RegisterResponse(
        id=result.user.id,
        full_name=result.user.full_name,
        email=result.user.email,
        token=result.token,
    )


@router.get("", response_model=List[UserResponse])
async def get_users(
    _admin: User = Depends(require_admin),
    store: AccountStore = Depends(get_account_store),
):
    """
    ## List all accounts

    **Role:** Admin.
    """
    users = await asyncio.to_thread(user_service.list_users, store)
    return [UserResponse.model_validate(u) for u in users]


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    admin: User = Depends(require_admin),
    store: AccountStore = Depends(get_account_store),
):
    """
    ## Delete an account

    **Role:** Admin. HTTP 404 → unknown id.
    """
    await asyncio.to_thread(user_service.delete_user, store, user_id, admin)
    return MessageResponse(message="User deleted successfully")


@router.patch("/{user_id}/admin", response_model=UserResponse)
async def update_admin_flag(
    user_id: str,
    body: AdminUpdateRequest,
    admin: User = Depends(require_admin),
    store: AccountStore = Depends(get_account_store),
):
    """
    ## Grant or revoke admin rights

    **Role:** Admin. This is the only way an account becomes an admin at
    runtime; login and registration never set the flag.
    """
    user = await asyncio.to_thread(user_service.set_admin_flag, store, user_id, body.is_admin, admin)
    return UserResponse.model_validate(user)
