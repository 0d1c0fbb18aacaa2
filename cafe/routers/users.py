import uuid

from fastapi import APIRouter, Depends, status
from supabase import Client

from cafe.core.auth import Caller, get_request_client, require_admin, require_auth
from cafe.core.supabase_client import get_admin_client
from cafe.repositories.profile_repo import ProfileRepository
from cafe.schemas.user import ProfileRead, UserRoleUpdate
from cafe.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

repo = ProfileRepository()
service = UserService(repo)


# -------- Self profile --------


@router.get("/me", response_model=ProfileRead)
def read_me(
    client: Client = Depends(get_request_client),
    caller: Caller = Depends(require_auth),
):
    """
    Return the authenticated user's profile.

    Auth:
      - Requires valid Supabase JWT.
    """
    return service.get_me(client, caller)


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=list[ProfileRead],
    dependencies=[Depends(require_admin)],
)
def list_users(client: Client = Depends(get_request_client)):
    """
    List all users, newest first (admin only).
    """
    return service.list_users(client)


@router.patch("/{user_id}/role", response_model=ProfileRead)
def change_role(
    user_id: uuid.UUID,
    payload: UserRoleUpdate,
    client: Client = Depends(get_request_client),
    caller: Caller = Depends(require_admin),
):
    """
    Update a user's role (admin only).

    Allowed roles: user, admin. Admins cannot change their own role.
    """
    return service.update_role(client, caller, user_id, payload)


@router.delete("/{user_id}", status_code=status.HTTP_200_OK)
def delete_user(
    user_id: uuid.UUID,
    client: Client = Depends(get_request_client),
    admin_client: Client = Depends(get_admin_client),
    caller: Caller = Depends(require_admin),
) -> dict[str, str]:
    """
    Delete a user from Auth and their profile (admin only).
    """
    service.delete_user(client, admin_client, caller, user_id)
    return {"message": "User deleted"}
