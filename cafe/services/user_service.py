import logging
import uuid

from fastapi import HTTPException, status
from supabase import Client

from cafe.core.auth import Caller
from cafe.core.errors import StoreError, store_failure
from cafe.models.profile import Profile
from cafe.repositories.profile_repo import ProfileRepository
from cafe.schemas.user import UserRoleUpdate

logger = logging.getLogger(__name__)


class UserService:
    """
    Business logic for profiles and roles.

    Responsibilities:
      - enforce app rules (admins cannot demote or delete themselves)
      - orchestrate repository operations
      - map store failures to safe HTTP errors
    """

    def __init__(self, repo: ProfileRepository):
        self.repo = repo

    # ----- Self profile -----

    def get_me(self, client: Client, caller: Caller) -> Profile:
        """Return the profile of the current caller."""
        return self.get_user(client, caller.user_id)

    # ----- Admin operations -----

    def list_users(self, client: Client) -> list[Profile]:
        """List profiles, newest first (admin only)."""
        try:
            return self.repo.list(client)
        except StoreError as exc:
            raise store_failure("admin:users:list", exc, "Could not load users")

    def get_user(self, client: Client, user_id: uuid.UUID) -> Profile:
        """
        Get a profile by id.

        Raises:
            HTTPException(404): if not found.
        """
        try:
            profile = self.repo.get_by_id(client, user_id)
        except StoreError as exc:
            raise store_failure(
                "users:get",
                exc,
                "Could not load the profile",
            )

        if not profile:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
        return profile

    def update_role(
        self,
        client: Client,
        caller: Caller,
        user_id: uuid.UUID,
        payload: UserRoleUpdate,
    ) -> Profile:
        """
        Change a user's role (admin only).

        Role validation is enforced by the schema (Literal).
        """
        if user_id == caller.user_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot change your own role",
            )

        try:
            profile = self.repo.update_role(client, user_id, payload.role)
        except StoreError as exc:
            raise store_failure(
                "admin:users:toggle_role",
                exc,
                "Could not change the user's role",
                {"new_role": payload.role},
            )

        if not profile:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )

        logger.info("users: %s set role of %s to %s", caller.user_id, user_id, payload.role)
        return profile

    def delete_user(
        self,
        client: Client,
        admin_client: Client,
        caller: Caller,
        user_id: uuid.UUID,
    ) -> None:
        """
        Delete a user from Supabase Auth and remove the profile row
        (in case the foreign key does not cascade).
        """
        if user_id == caller.user_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot delete your own account",
            )

        try:
            self.repo.delete_auth_user(admin_client, user_id)
            self.repo.delete(admin_client, user_id)
        except StoreError as exc:
            raise store_failure(
                "admin:users:delete",
                exc,
                "Could not delete the user",
            )

        logger.info("users: %s deleted user %s", caller.user_id, user_id)
