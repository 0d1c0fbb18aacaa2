import uuid

from supabase import Client

from cafe.core.errors import StoreError
from cafe.models.profile import Profile
from cafe.repositories.base import execute

TABLE = "profiles"


class ProfileRepository:
    """
    Data access layer for profiles.

    Responsibilities:
      - Pure store operations (queries + role updates)
      - No FastAPI, no HTTP, no business logic
    """

    def get_by_id(self, client: Client, user_id: uuid.UUID) -> Profile | None:
        """Return a Profile by id, or None if not found."""
        rows = execute(
            client.table(TABLE).select("*").eq("id", str(user_id)).limit(1)
        )
        return Profile.model_validate(rows[0]) if rows else None

    def get_role(self, client: Client, user_id: uuid.UUID) -> str | None:
        """Return the application role of a user, or None if no profile exists."""
        rows = execute(
            client.table(TABLE).select("role").eq("id", str(user_id)).limit(1)
        )
        return rows[0]["role"] if rows else None

    def list(self, client: Client) -> list[Profile]:
        """All profiles, newest first."""
        rows = execute(
            client.table(TABLE).select("*").order("created_at", desc=True)
        )
        return [Profile.model_validate(row) for row in rows or []]

    def update_role(self, client: Client, user_id: uuid.UUID, role: str) -> Profile | None:
        """Persist a role change; None when no profile matched."""
        rows = execute(
            client.table(TABLE).update({"role": role}).eq("id", str(user_id))
        )
        return Profile.model_validate(rows[0]) if rows else None

    def delete(self, client: Client, user_id: uuid.UUID) -> None:
        """Delete a profile row (no-op when already gone)."""
        execute(client.table(TABLE).delete().eq("id", str(user_id)))

    def delete_auth_user(self, admin_client: Client, user_id: uuid.UUID) -> None:
        """Delete the Supabase Auth user. Requires the service-role client."""
        try:
            admin_client.auth.admin.delete_user(str(user_id))
        except Exception as exc:
            raise StoreError.from_exception(exc) from exc
