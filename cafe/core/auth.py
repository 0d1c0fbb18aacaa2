import uuid
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import SQLModel
from supabase import Client

from cafe.core.config import get_settings
from cafe.core.errors import StoreError, store_failure
from cafe.core.supabase_client import supabase_for_token, supabase_public
from cafe.repositories.profile_repo import ProfileRepository

settings = get_settings()

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so we can support "guest" mode (unauthenticated).
bearer_scheme = HTTPBearer(auto_error=False)

profile_repo = ProfileRepository()


class Caller(SQLModel):
    """
    Identity of the user making the request.

    Passed explicitly into every service call instead of being read from
    an ambient session.
    """

    user_id: uuid.UUID
    email: str | None = None
    access_token: str


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a Supabase access token (JWT).

    Verification:
      - signature (HS256 using SUPABASE_JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified (Supabase 'aud' may vary)

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def get_current_caller(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Caller | None:
    """
    Resolve the caller from a Supabase JWT.

    Flow:
      1. If no Authorization header => guest => return None.
      2. Decode JWT => extract 'sub' (auth user id) and 'email'.
      3. Convert 'sub' to UUID.

    Raises:
        HTTPException(401): if token is malformed or missing required claims.
    """
    if credentials is None:
        return None  # guest mode

    payload = decode_access_token(credentials.credentials)
    sub = payload.get("sub")

    if not sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub",
        )

    try:
        sub_uuid = uuid.UUID(sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid sub in token",
        )

    return Caller(
        user_id=sub_uuid,
        email=payload.get("email"),
        access_token=credentials.credentials,
    )


def get_request_client(caller: Caller | None = Depends(get_current_caller)) -> Client:
    """
    Supabase client for the current request.

    Guests share the anon client; authenticated callers get a client that
    forwards their token so RLS evaluates auth.uid() as them.
    """
    if caller is None:
        return supabase_public()
    return supabase_for_token(caller.access_token)


def require_auth(caller: Caller | None = Depends(get_current_caller)) -> Caller:
    """
    Enforce authentication.

    Raises:
        HTTPException(401): if the request carries no token.
    """
    if caller is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return caller


def require_admin(
    caller: Caller = Depends(require_auth),
    client: Client = Depends(get_request_client),
) -> Caller:
    """
    Enforce admin role, read from profiles.role.

    Raises:
        HTTPException(403): if role is not admin.
        HTTPException(502): if the role lookup fails.
    """
    try:
        role = profile_repo.get_role(client, caller.user_id)
    except StoreError as exc:
        raise store_failure(
            "auth:require_admin",
            exc,
            "Could not verify permissions",
        )

    if role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return caller
