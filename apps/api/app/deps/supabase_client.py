from typing import Any, Optional

from app.deps.deps import SupabaseCreds, get_supabase_creds
from fastapi import Depends, Header, HTTPException, status


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def require_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    if not authorization:
        raise _unauthorized("Missing Authorization header")
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise _unauthorized("Invalid Authorization header format")
    return token


def get_supabase_client(
    user_token: str = Depends(require_bearer_token),
    creds: SupabaseCreds = Depends(get_supabase_creds),
):
    """
    Supabase client scoped to the caller. Watchlist, profile and event reads
    all go through PostgREST with the user's JWT, so RLS (auth.uid()) applies.
    """
    if not (creds.url and creds.api_key):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Supabase is not configured",
        )
    try:
        from supabase import Client, create_client  # type: ignore

        client: Client = create_client(creds.url, creds.api_key)
        client.postgrest.auth(user_token)
        return client
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Supabase init failed: {exc}",
        )


def _user_id_from(resp: Any) -> str | None:
    user = getattr(resp, "user", None) or getattr(resp, "data", None)
    if not user:
        return None
    if isinstance(user, dict):
        return user.get("id")
    return getattr(user, "id", None)


def get_current_user_id(
    client=Depends(get_supabase_client), user_token: str = Depends(require_bearer_token)
) -> str:
    """Resolve the caller's user id (UUID) from GoTrue."""
    try:
        resp = client.auth.get_user(user_token)
    except Exception as exc:
        raise _unauthorized(f"Failed to resolve user: {exc}")
    user_id = _user_id_from(resp)
    if not user_id:
        raise _unauthorized("Invalid or expired token")
    return str(user_id)
