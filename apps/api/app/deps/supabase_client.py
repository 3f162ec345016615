from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer

from app.deps.deps import SupabaseCreds, get_supabase_creds
from swipesound_core.types import Identity

security = HTTPBearer(auto_error=False)

# Literal values some clients send before a session id has been minted
_NULL_SESSION_IDS = {"", "undefined", "null"}


def get_optional_bearer(credentials=Depends(security)) -> Optional[str]:
    # Returns None if no Authorization header
    return credentials.credentials if credentials else None


def get_supabase_client(
    user_token: Optional[str] = Depends(get_optional_bearer),
    creds: SupabaseCreds = Depends(get_supabase_creds),
):
    """
    Return a Supabase client. With a bearer token the client is user-scoped
    (RLS sees auth.uid()); without one it uses the service key so
    session-scoped viewers can still read and write their own history.
    """
    if not (creds.url and creds.api_key):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Interaction store not configured",
        )
    try:
        from supabase import Client, create_client  # type: ignore

        client: Client = create_client(creds.url, creds.api_key)
        if user_token:
            client.postgrest.auth(user_token)
        return client
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Supabase init failed: {exc}",
        )


def get_supabase_client_optional(
    user_token: Optional[str] = Depends(get_optional_bearer),
    creds: SupabaseCreds = Depends(get_supabase_creds),
):
    """
    Like get_supabase_client, but returns None when no store is configured.
    Read paths that can degrade to an anonymous feed use this one.
    """
    if not (creds.url and creds.api_key):
        return None
    return get_supabase_client(user_token=user_token, creds=creds)


def _resolve_account_id(client, user_token: str) -> Optional[str]:
    try:
        resp = client.auth.get_user(user_token)
        user = getattr(resp, "user", None) or getattr(resp, "data", None)
        return (getattr(user, "id", None) or (user or {}).get("id")) or None
    except Exception:
        # Treat failures as anonymous
        return None


def normalize_session_id(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    value = raw.strip()
    return None if value.lower() in _NULL_SESSION_IDS else value


def get_identity(
    client=Depends(get_supabase_client_optional),
    user_token: Optional[str] = Depends(get_optional_bearer),
    x_session_id: Optional[str] = Header(None),
) -> Identity:
    """Account id when the bearer token resolves, otherwise the X-Session-Id header."""
    account_id = (
        _resolve_account_id(client, user_token) if user_token and client is not None else None
    )
    session_token = None if account_id else normalize_session_id(x_session_id)
    return Identity(account_id=account_id, session_token=session_token)


def require_account_id(identity: Identity = Depends(get_identity)) -> str:
    if not identity.account_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sign in to manage genre preferences",
        )
    return identity.account_id
