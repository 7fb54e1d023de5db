"""Session identity: Supabase auth, or a random id when auth is unreachable."""

import sys
import uuid

from supabase import Client as SupabaseClient


def resolve_user_id(client: SupabaseClient | None, auth_token: str = "") -> str:
    if client is None:
        return str(uuid.uuid4())
    try:
        if auth_token:
            resp = client.auth.get_user(auth_token)
        else:
            resp = client.auth.sign_in_anonymously()
        user = getattr(resp, "user", None)
        if user and getattr(user, "id", None):
            return str(user.id)
        print("  [auth] ⚠️  Sign-in returned no user; using a local id.", file=sys.stderr)
    except Exception as e:
        print(f"  [auth] ⚠️  Sign-in failed: {e}; using a local id.", file=sys.stderr)
    return str(uuid.uuid4())
