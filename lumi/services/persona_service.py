import logging
from typing import Optional

from lumi.db.supabase import SupabaseError
from lumi.prompts.personas import DEFAULT_PERSONA, is_persona

logger = logging.getLogger(__name__)


async def resolve_persona(store, user_id: str, override: Optional[str] = None) -> str:
    """
    Pick the tutor persona for a request

    Explicit override, then users.persona, then "friendly". A failed
    lookup falls back to the default rather than failing the request.
    """
    if override:
        return override

    try:
        user = await store.select_one("users", columns="persona", filters={"id": user_id})
    except SupabaseError as e:
        logger.warning(f"⚠️ Persona lookup failed for {user_id}: {e}")
        return DEFAULT_PERSONA

    persona = (user or {}).get("persona")
    return persona if is_persona(persona) else DEFAULT_PERSONA
