"""
Identity Resolver
Determines which user a tool invocation acts on
"""
import logging
import os
from typing import Awaitable, Callable, Mapping, Optional

from lumi.core.errors import IdentityResolutionError
from lumi.db.supabase import SupabaseError

logger = logging.getLogger(__name__)


# Checked in this order; the first non-empty value wins
DEFAULT_USER_ENV_VARS = (
    "LUMI_DEFAULT_USER_ID",
    "MCP_DEFAULT_USER_ID",
    "DEFAULT_USER_ID",
    "SUPABASE_DEFAULT_USER_ID",
)


class DefaultUserMemo:
    """
    Single-slot memo for the default user id

    One instance per server. Not synchronized: concurrent misses may both
    compute, and both store the same id.
    """

    def __init__(self):
        self._value: Optional[str] = None

    def get(self) -> Optional[str]:
        return self._value

    def set(self, value: str) -> None:
        self._value = value

    def reset(self) -> None:
        self._value = None

    async def get_or_compute(
        self,
        factory: Callable[[], Awaitable[Optional[str]]]
    ) -> Optional[str]:
        """Return the cached id, or compute, cache (if found) and return it"""
        if self._value:
            return self._value

        value = await factory()
        if value:
            self._value = value
        return value


class IdentityResolver:
    """
    Resolves user ids: explicit id, cached default, environment, then the
    earliest-created row of the users table
    """

    def __init__(
        self,
        store,
        memo: Optional[DefaultUserMemo] = None,
        environ: Optional[Mapping[str, str]] = None
    ):
        self.store = store
        self.memo = memo or DefaultUserMemo()
        self.environ = os.environ if environ is None else environ

    def _from_environment(self) -> Optional[str]:
        for name in DEFAULT_USER_ENV_VARS:
            value = (self.environ.get(name) or "").strip()
            if value:
                logger.info(f"👤 Default user taken from {name}")
                return value
        return None

    async def _from_store(self) -> Optional[str]:
        try:
            rows = await self.store.select(
                "users",
                columns="id",
                order=("created_at", True),
                limit=1,
            )
        except SupabaseError as e:
            logger.warning(f"⚠️ Default user lookup failed: {e}")
            return None

        if rows and rows[0].get("id"):
            user_id = str(rows[0]["id"])
            logger.info(f"👤 Default user resolved from users table: {user_id}")
            return user_id
        return None

    async def _compute_default(self) -> Optional[str]:
        return self._from_environment() or await self._from_store()

    async def resolve_user_id(self, explicit_id: Optional[str] = None) -> str:
        """
        Resolve the user a tool call acts on

        Args:
            explicit_id: Caller-supplied id; used when non-empty after trimming

        Returns:
            The resolved user id

        Raises:
            IdentityResolutionError: If no source yields an id
        """
        if explicit_id and explicit_id.strip():
            return explicit_id.strip()

        user_id = await self.memo.get_or_compute(self._compute_default)
        if not user_id:
            raise IdentityResolutionError(
                "No userId provided and a default user could not be resolved. "
                f"Pass userId explicitly or set one of {', '.join(DEFAULT_USER_ENV_VARS)}."
            )
        return user_id
