"""
Chat Service
Tutor replies to student messages, logged to chat_history
FILE: lumi/services/chat_service.py
"""
import logging
from typing import Optional

from lumi.core.errors import StoreWriteError
from lumi.db.supabase import SupabaseError
from lumi.models.chat import ChatRequest, ChatResult
from lumi.prompts.chat_prompt import build_chat_prompt
from lumi.services.gamification import CHAT_MESSAGE_XP, XPAwarder
from lumi.services.persona_service import resolve_persona

logger = logging.getLogger(__name__)


# Role labels the chat_history schema may accept, tried once each in order
ROLE_CANDIDATES = ("ai", "assistant", "system", "bot")


class ChatResponder:
    """Service for tutor chat messages"""

    CHAT_TABLE = "chat_history"

    def __init__(self, store, llm, xp_awarder: XPAwarder = None):
        self.store = store
        self.llm = llm
        self.xp_awarder = xp_awarder or XPAwarder(store)

    async def _save_exchange(self, payload: dict) -> tuple:
        """
        Insert the exchange with the first role label the store accepts

        Returns:
            (saved_row, role)

        Raises:
            StoreWriteError: If every candidate was rejected
        """
        last_error: Optional[str] = None

        for role in ROLE_CANDIDATES:
            try:
                row = await self.store.insert(self.CHAT_TABLE, {**payload, "role": role})
            except SupabaseError as e:
                logger.info(f"ℹ️ chat_history rejected role '{role}': {e}")
                last_error = str(e)
                continue

            if row:
                return row, role
            last_error = f"no row returned for role '{role}'"

        raise StoreWriteError(
            f"Failed to save chat message: {last_error or 'Failed to write chat history'}"
        )

    async def send_chat_message(self, request: ChatRequest) -> ChatResult:
        """
        Reply to a student message

        Args:
            request: Message, optional topic/context and overrides

        Returns:
            ChatResult with the reply, stored message id and XP award outcome

        Raises:
            StoreWriteError: If the exchange could not be stored under any role
        """
        logger.info(f"💬 Chat message - User: {request.user_id}, Topic: {request.topic}")

        persona = await resolve_persona(self.store, request.user_id, request.persona)
        prompt = build_chat_prompt(request.message, request.topic, request.context)
        reply = await self.llm.generate_text(prompt, persona, request.model)

        payload = {
            "user_id": request.user_id,
            "message": request.message,
            "response": reply,
            "topic": request.topic,
            "persona": persona,
            "xp_gained": CHAT_MESSAGE_XP,
        }
        saved, role = await self._save_exchange(payload)
        logger.info(f"✅ Chat message saved: {saved.get('id')} (role={role})")

        xp_award = await self.xp_awarder.award(request.user_id, CHAT_MESSAGE_XP)

        timestamp = saved.get("timestamp")
        return ChatResult(
            reply=reply,
            xp_gained=CHAT_MESSAGE_XP,
            message_id=str(saved.get("id")),
            timestamp=str(timestamp) if timestamp is not None else None,
            role=role,
            xp_award=xp_award,
        )
