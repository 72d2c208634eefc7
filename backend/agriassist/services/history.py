from datetime import datetime, timezone

from loguru import logger

from agriassist.errors import ServiceNotAvailable
from agriassist.models.schemas import ChatMessageRow, UserPreferences
from agriassist.tools._supabase import SupabaseClient

CHAT_TABLE = "chat_messages"
PREFERENCES_TABLE = "user_preferences"


class ChatHistory:
    """Chat turns and farmer preferences stored in Supabase."""

    def __init__(self, supabase: SupabaseClient | None, available: bool):
        self.supabase = supabase
        self.available = available and supabase is not None

    def _require(self) -> SupabaseClient:
        if not self.available:
            raise ServiceNotAvailable("Database")
        return self.supabase

    async def save_message(self, user_id: str, message: str, sender: str, category: str | None = None) -> ChatMessageRow:
        supabase = self._require()
        row = ChatMessageRow(
            user_id=user_id,
            message=message,
            sender=sender,
            category=category,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        inserted = await supabase.insert(CHAT_TABLE, row.model_dump(exclude_none=True))
        logger.debug("[history] Saved {} message for {}", sender, user_id)
        return ChatMessageRow(**inserted[0]) if inserted else row

    async def recent_messages(self, user_id: str, limit: int = 50) -> list[ChatMessageRow]:
        supabase = self._require()
        rows = await supabase.select(
            CHAT_TABLE,
            filters=[("user_id", "eq", user_id)],
            order="timestamp",
            ascending=False,
            limit=limit,
        )
        # Newest N from the database, returned oldest first for display
        return [ChatMessageRow(**row) for row in reversed(rows)]

    async def get_preferences(self, user_id: str) -> UserPreferences | None:
        supabase = self._require()
        rows = await supabase.select(PREFERENCES_TABLE, filters=[("user_id", "eq", user_id)], limit=1)
        return UserPreferences(**rows[0]) if rows else None

    async def save_preferences(self, prefs: UserPreferences) -> UserPreferences:
        supabase = self._require()
        payload = prefs.model_dump(exclude_none=True, exclude={"id", "created_at"})
        payload["updated_at"] = datetime.now(timezone.utc).isoformat()
        rows = await supabase.upsert(PREFERENCES_TABLE, payload, on_conflict="user_id")
        logger.info("[history] Saved preferences for {}", prefs.user_id)
        return UserPreferences(**rows[0]) if rows else prefs.model_copy(update=payload)
