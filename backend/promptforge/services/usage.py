"""Prompt usage reporting and per-prompt usage statistics."""
import logging
import uuid
from typing import Optional

from promptforge.models.usage import PromptUsage
from promptforge.services.clock import Clock, utcnow
from promptforge.services.prompts import PromptService
from promptforge.services.share_authorization import assert_session
from promptforge.services.store import PromptStore

logger = logging.getLogger(__name__)


class PromptUsageService:
    def __init__(self, store: PromptStore, clock: Clock = utcnow):
        self.store = store
        self.clock = clock
        self.prompts = PromptService(store, clock)

    async def record_usage(
        self,
        prompt_id: uuid.UUID,
        user_id: Optional[str],
        success: Optional[bool] = None,
        notes: Optional[str] = None,
    ) -> PromptUsage:
        """Anyone who can read a prompt may report a use of it."""
        prompt, _ = await self.prompts.get_for_read(prompt_id, user_id)
        usage = self.store.create_usage(prompt.id, user_id, self.clock(), success, notes)
        await self.store.commit()
        logger.info("Recorded usage of prompt %s by %s", prompt_id, user_id)
        return usage

    async def usage_stats(self, user_id: Optional[str], limit: Optional[int] = None) -> list[dict]:
        """Usage count and success rate of the caller's prompts, most used first.

        Prompts never used are left out. The success rate is a percentage of
        all reported uses, so uses without an outcome count as unsuccessful.
        """
        user_id = assert_session(user_id)
        totals: dict[uuid.UUID, dict] = {}
        for prompt_id, title, success in await self.store.fetch_usage_rows_for_owner(user_id):
            entry = totals.setdefault(prompt_id, {"prompt_id": prompt_id, "title": title, "total": 0, "successful": 0})
            entry["total"] += 1
            if success is True:
                entry["successful"] += 1

        stats = [
            {
                "prompt_id": entry["prompt_id"],
                "title": entry["title"],
                "usage_count": entry["total"],
                "success_rate": entry["successful"] / entry["total"] * 100,
            }
            for entry in totals.values()
        ]
        stats.sort(key=lambda s: s["usage_count"], reverse=True)
        return stats[:limit] if limit else stats
