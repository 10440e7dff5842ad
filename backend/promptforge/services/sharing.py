"""Share grant workflows, composed from the authorization assertions."""
import logging
import uuid
from typing import Optional

from promptforge.errors import DuplicateShareError, UserNotFoundError
from promptforge.models.share import PromptShare
from promptforge.services.clock import Clock, utcnow
from promptforge.services.prompts import OWNER, PromptService
from promptforge.services.share_authorization import (
    assert_not_self_share,
    assert_prompt_owner,
    assert_session,
    assert_share_exists,
    assert_share_modify_authorization,
)
from promptforge.services.store import PromptStore

logger = logging.getLogger(__name__)


class ShareService:
    def __init__(self, store: PromptStore, clock: Clock = utcnow):
        self.store = store
        self.clock = clock
        self.prompts = PromptService(store, clock)

    async def list_shares(self, prompt_id: uuid.UUID, user_id: Optional[str]) -> list[dict]:
        """Grants on a prompt with the grantee's profile attached.

        The owner sees every grant; anyone else only the grants they received
        or created.
        """
        _, permission = await self.prompts.get_for_read(prompt_id, user_id)
        shares = await self.store.fetch_shares_by_prompt_id(prompt_id)
        if permission != OWNER:
            shares = [s for s in shares if user_id in (s.shared_with_user_id, s.shared_by)]
        profiles = await self.store.fetch_profiles_by_ids([s.shared_with_user_id for s in shares])
        by_id = {p.id: p for p in profiles}
        return [
            {"share": share, "profile": by_id.get(share.shared_with_user_id)}
            for share in shares
        ]

    async def _resolve_target(self, email: Optional[str], target_user_id: Optional[str]) -> str:
        if target_user_id:
            profile = await self.store.fetch_profile_by_id(target_user_id)
        else:
            profile = await self.store.fetch_profile_by_email(email or "")
        if profile is None:
            raise UserNotFoundError("No user matches this share target")
        return profile.id

    async def add_share(
        self,
        prompt_id: uuid.UUID,
        user_id: Optional[str],
        permission: str,
        email: Optional[str] = None,
        target_user_id: Optional[str] = None,
    ) -> PromptShare:
        user_id = assert_session(user_id)
        target = await self._resolve_target(email, target_user_id)
        assert_not_self_share(target, user_id)

        _, access = await self.prompts.get_for_read(prompt_id, user_id)
        assert_prompt_owner(access == OWNER)

        if await self.store.fetch_share(prompt_id, target) is not None:
            raise DuplicateShareError("Prompt is already shared with this user")

        share = self.store.create_share(prompt_id, target, permission, shared_by=user_id)
        await self.store.commit()
        logger.info("Shared prompt %s with %s (%s)", prompt_id, target, permission)
        return share

    async def _load_for_modification(self, share_id: uuid.UUID, user_id: Optional[str], operation: str) -> PromptShare:
        user_id = assert_session(user_id)
        share = assert_share_exists(await self.store.fetch_share_by_id(share_id))
        is_owner = await self.store.is_prompt_owner(share.prompt_id, user_id)
        assert_share_modify_authorization(share, user_id, is_owner, operation)
        return share

    async def update_share(self, share_id: uuid.UUID, user_id: Optional[str], permission: str) -> PromptShare:
        share = await self._load_for_modification(share_id, user_id, "UPDATE")
        await self.store.update_share(share, {"permission": permission, "updated_at": self.clock()})
        await self.store.commit()
        logger.info("Share %s permission set to %s", share_id, permission)
        return share

    async def delete_share(self, share_id: uuid.UUID, user_id: Optional[str]) -> None:
        share = await self._load_for_modification(share_id, user_id, "DELETE")
        await self.store.delete_share(share)
        await self.store.commit()
        logger.info("Deleted share %s", share_id)
