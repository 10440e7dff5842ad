"""Prompt workflows: CRUD, conflict-aware updates, sharing-aware access."""
import logging
import uuid
from typing import Optional

from promptforge.errors import (
    PermissionUpdateOnPrivatePromptError,
    PromptAccessDeniedError,
    PromptNotFoundError,
)
from promptforge.models.prompt import Prompt
from promptforge.models.variable import Variable
from promptforge.services.clock import Clock, advance, utcnow
from promptforge.services.conflict import ConflictDetector
from promptforge.services.share_authorization import assert_prompt_owner, assert_session
from promptforge.services.store import PromptStore
from promptforge.services.templating import find_unresolved, missing_required, extract_variables, render_template
from promptforge.services.variable_sync import normalize_variable, snapshot_variables

logger = logging.getLogger(__name__)

OWNER = "OWNER"
WRITE = "WRITE"
READ = "READ"

INITIAL_VERSION_MESSAGE = "Initial version"


class PromptService:
    def __init__(self, store: PromptStore, clock: Clock = utcnow):
        self.store = store
        self.clock = clock

    # --- access ---

    async def effective_permission(self, prompt: Prompt, user_id: str) -> Optional[str]:
        """OWNER, WRITE, READ or None for ``user_id`` on ``prompt``.

        A direct share grant wins over the public permission of a SHARED
        prompt when it is stronger.
        """
        if prompt.owner_id == user_id:
            return OWNER
        grants = []
        share = await self.store.fetch_share(prompt.id, user_id)
        if share is not None:
            grants.append(share.permission)
        if prompt.visibility == "SHARED":
            grants.append(prompt.public_permission or READ)
        if WRITE in grants:
            return WRITE
        return READ if grants else None

    async def get_for_read(self, prompt_id: uuid.UUID, user_id: Optional[str]) -> tuple[Prompt, str]:
        user_id = assert_session(user_id)
        prompt = await self.store.fetch_prompt_by_id(prompt_id)
        if prompt is None:
            raise PromptNotFoundError("Prompt not found")
        permission = await self.effective_permission(prompt, user_id)
        if permission is None:
            # Hide existence of prompts the user cannot see.
            raise PromptNotFoundError("Prompt not found")
        return prompt, permission

    async def get_for_write(self, prompt_id: uuid.UUID, user_id: Optional[str]) -> tuple[Prompt, str]:
        prompt, permission = await self.get_for_read(prompt_id, user_id)
        if permission == READ:
            raise PromptAccessDeniedError("Read-only access to this prompt")
        return prompt, permission

    async def get_owned(self, prompt_id: uuid.UUID, user_id: Optional[str]) -> Prompt:
        prompt, permission = await self.get_for_read(prompt_id, user_id)
        assert_prompt_owner(permission == OWNER)
        return prompt

    def touch(self, prompt: Prompt) -> None:
        prompt.updated_at = advance(prompt.updated_at, self.clock)

    # --- queries ---

    async def list_prompts(
        self,
        user_id: Optional[str],
        search: Optional[str] = None,
        tag: Optional[str] = None,
        favorites_only: bool = False,
    ) -> list[Prompt]:
        user_id = assert_session(user_id)
        prompts = await self.store.list_prompts_for_user(user_id, search=search)
        if tag:
            prompts = [p for p in prompts if tag in (p.tags or [])]
        if favorites_only:
            prompts = [p for p in prompts if p.is_favorite and p.owner_id == user_id]
        return prompts

    # --- mutations ---

    async def create_prompt(self, user_id: Optional[str], data: dict) -> Prompt:
        """Create a prompt with its variables and the initial version snapshot."""
        user_id = assert_session(user_id)
        variables = data.pop("variables", None) or []
        now = self.clock()
        prompt = Prompt(
            owner_id=user_id,
            title=data["title"],
            description=data.get("description"),
            content=data["content"],
            tags=data.get("tags") or [],
            visibility=data.get("visibility", "PRIVATE"),
            public_permission=data.get("public_permission", READ),
            version=data.get("version") or "1.0.0",
            is_favorite=data.get("is_favorite", False),
            created_at=now,
            updated_at=now,
        )
        prompt.variables = [Variable(**normalize_variable(v, i)) for i, v in enumerate(variables)]
        self.store.add_prompt(prompt)
        await self.store.flush()

        self.store.create_version(
            prompt.id, prompt.version, prompt.content, INITIAL_VERSION_MESSAGE,
            snapshot_variables(prompt.variables), created_at=now,
        )
        await self.store.commit()
        logger.info("Created prompt %s (%s) for %s", prompt.id, prompt.version, user_id)
        return prompt

    async def update_prompt(self, prompt_id: uuid.UUID, user_id: Optional[str], data: dict) -> Prompt:
        """Apply an edit after the advisory conflict check.

        ``expected_updated_at`` is the timestamp the editor loaded; if the
        server copy is newer the save is refused unless ``force`` is set.
        """
        prompt, _ = await self.get_for_write(prompt_id, user_id)
        expected = data.pop("expected_updated_at", None)
        force = data.pop("force", False)
        variables = data.pop("variables", None)

        if expected is not None:
            detector = ConflictDetector(None, expected)
            detector.observe(prompt.updated_at, has_unsaved_changes=True)
            detector.guard_save(force=force)

        # Only description may be cleared; other nulls mean "leave as is".
        changes = {k: v for k, v in data.items() if v is not None or k == "description"}
        await self.store.update_prompt(prompt, changes)
        if variables is not None:
            self.store.replace_variables(prompt, variables)
        self.touch(prompt)
        await self.store.commit()
        logger.info("Updated prompt %s", prompt.id)
        return prompt

    async def check_conflict(self, prompt_id: uuid.UUID, user_id: Optional[str], since) -> ConflictDetector:
        """Server-side refresh of a detector seeded with the client's baseline."""
        await self.get_for_read(prompt_id, user_id)
        detector = ConflictDetector(lambda: self.store.fetch_prompt_updated_at(prompt_id), since)
        await detector.refresh(has_unsaved_changes=True)
        return detector

    async def delete_prompt(self, prompt_id: uuid.UUID, user_id: Optional[str]) -> None:
        prompt = await self.get_owned(prompt_id, user_id)
        await self.store.delete_prompt(prompt)
        await self.store.commit()
        logger.info("Deleted prompt %s", prompt_id)

    async def duplicate_prompt(self, prompt_id: uuid.UUID, user_id: Optional[str]) -> Prompt:
        original, _ = await self.get_for_read(prompt_id, user_id)
        return await self.create_prompt(user_id, {
            "title": f"{original.title} (Copy)"[:200],
            "description": original.description,
            "content": original.content,
            "tags": list(original.tags or []),
            "visibility": "PRIVATE",
            "version": "1.0.0",
            "variables": snapshot_variables(original.variables),
        })

    async def toggle_favorite(self, prompt_id: uuid.UUID, user_id: Optional[str]) -> Prompt:
        prompt = await self.get_owned(prompt_id, user_id)
        prompt.is_favorite = not prompt.is_favorite
        await self.store.commit()
        return prompt

    async def toggle_visibility(
        self, prompt_id: uuid.UUID, user_id: Optional[str], public_permission: Optional[str] = None,
    ) -> Prompt:
        """PRIVATE <-> SHARED. Going private resets the public permission to READ."""
        prompt = await self.get_owned(prompt_id, user_id)
        if prompt.visibility == "PRIVATE":
            prompt.visibility = "SHARED"
            prompt.public_permission = public_permission or READ
        else:
            prompt.visibility = "PRIVATE"
            prompt.public_permission = READ
        self.touch(prompt)
        await self.store.commit()
        logger.info("Prompt %s visibility is now %s", prompt.id, prompt.visibility)
        return prompt

    async def update_public_permission(self, prompt_id: uuid.UUID, user_id: Optional[str], permission: str) -> Prompt:
        prompt = await self.get_owned(prompt_id, user_id)
        if prompt.visibility != "SHARED":
            raise PermissionUpdateOnPrivatePromptError()
        prompt.public_permission = permission
        self.touch(prompt)
        await self.store.commit()
        return prompt

    async def replace_variables(self, prompt_id: uuid.UUID, user_id: Optional[str], variables: list[dict]) -> Prompt:
        prompt, _ = await self.get_for_write(prompt_id, user_id)
        self.store.replace_variables(prompt, variables)
        self.touch(prompt)
        await self.store.commit()
        return prompt

    async def render(self, prompt_id: uuid.UUID, user_id: Optional[str], values: dict) -> dict:
        prompt, _ = await self.get_for_read(prompt_id, user_id)
        rendered = render_template(prompt.content, prompt.variables, values)
        return {
            "rendered": rendered,
            "detected": extract_variables(prompt.content),
            "unresolved": find_unresolved(rendered),
            "missing_required": missing_required(prompt.variables, values),
        }
