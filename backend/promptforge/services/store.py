"""Persistence collaborator for prompts, variables, versions, shares and usage.

The workflow services never build queries themselves; they go through a
PromptStore bound to one AsyncSession. Nothing here commits implicitly:
each workflow ends with ``commit()`` so its writes land in one transaction.
"""
import logging
import uuid
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from promptforge.models.profile import Profile
from promptforge.models.prompt import Prompt
from promptforge.models.share import PromptShare
from promptforge.models.usage import PromptUsage
from promptforge.models.variable import Variable
from promptforge.models.version import Version
from promptforge.services.variable_sync import plan_variable_changes

logger = logging.getLogger(__name__)


class PromptStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()

    async def flush(self) -> None:
        await self.db.flush()

    # --- prompts ---

    async def fetch_prompt_by_id(self, prompt_id: uuid.UUID) -> Optional[Prompt]:
        result = await self.db.execute(select(Prompt).where(Prompt.id == prompt_id))
        return result.scalar_one_or_none()

    async def fetch_prompt_updated_at(self, prompt_id: uuid.UUID) -> Optional[datetime]:
        result = await self.db.execute(select(Prompt.updated_at).where(Prompt.id == prompt_id))
        return result.scalar_one_or_none()

    async def list_prompts_for_user(self, user_id: str, search: Optional[str] = None) -> list[Prompt]:
        """Prompts the user owns or holds a share grant on, newest first."""
        shared_ids = select(PromptShare.prompt_id).where(PromptShare.shared_with_user_id == user_id)
        query = select(Prompt).where(or_(Prompt.owner_id == user_id, Prompt.id.in_(shared_ids)))
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(Prompt.title.ilike(pattern), Prompt.description.ilike(pattern)))
        query = query.order_by(Prompt.updated_at.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    def add_prompt(self, prompt: Prompt) -> Prompt:
        self.db.add(prompt)
        return prompt

    async def update_prompt(self, prompt: Prompt, changes: dict) -> Prompt:
        for key, value in changes.items():
            setattr(prompt, key, value)
        return prompt

    async def delete_prompt(self, prompt: Prompt) -> None:
        await self.db.execute(delete(Version).where(Version.prompt_id == prompt.id))
        await self.db.execute(delete(PromptShare).where(PromptShare.prompt_id == prompt.id))
        await self.db.execute(delete(PromptUsage).where(PromptUsage.prompt_id == prompt.id))
        await self.db.delete(prompt)

    async def is_prompt_owner(self, prompt_id: uuid.UUID, user_id: str) -> bool:
        result = await self.db.execute(select(Prompt.owner_id).where(Prompt.id == prompt_id))
        return result.scalar_one_or_none() == user_id

    # --- variables ---

    def replace_variables(self, prompt: Prompt, incoming: Sequence[dict]) -> None:
        """Apply an incoming variable list to ``prompt.variables`` in place."""
        plan = plan_variable_changes(prompt.variables, incoming)
        for variable in plan.to_delete:
            prompt.variables.remove(variable)
        for variable, values in plan.to_update:
            for key, value in values.items():
                setattr(variable, key, value)
        for values in plan.to_insert:
            prompt.variables.append(Variable(**values))
        prompt.variables.sort(key=lambda v: v.order_index)

    # --- versions ---

    async def fetch_versions_by_prompt_id(self, prompt_id: uuid.UUID) -> list[Version]:
        result = await self.db.execute(
            select(Version).where(Version.prompt_id == prompt_id).order_by(Version.created_at.desc())
        )
        return list(result.scalars().all())

    async def fetch_version(self, prompt_id: uuid.UUID, version_id: uuid.UUID) -> Optional[Version]:
        result = await self.db.execute(
            select(Version).where(Version.id == version_id, Version.prompt_id == prompt_id)
        )
        return result.scalar_one_or_none()

    async def fetch_versions_by_ids(self, prompt_id: uuid.UUID, version_ids: Sequence[uuid.UUID]) -> list[Version]:
        result = await self.db.execute(
            select(Version).where(Version.prompt_id == prompt_id, Version.id.in_(version_ids))
        )
        return list(result.scalars().all())

    async def version_exists(self, prompt_id: uuid.UUID, semver: str) -> bool:
        result = await self.db.execute(
            select(Version.id).where(Version.prompt_id == prompt_id, Version.semver == semver)
        )
        return result.first() is not None

    def create_version(
        self,
        prompt_id: uuid.UUID,
        semver: str,
        content: str,
        message: Optional[str],
        variables: list[dict],
        created_at: datetime,
    ) -> Version:
        version = Version(
            prompt_id=prompt_id,
            semver=semver,
            content=content,
            message=message,
            variables=variables,
            created_at=created_at,
        )
        self.db.add(version)
        return version

    async def delete_versions(self, prompt_id: uuid.UUID, version_ids: Sequence[uuid.UUID]) -> int:
        result = await self.db.execute(
            delete(Version).where(Version.prompt_id == prompt_id, Version.id.in_(version_ids))
        )
        return result.rowcount or 0

    # --- shares ---

    async def fetch_share_by_id(self, share_id: uuid.UUID) -> Optional[PromptShare]:
        result = await self.db.execute(select(PromptShare).where(PromptShare.id == share_id))
        return result.scalar_one_or_none()

    async def fetch_share(self, prompt_id: uuid.UUID, user_id: str) -> Optional[PromptShare]:
        result = await self.db.execute(
            select(PromptShare).where(
                PromptShare.prompt_id == prompt_id,
                PromptShare.shared_with_user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def fetch_shares_by_prompt_id(self, prompt_id: uuid.UUID) -> list[PromptShare]:
        result = await self.db.execute(
            select(PromptShare).where(PromptShare.prompt_id == prompt_id).order_by(PromptShare.created_at)
        )
        return list(result.scalars().all())

    def create_share(self, prompt_id: uuid.UUID, shared_with_user_id: str, permission: str, shared_by: str) -> PromptShare:
        share = PromptShare(
            prompt_id=prompt_id,
            shared_with_user_id=shared_with_user_id,
            permission=permission,
            shared_by=shared_by,
        )
        self.db.add(share)
        return share

    async def update_share(self, share: PromptShare, changes: dict) -> PromptShare:
        for key, value in changes.items():
            setattr(share, key, value)
        return share

    async def delete_share(self, share: PromptShare) -> None:
        await self.db.delete(share)

    # --- profiles ---

    async def fetch_profile_by_id(self, user_id: str) -> Optional[Profile]:
        return await self.db.get(Profile, user_id)

    async def fetch_profile_by_email(self, email: str) -> Optional[Profile]:
        result = await self.db.execute(select(Profile).where(Profile.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def fetch_profiles_by_ids(self, user_ids: Sequence[str]) -> list[Profile]:
        if not user_ids:
            return []
        result = await self.db.execute(select(Profile).where(Profile.id.in_(user_ids)))
        return list(result.scalars().all())

    def create_profile(self, user_id: str, email: str, name: Optional[str]) -> Profile:
        profile = Profile(id=user_id, email=email.strip().lower(), name=name)
        self.db.add(profile)
        return profile

    # --- usage ---

    def create_usage(
        self,
        prompt_id: uuid.UUID,
        user_id: str,
        used_at: datetime,
        success: Optional[bool],
        notes: Optional[str],
    ) -> PromptUsage:
        usage = PromptUsage(prompt_id=prompt_id, user_id=user_id, used_at=used_at, success=success, notes=notes)
        self.db.add(usage)
        return usage

    async def fetch_usage_rows_for_owner(self, owner_id: str) -> list[tuple]:
        """(prompt_id, title, success) for every usage of the owner's prompts."""
        result = await self.db.execute(
            select(Prompt.id, Prompt.title, PromptUsage.success)
            .join(PromptUsage, PromptUsage.prompt_id == Prompt.id)
            .where(Prompt.owner_id == owner_id)
        )
        return [tuple(row) for row in result.all()]
