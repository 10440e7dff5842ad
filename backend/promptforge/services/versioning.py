"""Version history workflows: create, restore, delete, diff.

Invariant kept by every workflow here: after it commits, ``prompt.version``
equals the semver of the most recently created Version row.
"""
import logging
import uuid
from typing import Optional, Sequence

from promptforge.errors import (
    CurrentVersionDeleteError,
    DuplicateVersionError,
    VersionNotFoundError,
)
from promptforge.models.version import Version
from promptforge.services.clock import Clock, advance, utcnow
from promptforge.services.prompts import PromptService
from promptforge.services.semver import VersionBump, bump_version
from promptforge.services.store import PromptStore
from promptforge.services.variable_sync import snapshot_variables
from promptforge.services.version_diff import VersionDiff, creation_order, diff_contents, previous_version

logger = logging.getLogger(__name__)


class VersionService:
    def __init__(self, store: PromptStore, clock: Clock = utcnow):
        self.store = store
        self.clock = clock
        self.prompts = PromptService(store, clock)

    async def list_versions(self, prompt_id: uuid.UUID, user_id: Optional[str]) -> list[Version]:
        """Versions newest first."""
        await self.prompts.get_for_read(prompt_id, user_id)
        versions = await self.store.fetch_versions_by_prompt_id(prompt_id)
        return sorted(versions, key=creation_order, reverse=True)

    async def _latest_created_at(self, prompt_id: uuid.UUID):
        versions = await self.store.fetch_versions_by_prompt_id(prompt_id)
        if not versions:
            return None
        return max(versions, key=creation_order).created_at

    async def _append_version(self, prompt, semver: str, content: str, message: Optional[str], variables: list[dict]) -> Version:
        if await self.store.version_exists(prompt.id, semver):
            raise DuplicateVersionError(f"Version {semver} already exists for this prompt")
        created_at = advance(await self._latest_created_at(prompt.id), self.clock)
        version = self.store.create_version(prompt.id, semver, content, message, variables, created_at)
        prompt.version = semver
        prompt.updated_at = advance(prompt.updated_at, self.clock)
        return version

    async def create_version(
        self,
        prompt_id: uuid.UUID,
        user_id: Optional[str],
        bump: VersionBump,
        message: Optional[str] = None,
    ) -> Version:
        """Snapshot the current content and variables under the next semver."""
        prompt, _ = await self.prompts.get_for_write(prompt_id, user_id)
        semver = bump_version(prompt.version, bump)
        version = await self._append_version(
            prompt, semver, prompt.content, message, snapshot_variables(prompt.variables),
        )
        await self.store.commit()
        logger.info("Created version %s of prompt %s", semver, prompt_id)
        return version

    async def restore_version(self, prompt_id: uuid.UUID, version_id: uuid.UUID, user_id: Optional[str]) -> Version:
        """Bring an old snapshot back as a new patch version.

        Content, variables and the new Version row are written in one
        transaction; any failure rolls the whole restore back.
        """
        prompt, _ = await self.prompts.get_for_write(prompt_id, user_id)
        source = await self.store.fetch_version(prompt_id, version_id)
        if source is None:
            raise VersionNotFoundError("Version not found")

        snapshot = list(source.variables or [])
        try:
            prompt.content = source.content
            self.store.replace_variables(prompt, snapshot)
            semver = bump_version(prompt.version, "patch")
            version = await self._append_version(
                prompt, semver, source.content, f"Restored from version {source.semver}", snapshot,
            )
            await self.store.commit()
        except Exception:
            await self.store.rollback()
            raise
        logger.info("Restored prompt %s from %s as %s", prompt_id, source.semver, semver)
        return version

    async def delete_versions(
        self, prompt_id: uuid.UUID, version_ids: Sequence[uuid.UUID], user_id: Optional[str],
    ) -> tuple[int, str]:
        """Bulk delete. The current version can never be deleted."""
        prompt, _ = await self.prompts.get_for_write(prompt_id, user_id)
        found = await self.store.fetch_versions_by_ids(prompt_id, version_ids)
        if len(found) != len(set(version_ids)):
            raise VersionNotFoundError("One or more versions were not found")
        for version in found:
            if version.semver == prompt.version:
                raise CurrentVersionDeleteError(version.semver)
        deleted = await self.store.delete_versions(prompt_id, [v.id for v in found])
        await self.store.commit()
        logger.info("Deleted %d versions of prompt %s", deleted, prompt_id)
        return deleted, prompt.version

    async def diff_version(
        self,
        prompt_id: uuid.UUID,
        version_id: uuid.UUID,
        user_id: Optional[str],
        against_id: Optional[uuid.UUID] = None,
    ) -> VersionDiff:
        """Diff a version against ``against_id`` or the version just before it."""
        await self.prompts.get_for_read(prompt_id, user_id)
        versions = await self.store.fetch_versions_by_prompt_id(prompt_id)
        by_id = {v.id: v for v in versions}
        selected = by_id.get(version_id)
        if selected is None:
            raise VersionNotFoundError("Version not found")
        if against_id is not None:
            base = by_id.get(against_id)
            if base is None:
                raise VersionNotFoundError("Comparison version not found")
        else:
            base = previous_version(versions, selected)
        if base is None:
            return diff_contents("", selected.content, "(empty)", selected.semver)
        return diff_contents(base.content, selected.content, base.semver, selected.semver)
