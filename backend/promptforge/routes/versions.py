"""Version history API routes."""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query

from promptforge.dependencies import get_clock, get_current_user_id, get_store
from promptforge.models.version import Version
from promptforge.schemas.version import (
    VersionBulkDelete,
    VersionCreate,
    VersionDeleteResponse,
    VersionDiffResponse,
    VersionResponse,
)
from promptforge.services.store import PromptStore
from promptforge.services.versioning import VersionService

router = APIRouter(prefix="/api/prompts/{prompt_id}/versions", tags=["versions"])


def _service(store: PromptStore = Depends(get_store), clock=Depends(get_clock)) -> VersionService:
    return VersionService(store, clock)


@router.get("", response_model=list[VersionResponse])
async def list_versions(
    prompt_id: uuid.UUID,
    user_id: str = Depends(get_current_user_id),
    service: VersionService = Depends(_service),
):
    """Versions of a prompt, newest first."""
    versions = await service.list_versions(prompt_id, user_id)
    return [_to_response(v) for v in versions]


@router.post("", response_model=VersionResponse, status_code=201)
async def create_version(
    prompt_id: uuid.UUID,
    body: VersionCreate,
    user_id: str = Depends(get_current_user_id),
    service: VersionService = Depends(_service),
):
    """Snapshot the prompt under the next major, minor or patch number."""
    version = await service.create_version(prompt_id, user_id, body.bump, body.message)
    return _to_response(version)


@router.post("/bulk-delete", response_model=VersionDeleteResponse)
async def delete_versions(
    prompt_id: uuid.UUID,
    body: VersionBulkDelete,
    user_id: str = Depends(get_current_user_id),
    service: VersionService = Depends(_service),
):
    deleted, current = await service.delete_versions(prompt_id, body.version_ids, user_id)
    return {"prompt_id": prompt_id, "deleted_count": deleted, "current_version": current}


@router.post("/{version_id}/restore", response_model=VersionResponse, status_code=201)
async def restore_version(
    prompt_id: uuid.UUID,
    version_id: uuid.UUID,
    user_id: str = Depends(get_current_user_id),
    service: VersionService = Depends(_service),
):
    """Restore an old version's content and variables as a new patch version."""
    version = await service.restore_version(prompt_id, version_id, user_id)
    return _to_response(version)


@router.get("/{version_id}/diff", response_model=VersionDiffResponse)
async def diff_version(
    prompt_id: uuid.UUID,
    version_id: uuid.UUID,
    against: Optional[uuid.UUID] = Query(None),
    user_id: str = Depends(get_current_user_id),
    service: VersionService = Depends(_service),
):
    """Line diff against ``against`` or the version created just before."""
    diff = await service.diff_version(prompt_id, version_id, user_id, against_id=against)
    return diff.to_dict()


def _to_response(version: Version) -> dict:
    return {
        "id": version.id,
        "prompt_id": version.prompt_id,
        "semver": version.semver,
        "content": version.content,
        "message": version.message,
        "variables": list(version.variables or []),
        "created_at": version.created_at,
    }
