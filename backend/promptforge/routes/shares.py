"""Prompt sharing API routes."""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends

from promptforge.dependencies import get_clock, get_current_user_id, get_store
from promptforge.models.profile import Profile
from promptforge.models.share import PromptShare
from promptforge.schemas.common import DeleteResponse
from promptforge.schemas.share import ShareCreate, ShareResponse, ShareUpdate
from promptforge.services.sharing import ShareService
from promptforge.services.store import PromptStore

router = APIRouter(tags=["shares"])


def _service(store: PromptStore = Depends(get_store), clock=Depends(get_clock)) -> ShareService:
    return ShareService(store, clock)


@router.get("/api/prompts/{prompt_id}/shares", response_model=list[ShareResponse])
async def list_shares(
    prompt_id: uuid.UUID,
    user_id: str = Depends(get_current_user_id),
    service: ShareService = Depends(_service),
):
    entries = await service.list_shares(prompt_id, user_id)
    return [_to_response(e["share"], e["profile"]) for e in entries]


@router.post("/api/prompts/{prompt_id}/shares", response_model=ShareResponse, status_code=201)
async def add_share(
    prompt_id: uuid.UUID,
    body: ShareCreate,
    user_id: str = Depends(get_current_user_id),
    service: ShareService = Depends(_service),
):
    """Grant READ or WRITE to another user, by email or user id. Owner only."""
    share = await service.add_share(
        prompt_id, user_id, body.permission, email=body.email, target_user_id=body.user_id,
    )
    profile = await service.store.fetch_profile_by_id(share.shared_with_user_id)
    return _to_response(share, profile)


@router.put("/api/shares/{share_id}", response_model=ShareResponse)
async def update_share(
    share_id: uuid.UUID,
    body: ShareUpdate,
    user_id: str = Depends(get_current_user_id),
    service: ShareService = Depends(_service),
):
    share = await service.update_share(share_id, user_id, body.permission)
    return _to_response(share)


@router.delete("/api/shares/{share_id}", response_model=DeleteResponse)
async def delete_share(
    share_id: uuid.UUID,
    user_id: str = Depends(get_current_user_id),
    service: ShareService = Depends(_service),
):
    """Revoke a grant. The prompt owner or the grant's creator may do this."""
    await service.delete_share(share_id, user_id)
    return {"deleted": True, "id": str(share_id)}


def _to_response(share: PromptShare, profile: Optional[Profile] = None) -> dict:
    return {
        "id": share.id,
        "prompt_id": share.prompt_id,
        "shared_with_user_id": share.shared_with_user_id,
        "permission": share.permission,
        "shared_by": share.shared_by,
        "created_at": share.created_at,
        "shared_with_profile": (
            {"id": profile.id, "email": profile.email, "name": profile.name} if profile else None
        ),
    }
