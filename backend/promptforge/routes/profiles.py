"""User profile API routes.

Profiles exist so shares can target a user by email.
"""
import logging

from fastapi import APIRouter, Depends

from promptforge.dependencies import get_current_user_id, get_store
from promptforge.errors import DuplicateProfileError, UserNotFoundError
from promptforge.schemas.profile import ProfileCreate, ProfileResponse
from promptforge.services.store import PromptStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/profiles", tags=["profiles"])


@router.post("", response_model=ProfileResponse, status_code=201)
async def create_profile(
    body: ProfileCreate,
    user_id: str = Depends(get_current_user_id),
    store: PromptStore = Depends(get_store),
):
    """Register the caller's profile. Emails are stored lowercased."""
    if await store.fetch_profile_by_id(user_id) is not None:
        raise DuplicateProfileError("Profile already exists for this user")
    if await store.fetch_profile_by_email(body.email) is not None:
        raise DuplicateProfileError("Email is already registered")
    profile = store.create_profile(user_id, body.email, body.name)
    await store.commit()
    logger.info("Created profile %s", user_id)
    return profile


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    user_id: str = Depends(get_current_user_id),
    store: PromptStore = Depends(get_store),
):
    profile = await store.fetch_profile_by_id(user_id)
    if profile is None:
        raise UserNotFoundError("No profile for this user")
    return profile
