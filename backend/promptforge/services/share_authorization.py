"""Authorization preconditions for share mutations.

Each assertion returns None or raises a specific named error; none of them
touch storage. Share workflows call them in order:
session, target, self-share, ownership for creation; session, existence,
modify authorization for update and delete.
"""
from typing import Literal, Optional

from promptforge.errors import (
    NotPromptOwnerError,
    SelfShareError,
    SessionExpiredError,
    ShareNotFoundError,
    UnauthorizedShareModificationError,
)

ShareOperation = Literal["UPDATE", "DELETE"]


def assert_session(user_id: Optional[str]) -> str:
    if not user_id:
        raise SessionExpiredError("No authenticated user")
    return user_id


def assert_not_self_share(target_user_id: str, current_user_id: str) -> None:
    if target_user_id == current_user_id:
        raise SelfShareError("A prompt cannot be shared with its owner")


def assert_prompt_owner(is_owner: bool) -> None:
    if not is_owner:
        raise NotPromptOwnerError("Only the prompt owner can share it")


def assert_share_exists(share):
    if share is None:
        raise ShareNotFoundError("Share not found")
    return share


def assert_share_modify_authorization(
    share,
    current_user_id: str,
    is_prompt_owner: bool,
    operation: ShareOperation,
) -> None:
    """Only the share's creator or the prompt's owner may change a grant."""
    if share.shared_by != current_user_id and not is_prompt_owner:
        raise UnauthorizedShareModificationError(
            operation, f"Not allowed to {operation.lower()} this share",
        )
