"""
Tests for share_authorization.py - share mutation preconditions.
"""

from types import SimpleNamespace

import pytest

from promptforge.errors import (
    NotPromptOwnerError,
    SelfShareError,
    SessionExpiredError,
    ShareNotFoundError,
    UnauthorizedShareModificationError,
)
from promptforge.services.share_authorization import (
    assert_not_self_share,
    assert_prompt_owner,
    assert_session,
    assert_share_exists,
    assert_share_modify_authorization,
)


class TestAssertions:

    def test_session(self):
        assert assert_session("u1") == "u1"
        with pytest.raises(SessionExpiredError):
            assert_session(None)
        with pytest.raises(SessionExpiredError):
            assert_session("")

    def test_self_share(self):
        assert_not_self_share("u2", "u1")
        with pytest.raises(SelfShareError):
            assert_not_self_share("u1", "u1")

    def test_prompt_owner(self):
        assert_prompt_owner(True)
        with pytest.raises(NotPromptOwnerError):
            assert_prompt_owner(False)

    def test_share_exists(self):
        share = object()
        assert assert_share_exists(share) is share
        with pytest.raises(ShareNotFoundError):
            assert_share_exists(None)


class TestModifyAuthorization:

    share = SimpleNamespace(shared_by="creator")

    def test_creator_may_modify(self):
        assert_share_modify_authorization(self.share, "creator", False, "UPDATE")

    def test_prompt_owner_may_modify(self):
        assert_share_modify_authorization(self.share, "owner", True, "DELETE")

    @pytest.mark.parametrize("operation", ["UPDATE", "DELETE"])
    def test_others_rejected_with_operation_code(self, operation):
        with pytest.raises(UnauthorizedShareModificationError) as exc_info:
            assert_share_modify_authorization(self.share, "stranger", False, operation)
        assert exc_info.value.code == f"UNAUTHORIZED_{operation}"
        assert exc_info.value.status_code == 403
