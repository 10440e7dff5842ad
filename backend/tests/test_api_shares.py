"""
API tests for profiles and prompt sharing.
"""

import pytest

from conftest import ALICE, BOB, CAROL, as_user


def _share(client, prompt_id, owner=ALICE, **body):
    return client.post(f"/api/prompts/{prompt_id}/shares", json=body, headers=as_user(owner))


@pytest.fixture
def profiles(make_profile):
    """Share targets must have a profile."""
    make_profile(ALICE, "alice@example.com", "Alice")
    make_profile(BOB, "bob@example.com", "Bob")
    make_profile(CAROL, "carol@example.com", "Carol")


class TestProfiles:

    def test_create_and_fetch_own_profile(self, client, make_profile):
        created = make_profile(BOB, "Bob@Example.com", "Bob")
        assert created["email"] == "bob@example.com"

        me = client.get("/api/profiles/me", headers=as_user(BOB)).json()
        assert me == {"id": BOB, "email": "bob@example.com", "name": "Bob"}

    def test_duplicate_email_rejected(self, client, make_profile):
        make_profile(BOB, "bob@example.com")
        response = client.post("/api/profiles", json={"email": "bob@example.com"}, headers=as_user(CAROL))
        assert response.status_code == 409
        assert response.json()["error"] == "PROFILE_EXISTS"


@pytest.mark.usefixtures("profiles")
class TestAddShare:

    def test_share_by_email_grants_access(self, client, make_prompt):
        prompt = make_prompt()

        response = _share(client, prompt["id"], email="bob@example.com", permission="WRITE")
        assert response.status_code == 201
        share = response.json()
        assert share["sharedWithUserId"] == BOB
        assert share["sharedBy"] == ALICE
        assert share["sharedWithProfile"]["name"] == "Bob"

        read = client.get(f"/api/prompts/{prompt['id']}", headers=as_user(BOB)).json()
        assert read["permission"] == "WRITE"
        listed = client.get("/api/prompts", headers=as_user(BOB)).json()
        assert [p["id"] for p in listed] == [prompt["id"]]

        edited = client.put(f"/api/prompts/{prompt['id']}", json={"content": "edited"}, headers=as_user(BOB))
        assert edited.status_code == 200

    def test_read_share_cannot_write(self, client, make_prompt):
        prompt = make_prompt()
        _share(client, prompt["id"], userId=BOB)

        response = client.put(f"/api/prompts/{prompt['id']}", json={"content": "x"}, headers=as_user(BOB))
        assert response.status_code == 403
        assert response.json()["error"] == "PROMPT_ACCESS_DENIED"

    def test_self_share_rejected(self, client, make_prompt):
        prompt = make_prompt()
        response = _share(client, prompt["id"], userId=ALICE)
        assert response.status_code == 403
        assert response.json()["error"] == "SELF_SHARE"

    def test_only_owner_may_share(self, client, make_prompt):
        prompt = make_prompt()
        _share(client, prompt["id"], userId=BOB, permission="WRITE")

        response = _share(client, prompt["id"], owner=BOB, userId=CAROL)
        assert response.status_code == 403
        assert response.json()["error"] == "NOT_PROMPT_OWNER"

    def test_sharing_an_invisible_prompt_is_not_found(self, client, make_prompt):
        prompt = make_prompt()
        response = _share(client, prompt["id"], owner=BOB, userId=CAROL)
        assert response.status_code == 404
        assert response.json()["error"] == "PROMPT_NOT_FOUND"

    def test_grantees_only_see_their_own_grant(self, client, make_prompt):
        prompt = make_prompt()
        _share(client, prompt["id"], userId=BOB)
        _share(client, prompt["id"], userId=CAROL)

        seen_by_bob = client.get(f"/api/prompts/{prompt['id']}/shares", headers=as_user(BOB)).json()
        assert [s["sharedWithUserId"] for s in seen_by_bob] == [BOB]
        assert "carol@example.com" not in str(seen_by_bob)

        seen_by_owner = client.get(f"/api/prompts/{prompt['id']}/shares", headers=as_user(ALICE)).json()
        assert sorted(s["sharedWithUserId"] for s in seen_by_owner) == sorted([BOB, CAROL])

    def test_duplicate_share_rejected(self, client, make_prompt):
        prompt = make_prompt()
        assert _share(client, prompt["id"], userId=BOB).status_code == 201
        response = _share(client, prompt["id"], userId=BOB, permission="WRITE")
        assert response.status_code == 409
        assert response.json()["error"] == "SHARE_EXISTS"

    def test_unknown_email(self, client, make_prompt):
        prompt = make_prompt()
        response = _share(client, prompt["id"], email="nobody@example.com")
        assert response.status_code == 404
        assert response.json()["error"] == "USER_NOT_FOUND"

    def test_target_required(self, client, make_prompt):
        prompt = make_prompt()
        assert _share(client, prompt["id"], permission="READ").status_code == 422


@pytest.mark.usefixtures("profiles")
class TestModifyShare:

    def test_owner_updates_and_revokes(self, client, make_prompt):
        prompt = make_prompt()
        share = _share(client, prompt["id"], userId=BOB).json()

        updated = client.put(f"/api/shares/{share['id']}", json={"permission": "WRITE"}, headers=as_user(ALICE))
        assert updated.status_code == 200
        assert updated.json()["permission"] == "WRITE"

        revoked = client.delete(f"/api/shares/{share['id']}", headers=as_user(ALICE))
        assert revoked.status_code == 200
        assert client.get(f"/api/prompts/{prompt['id']}", headers=as_user(BOB)).status_code == 404
        assert client.get(f"/api/prompts/{prompt['id']}/shares", headers=as_user(ALICE)).json() == []

    def test_grantee_cannot_modify(self, client, make_prompt):
        prompt = make_prompt()
        share = _share(client, prompt["id"], userId=BOB).json()

        update = client.put(f"/api/shares/{share['id']}", json={"permission": "WRITE"}, headers=as_user(BOB))
        assert update.status_code == 403
        assert update.json()["error"] == "UNAUTHORIZED_UPDATE"

        delete = client.delete(f"/api/shares/{share['id']}", headers=as_user(BOB))
        assert delete.status_code == 403
        assert delete.json()["error"] == "UNAUTHORIZED_DELETE"

    def test_unknown_share(self, client):
        response = client.delete("/api/shares/00000000-0000-0000-0000-000000000000", headers=as_user(ALICE))
        assert response.status_code == 404
        assert response.json()["error"] == "SHARE_NOT_FOUND"

    def test_missing_session(self, client):
        response = client.delete("/api/shares/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 401
        assert response.json()["error"] == "SESSION_EXPIRED"
