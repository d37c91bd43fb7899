"""
Like Toggle API Tests

Run:
    python -m pytest backend/tests/test_likes.py -v
"""

import pytest

pytestmark = pytest.mark.flow


def _like(client, artifact_id):
    resp = client.post(f"/api/artifacts/{artifact_id}/like")
    assert resp.status_code == 200, resp.text
    return resp.json()


class TestToggleLike:

    def test_like_then_unlike(self, alice, bob):
        art = alice.create_artifact(isPublic=True)

        first = _like(bob, art["id"])
        assert first == {"liked": True, "likeCount": 1}

        second = _like(bob, art["id"])
        assert second == {"liked": False, "likeCount": 0}

    def test_two_users_like_same_artifact(self, alice, bob):
        """Alice publishes, Bob likes, Alice likes; counts and flags are per-viewer."""
        art = alice.create_artifact(title="Shared widget", isPublic=True)

        assert _like(bob, art["id"])["likeCount"] == 1
        assert _like(alice, art["id"])["likeCount"] == 2

        as_bob = bob.get(f"/api/artifacts/{art['id']}").json()
        assert as_bob["likeCount"] == 2
        assert as_bob["userLiked"] is True

        assert _like(bob, art["id"]) == {"liked": False, "likeCount": 1}

        as_bob = bob.get(f"/api/artifacts/{art['id']}").json()
        as_alice = alice.get(f"/api/artifacts/{art['id']}").json()
        assert as_bob["userLiked"] is False
        assert as_alice["userLiked"] is True
        assert as_bob["likeCount"] == as_alice["likeCount"] == 1

    def test_owner_list_shows_like_from_other_user(self, alice, bob):
        """After B likes A's public artifact, A's own listing shows the like but not as A's."""
        art = alice.create_artifact(isPublic=True)
        _like(bob, art["id"])

        listed = {a["id"]: a for a in alice.get("/api/artifacts").json()}
        assert listed[art["id"]]["likeCount"] == 1
        assert listed[art["id"]]["userLiked"] is False

    def test_like_shows_in_listing(self, alice, bob):
        art = alice.create_artifact(isPublic=True)
        _like(bob, art["id"])

        listed = {a["id"]: a for a in bob.get("/api/artifacts").json()}
        assert listed[art["id"]]["likeCount"] == 1
        assert listed[art["id"]]["userLiked"] is True

    def test_owner_can_like_own_private_artifact(self, alice):
        art = alice.create_artifact(isPublic=False)
        assert _like(alice, art["id"]) == {"liked": True, "likeCount": 1}

    def test_cannot_like_hidden_artifact(self, alice, bob):
        art = alice.create_artifact(isPublic=False)
        resp = bob.post(f"/api/artifacts/{art['id']}/like")
        assert resp.status_code == 404
        assert alice.get(f"/api/artifacts/{art['id']}").json()["likeCount"] == 0

    def test_cannot_like_missing_artifact(self, alice):
        assert alice.post("/api/artifacts/99999999/like").status_code == 404

    def test_like_requires_token(self, alice, api_client):
        art = alice.create_artifact(isPublic=True)
        assert api_client.post(f"/api/artifacts/{art['id']}/like").status_code == 401


class TestLikesFollowArtifact:

    def test_delete_removes_likes(self, alice, bob, make_user):
        art = alice.create_artifact(isPublic=True)
        _like(bob, art["id"])
        _like(make_user("carol"), art["id"])

        assert alice.delete(f"/api/artifacts/{art['id']}").status_code == 200
        assert bob.post(f"/api/artifacts/{art['id']}/like").status_code == 404

        # A fresh artifact starts with no likes
        replacement = alice.create_artifact(isPublic=True)
        assert replacement["likeCount"] == 0

    def test_likes_survive_going_private_for_owner_view(self, alice, bob):
        art = alice.create_artifact(isPublic=True)
        _like(bob, art["id"])

        alice.put(f"/api/artifacts/{art['id']}", json={"isPublic": False})
        assert alice.get(f"/api/artifacts/{art['id']}").json()["likeCount"] == 1
        assert bob.get(f"/api/artifacts/{art['id']}").status_code == 404
