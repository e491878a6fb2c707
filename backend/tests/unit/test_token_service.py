"""
Unit tests for token issuance, verification and rotation.
"""
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from app.core.errors import NotFoundError, UnauthorizedError


class TestIssuance:

    def test_access_token_carries_identity_claims(self, make_user, tokens, test_settings):
        user = make_user("alice", full_name="Alice Liddell")

        token = tokens.issue_access_token(user)
        claims = jwt.decode(token, test_settings.access_token_secret, algorithms=["HS256"])

        assert claims["sub"] == str(user.id)
        assert claims["email"] == "alice@example.com"
        assert claims["username"] == "alice"
        assert claims["full_name"] == "Alice Liddell"
        assert claims["type"] == "access"
        assert claims["exp"] - claims["iat"] == 15 * 60

    def test_refresh_token_carries_only_the_id(self, make_user, tokens, test_settings):
        user = make_user("bob")

        token = tokens.issue_refresh_token(user)
        claims = jwt.decode(token, test_settings.refresh_token_secret, algorithms=["HS256"])

        assert claims["sub"] == str(user.id)
        assert claims["type"] == "refresh"
        assert "email" not in claims
        assert "username" not in claims
        assert claims["exp"] - claims["iat"] == 7 * 24 * 60 * 60

    def test_tokens_use_separate_secrets(self, make_user, tokens):
        user = make_user("carol")

        with pytest.raises(UnauthorizedError):
            tokens.decode_refresh_token(tokens.issue_access_token(user))
        with pytest.raises(UnauthorizedError):
            tokens.decode_access_token(tokens.issue_refresh_token(user))

    def test_consecutive_tokens_differ(self, make_user, tokens):
        user = make_user("dave")

        assert tokens.issue_refresh_token(user) != tokens.issue_refresh_token(user)


class TestVerification:

    def test_expired_token_rejected(self, make_user, tokens, test_settings):
        user = make_user("erin")
        past = datetime.now(timezone.utc) - timedelta(days=30)
        token = jwt.encode(
            {"sub": str(user.id), "type": "refresh", "iat": past, "exp": past + timedelta(days=1)},
            test_settings.refresh_token_secret,
            algorithm="HS256",
        )

        with pytest.raises(UnauthorizedError) as exc_info:
            tokens.decode_refresh_token(token)

        assert "expired" in exc_info.value.message.lower()

    def test_token_signed_with_wrong_secret_rejected(self, make_user, tokens):
        user = make_user("frank")
        forged = jwt.encode(
            {"sub": str(user.id), "type": "access", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            "not-the-server-secret",
            algorithm="HS256",
        )

        with pytest.raises(UnauthorizedError):
            tokens.decode_access_token(forged)

    def test_garbage_and_empty_tokens_rejected(self, tokens):
        with pytest.raises(UnauthorizedError):
            tokens.decode_access_token("not.a.jwt")
        with pytest.raises(UnauthorizedError):
            tokens.decode_access_token("")


class TestRotation:

    def test_rotate_persists_refresh_token(self, db, make_user, tokens, store):
        user = make_user("gina")

        pair = tokens.rotate_tokens(db, user.id)

        assert store.find_by_id(db, user.id).refresh_token == pair.refresh_token
        assert tokens.decode_access_token(pair.access_token)["sub"] == str(user.id)

    def test_rotate_overwrites_previous_token(self, db, make_user, tokens, store):
        user = make_user("hank")

        first = tokens.rotate_tokens(db, user.id)
        second = tokens.rotate_tokens(db, user.id)

        assert first.refresh_token != second.refresh_token
        assert store.find_by_id(db, user.id).refresh_token == second.refresh_token

    def test_rotate_unknown_user(self, db, tokens):
        with pytest.raises(NotFoundError):
            tokens.rotate_tokens(db, uuid.uuid4())


class TestRefresh:

    def test_refresh_returns_new_pair(self, db, make_user, tokens, store):
        user = make_user("ivy")
        original = tokens.rotate_tokens(db, user.id)

        renewed = tokens.refresh(db, original.refresh_token)

        assert renewed.refresh_token != original.refresh_token
        assert store.find_by_id(db, user.id).refresh_token == renewed.refresh_token

    def test_reusing_a_rotated_token_fails(self, db, make_user, tokens):
        user = make_user("jack")
        original = tokens.rotate_tokens(db, user.id)
        tokens.refresh(db, original.refresh_token)

        with pytest.raises(UnauthorizedError):
            tokens.refresh(db, original.refresh_token)

    def test_refresh_after_invalidate_fails(self, db, make_user, tokens, store):
        user = make_user("kim")
        pair = tokens.rotate_tokens(db, user.id)

        tokens.invalidate(db, user.id)

        assert store.find_by_id(db, user.id).refresh_token is None
        with pytest.raises(UnauthorizedError):
            tokens.refresh(db, pair.refresh_token)

    def test_refresh_for_deleted_user_fails(self, db, make_user, tokens):
        user = make_user("liam")
        pair = tokens.rotate_tokens(db, user.id)
        db.delete(user)
        db.commit()

        with pytest.raises(UnauthorizedError):
            tokens.refresh(db, pair.refresh_token)

    def test_access_token_cannot_be_used_to_refresh(self, db, make_user, tokens):
        user = make_user("mia")
        pair = tokens.rotate_tokens(db, user.id)

        with pytest.raises(UnauthorizedError):
            tokens.refresh(db, pair.access_token)

    def test_concurrent_rotation_loses_compare_and_swap(self, db, make_user, tokens, store, monkeypatch):
        user = make_user("noah")
        pair = tokens.rotate_tokens(db, user.id)
        original_swap = store.swap_refresh_token

        def racing_swap(session, user_id, expected, new_token):
            # Another request rotates between our comparison and our write.
            store.set_refresh_token(session, user_id, "winner-token")
            return original_swap(session, user_id, expected, new_token)

        monkeypatch.setattr(store, "swap_refresh_token", racing_swap)

        with pytest.raises(UnauthorizedError):
            tokens.refresh(db, pair.refresh_token)
        assert store.find_by_id(db, user.id).refresh_token == "winner-token"


class TestPasswords:

    def test_token_service_owns_hash_and_verify(self, tokens):
        hashed = tokens.hash_password("s3cret")

        assert tokens.verify_password("s3cret", hashed)
        assert not tokens.verify_password("other", hashed)
