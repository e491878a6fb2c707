"""
Unit tests for the credential store.
"""
import pytest

from app.core.errors import BadRequestError, ConflictError, NotFoundError
from app.models import User
from app.schemas import UserChangeset, UserCreateFields, UserPublic


def _fields(**overrides):
    values = {
        "username": "Alice",
        "email": "Alice@Example.com",
        "full_name": "  Alice Liddell ",
        "avatar": "/media/avatars/a.png",
        "cover_image": "/media/cover-images/a.png",
        "password": "plain-text-pw",
    }
    values.update(overrides)
    return UserCreateFields(**values)


class TestCreate:

    def test_create_hashes_password_and_normalizes_identity(self, db, store, hasher):
        user = store.create(db, _fields())

        assert user.username == "alice"
        assert user.email == "alice@example.com"
        assert user.full_name == "Alice Liddell"
        assert user.hashed_password != "plain-text-pw"
        assert hasher.verify("plain-text-pw", user.hashed_password)
        assert user.refresh_token is None

    def test_duplicate_username_conflicts_without_writing(self, db, store):
        store.create(db, _fields())

        with pytest.raises(ConflictError):
            store.create(db, _fields(email="other@example.com", username="ALICE"))

        assert db.query(User).count() == 1

    def test_duplicate_email_conflicts(self, db, store):
        store.create(db, _fields())

        with pytest.raises(ConflictError) as exc_info:
            store.create(db, _fields(username="bob", email=" alice@example.COM "))

        assert exc_info.value.status_code == 400
        assert db.query(User).count() == 1

    def test_public_projection_never_exposes_credentials(self, db, store):
        user = store.create(db, _fields())
        store.set_refresh_token(db, user.id, "some-refresh-token")

        payload = UserPublic.model_validate(user).model_dump(by_alias=True)

        assert "password" not in payload
        assert "hashedPassword" not in payload
        assert "refreshToken" not in payload
        assert payload["username"] == "alice"


class TestFinders:

    def test_find_by_username_or_email_matches_either(self, db, make_user, store):
        user = make_user("carol")

        assert store.find_by_username_or_email(db, username="CAROL").id == user.id
        assert store.find_by_username_or_email(db, email="carol@example.com").id == user.id
        assert store.find_by_username_or_email(db, username="nobody", email="carol@example.com").id == user.id
        assert store.find_by_username_or_email(db, username="nobody") is None
        assert store.find_by_username_or_email(db) is None


class TestUpdateFields:

    def test_unrelated_update_does_not_rehash(self, db, make_user, store):
        user = make_user("dave")
        original_hash = user.hashed_password

        updated = store.update_fields(db, user.id, UserChangeset(full_name="Dave Two"))

        assert updated.full_name == "Dave Two"
        assert updated.hashed_password == original_hash

    def test_untouched_fields_are_left_alone(self, db, make_user, store):
        user = make_user("erin")

        updated = store.update_fields(db, user.id, UserChangeset(avatar="/media/avatars/new.png"))

        assert updated.avatar == "/media/avatars/new.png"
        assert updated.username == "erin"
        assert updated.email == "erin@example.com"

    def test_set_password_rehashes(self, db, make_user, store, hasher, user_password):
        user = make_user("frank")
        original_hash = user.hashed_password

        updated = store.set_password(db, user.id, "brand-new-password")

        assert updated.hashed_password != original_hash
        assert updated.hashed_password != "brand-new-password"
        assert hasher.verify("brand-new-password", updated.hashed_password)
        assert not hasher.verify(user_password, updated.hashed_password)

    def test_identity_change_is_normalized(self, db, make_user, store):
        user = make_user("gina")

        updated = store.update_fields(db, user.id, UserChangeset(username=" Gina2 ", email="GINA2@EXAMPLE.COM"))

        assert updated.username == "gina2"
        assert updated.email == "gina2@example.com"

    def test_identity_change_to_taken_value_conflicts(self, db, make_user, store):
        make_user("hank")
        user = make_user("ivy")

        with pytest.raises(ConflictError):
            store.update_fields(db, user.id, UserChangeset(username="hank"))

    def test_keeping_own_identity_is_not_a_conflict(self, db, make_user, store):
        user = make_user("jack")

        updated = store.update_fields(
            db, user.id, UserChangeset(username="jack", email="jack@example.com", full_name="Jack")
        )

        assert updated.username == "jack"

    def test_blank_identity_rejected(self, db, make_user, store):
        user = make_user("kim")

        with pytest.raises(BadRequestError):
            store.update_fields(db, user.id, UserChangeset(email="   "))

    def test_unknown_user_not_found(self, db, store):
        import uuid

        with pytest.raises(NotFoundError):
            store.update_fields(db, uuid.uuid4(), UserChangeset(full_name="Ghost"))


class TestRefreshTokenPersistence:

    def test_set_and_clear(self, db, make_user, store):
        user = make_user("liam")

        store.set_refresh_token(db, user.id, "token-1")
        assert store.find_by_id(db, user.id).refresh_token == "token-1"

        store.clear_refresh_token(db, user.id)
        assert store.find_by_id(db, user.id).refresh_token is None

    def test_swap_only_replaces_expected_value(self, db, make_user, store):
        user = make_user("mia")
        store.set_refresh_token(db, user.id, "current")

        assert store.swap_refresh_token(db, user.id, "stale", "next") is False
        assert store.find_by_id(db, user.id).refresh_token == "current"

        assert store.swap_refresh_token(db, user.id, "current", "next") is True
        assert store.find_by_id(db, user.id).refresh_token == "next"

    def test_set_refresh_token_for_unknown_user(self, db, store):
        import uuid

        with pytest.raises(NotFoundError):
            store.set_refresh_token(db, uuid.uuid4(), "token")
