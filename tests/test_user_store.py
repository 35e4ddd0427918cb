"""Unit tests for auth/store.py -- UserStore against an in-memory SQLite DB."""

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.store import UserStore


@pytest.fixture
def store():
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


def _add(store: UserStore, name: str, email: str, mobile: str = "555") -> int:
    return store.create_user(User(name=name, email=email, mobile=mobile, hashed_password="$2b$12$hash"))


class TestCreateAndGet:
    def test_create_assigns_id_and_timestamps(self, store):
        uid = _add(store, "Ada", "ada@example.com")
        user = store.get_by_id(uid)
        assert user.name == "Ada"
        assert user.hashed_password == "$2b$12$hash"
        assert user.created_at
        assert user.created_at == user.updated_at

    def test_duplicate_email_raises_integrity_error(self, store):
        _add(store, "Ada", "ada@example.com")
        with pytest.raises(IntegrityError):
            _add(store, "Other Ada", "ada@example.com")

    def test_lookups_return_none_when_absent(self, store):
        assert store.get_by_id(99) is None
        assert store.get_by_email("nobody@example.com") is None
        assert store.get_by_mobile("000") is None

    def test_email_lookup_is_exact(self, store):
        _add(store, "Ada", "ada@example.com")
        assert store.get_by_email("ADA@example.com") is None

    def test_mobile_lookup_returns_first_registered(self, store):
        first = _add(store, "One", "one@example.com", mobile="777")
        _add(store, "Two", "two@example.com", mobile="777")
        assert store.get_by_mobile("777").id == first

    def test_list_users_ordered_by_id(self, store):
        ids = [_add(store, n, f"{n}@example.com") for n in ("a", "b", "c")]
        assert [u.id for u in store.list_users()] == ids


class TestFindOne:
    def test_all_given_fields_must_match(self, store):
        _add(store, "Ada", "ada@example.com", mobile="1")
        bob = _add(store, "Bob", "bob@example.com", mobile="1")
        assert store.find_one(mobile="1", name="Bob").id == bob
        assert store.find_one(mobile="1", name="Carol") is None

    def test_empty_and_none_values_are_ignored(self, store):
        uid = _add(store, "Ada", "ada@example.com")
        assert store.find_one(name="Ada", email="", mobile=None).id == uid

    def test_no_usable_filter_raises(self, store):
        with pytest.raises(ValueError):
            store.find_one(name="", email=None)

    def test_unknown_key_raises(self, store):
        with pytest.raises(ValueError):
            store.find_one(hashed_password="x")


class TestUpdateAndDelete:
    def test_update_changes_fields_and_stamps(self, store):
        uid = _add(store, "Ada", "ada@example.com")
        before = store.get_by_id(uid)
        assert store.update_user(uid, name="Ada L.", hashed_password="$2b$12$new") is True
        after = store.get_by_id(uid)
        assert after.name == "Ada L."
        assert after.hashed_password == "$2b$12$new"
        assert after.email == "ada@example.com"
        assert after.updated_at >= before.updated_at

    def test_update_missing_user_returns_false(self, store):
        assert store.update_user(99, name="x") is False

    def test_update_to_taken_email_raises(self, store):
        _add(store, "Ada", "ada@example.com")
        bob = _add(store, "Bob", "bob@example.com")
        with pytest.raises(IntegrityError):
            store.update_user(bob, email="ada@example.com")

    def test_update_rejects_immutable_fields(self, store):
        uid = _add(store, "Ada", "ada@example.com")
        with pytest.raises(ValueError):
            store.update_user(uid, created_at="1970-01-01")

    def test_delete(self, store):
        uid = _add(store, "Ada", "ada@example.com")
        assert store.delete_user(uid) is True
        assert store.get_by_id(uid) is None
        assert store.delete_user(uid) is False
