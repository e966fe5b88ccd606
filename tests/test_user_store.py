import pytest
import yaml

from secretboard.errors import DuplicateUsernameError, StoreError, UnknownUserError
from secretboard.infra.user_store import UserStore


def test_create_local_persists_document(store):
    user = store.create_local("alice", "hash")
    raw = yaml.safe_load(store.path.read_text(encoding="utf-8"))
    assert raw["version"] == 1
    assert raw["users"][user.id]["username"] == "alice"
    assert UserStore(store.path).get(user.id) == user


def test_duplicate_username_rejected(store):
    store.create_local("alice", "hash")
    with pytest.raises(DuplicateUsernameError):
        store.create_local("alice", "other")
    assert len(store.all()) == 1


def test_find_or_create_by_google_id_reuses_record(store):
    first, created = store.find_or_create_by_google_id("g-1")
    again, created_again = store.find_or_create_by_google_id("g-1")
    assert created is True
    assert created_again is False
    assert again.id == first.id
    assert len(store.all()) == 1


def test_set_secret_overwrites(store):
    user = store.create_local("alice", "hash")
    store.set_secret(user.id, "hello")
    assert store.list_secrets() == ["hello"]
    store.set_secret(user.id, "world")
    assert store.list_secrets() == ["world"]


def test_list_secrets_skips_users_without_one(store):
    a = store.create_local("alice", "hash")
    store.create_local("bob", "hash")
    b, _ = store.find_or_create_by_google_id("g-1")
    store.set_secret(a.id, "first")
    store.set_secret(b.id, "second")
    assert store.list_secrets() == ["first", "second"]


def test_missing_file_is_empty_store(tmp_path):
    s = UserStore(tmp_path / "nope.yml")
    assert s.all() == []
    assert s.get_by_username("alice") is None


def test_corrupt_file_raises_store_error(tmp_path):
    p = tmp_path / "users.yml"
    p.write_text("users: [unclosed", encoding="utf-8")
    with pytest.raises(StoreError):
        UserStore(p).all()


def test_set_secret_for_unknown_user(store):
    with pytest.raises(UnknownUserError):
        store.set_secret("missing", "hello")
    assert store.list_secrets() == []
