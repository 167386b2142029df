import json
import threading

import pytest

from core.accounts import AccountStore
from core.errors import AccountError, AccountNotFoundError


@pytest.fixture
def store(tmp_path):
    return AccountStore(str(tmp_path / "accounts.json"))


def test_create_and_authenticate(store) -> None:
    user = store.create_user("analyst", "analyst@example.com", "s3cret",
                             permissions={"audit": {"roleAnalysis": True}})

    assert "password" not in user
    assert user["permissions"]["audit"]["roleAnalysis"] is True

    session = store.authenticate("analyst", "s3cret")
    assert session is not None
    assert session.permissions.audit_role_analysis
    assert session.user_id == user["id"]

    assert store.authenticate("analyst", "wrong") is None
    assert store.authenticate("nobody", "s3cret") is None


def test_passwords_are_stored_hashed(store) -> None:
    store.create_user("analyst", "analyst@example.com", "s3cret")

    saved = json.loads(store.path.read_text(encoding="utf-8"))
    assert saved["users"][0]["password"] != "s3cret"


def test_duplicate_username_rejected(store) -> None:
    store.create_user("analyst", "a@example.com", "pw")

    with pytest.raises(AccountError):
        store.create_user("analyst", "b@example.com", "pw")
    with pytest.raises(AccountError):
        store.create_user("other", "a@example.com", "pw")


def test_update_and_delete(store) -> None:
    user = store.create_user("analyst", "a@example.com", "pw")

    updated = store.update_user(user["id"], {"permissions": {"sorReview": True}, "password": "new"})
    assert updated["permissions"]["sorReview"] is True
    assert store.authenticate("analyst", "new") is not None

    store.delete_user(user["id"])
    assert store.list_users() == []
    with pytest.raises(AccountNotFoundError):
        store.get_user(user["id"])


def test_store_persists_between_instances(store) -> None:
    store.create_user("analyst", "a@example.com", "pw")

    reopened = AccountStore(str(store.path))

    assert [u["username"] for u in reopened.list_users()] == ["analyst"]


def test_ensure_admin_only_seeds_empty_store(store) -> None:
    assert store.ensure_admin("root", "root@example.com", "pw")
    assert not store.ensure_admin("root2", "root2@example.com", "pw")

    session = store.authenticate("root", "pw")
    assert session.is_admin
    assert session.permissions.super_user_access


def test_concurrent_admin_seeding_creates_one_admin(store) -> None:
    barrier = threading.Barrier(6)
    results = []

    def seed(i):
        barrier.wait()
        results.append(store.ensure_admin(f"root{i}", f"root{i}@example.com", "pw"))

    threads = [threading.Thread(target=seed, args=(i,)) for i in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count(True) == 1
    assert len(store.list_users()) == 1
