import pytest

from core.dataset_store import DatasetStore


@pytest.fixture
def store(tmp_path):
    return DatasetStore(str(tmp_path / "datasets"))


@pytest.fixture
def upload(tmp_path):
    path = tmp_path / "upload.csv"
    path.write_text("Final Placement,Action\nClerk,CREATE\n", encoding="utf-8")
    return path


def test_nothing_saved_initially(store) -> None:
    assert store.path("risk") is None
    assert store.info() == {"risk": None, "role": None}


def test_save_keeps_a_copy_with_metadata(store, upload) -> None:
    entry = store.save("role", str(upload), "roles.csv", saved_by="analyst")
    upload.unlink()

    with open(store.path("role"), encoding="utf-8") as f:
        assert f.read().startswith("Final Placement")
    assert entry["filename"] == "roles.csv"
    assert store.info()["role"]["saved_by"] == "analyst"


def test_save_replaces_previous_file(store, upload, tmp_path) -> None:
    store.save("risk", str(upload), "first.csv")
    workbook = tmp_path / "second.xlsx"
    workbook.write_bytes(b"PK")

    store.save("risk", str(workbook), "second.xlsx")

    assert store.path("risk").endswith("risk.xlsx")
    assert not (tmp_path / "datasets" / "risk.csv").exists()


def test_index_survives_new_instance(store, upload, tmp_path) -> None:
    store.save("risk", str(upload), "risk.csv")

    assert DatasetStore(str(tmp_path / "datasets")).info()["risk"]["filename"] == "risk.csv"


def test_clear(store, upload) -> None:
    store.save("risk", str(upload), "risk.csv")

    assert store.clear("risk")
    assert not store.clear("risk")
    assert store.path("risk") is None


def test_unknown_kind_rejected(store, upload) -> None:
    with pytest.raises(ValueError):
        store.save("users", str(upload), "users.csv")
