import pytest

from civicsense.config.mock_firestore import MockFirestore, MockQuery


@pytest.fixture
def db():
    store = MockFirestore()
    teams = store.collection("teams")
    teams.document("a").set({"name": "Alpha", "capacity": 8, "tags": ["roads"]})
    teams.document("b").set({"name": "Bravo", "capacity": 4, "tags": ["parks"]})
    teams.document("c").set({"name": "Charlie", "tags": []})
    return store


def test_where_and_order(db):
    teams = db.collection("teams")
    names = [d.to_dict()["name"] for d in teams.where("capacity", ">=", 4).order_by("capacity").stream()]
    assert names == ["Bravo", "Alpha"]

    tagged = teams.where("tags", "array_contains", "parks").get()
    assert [d.id for d in tagged] == ["b"]


def test_order_by_drops_documents_missing_field(db):
    docs = db.collection("teams").order_by("capacity", direction=MockQuery.DESCENDING).get()
    assert [d.id for d in docs] == ["a", "b"]


def test_limit_and_offset(db):
    docs = db.collection("teams").offset(1).limit(1).get()
    assert [d.id for d in docs] == ["b"]


def test_snapshots_are_copies(db):
    snapshot = db.collection("teams").document("a").get()
    snapshot.to_dict()["name"] = "changed"
    assert db.collection("teams").document("a").get().to_dict()["name"] == "Alpha"


def test_update_and_merge(db):
    ref = db.collection("teams").document("a")
    ref.update({"capacity": 9, "contact_info.phone": "555"})
    ref.set({"description": "Roads"}, merge=True)

    data = ref.get().to_dict()
    assert data["capacity"] == 9
    assert data["contact_info"] == {"phone": "555"}
    assert data["description"] == "Roads"

    with pytest.raises(LookupError):
        db.collection("teams").document("missing").update({"capacity": 1})


def test_delete_and_reset(db):
    db.collection("teams").document("a").delete()
    assert not db.collection("teams").document("a").get().exists
    db.reset()
    assert db.collections() == []
