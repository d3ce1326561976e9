import pytest

from Questporter.batch import AdventureBatch, BatchError


def test_from_dict_and_counts():
    batch = AdventureBatch.from_dict(
        {
            "toCreate": {"Actor": [{"_id": "A1"}, {"_id": "A2"}], "Scene": [{"_id": "S1"}]},
            "toUpdate": {"JournalEntry": [{"_id": "J1"}]},
        }
    )
    assert batch.document_count == 4
    assert [d["_id"] for d in batch.documents("Actor")] == ["A1", "A2"]
    assert list(batch.documents("Folder")) == []
    assert batch.to_dict()["documentCount"] == 4


def test_from_dict_tolerates_missing_collections():
    batch = AdventureBatch.from_dict({"toCreate": {"Actor": [{"_id": "A1"}]}})
    assert batch.to_update == {}


def test_documents_spans_both_collections():
    batch = AdventureBatch(to_create={"Actor": [{"_id": "A1"}]}, to_update={"Actor": [{"_id": "A2"}]})
    assert [d["_id"] for d in batch.documents("Actor")] == ["A1", "A2"]


@pytest.mark.parametrize(
    "to_create,to_update",
    [
        ({"Actor": [{"_id": "A1"}, {"_id": "A1"}]}, {}),
        ({"Actor": [{"_id": "A1"}]}, {"Actor": [{"_id": "A1"}]}),
    ],
)
def test_duplicate_documents_rejected(to_create, to_update):
    with pytest.raises(BatchError, match="A1"):
        AdventureBatch(to_create=to_create, to_update=to_update)


def test_same_id_in_different_types_is_allowed():
    batch = AdventureBatch(to_create={"Actor": [{"_id": "X"}], "Item": [{"_id": "X"}]})
    assert batch.document_count == 2
