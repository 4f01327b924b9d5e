"""
Unit tests for the stored session record
"""

import pytest

from dynamostore.db.models.session_record import SessionRecord

pytestmark = pytest.mark.unit


def test_to_item_uses_attribute_values():
    record = SessionRecord(id="ABC", data="payload", modified_at=100, ttl=200)

    assert record.to_item() == {
        "id": {"S": "ABC"},
        "data": {"S": "payload"},
        "modified_at": {"N": "100"},
        "ttl": {"N": "200"},
    }


def test_ttl_omitted_when_unset():
    item = SessionRecord(id="ABC", data="payload", modified_at=100).to_item()
    assert "ttl" not in item


def test_from_item_converts_numbers():
    record = SessionRecord.from_item({
        "id": {"S": "ABC"},
        "data": {"S": "payload"},
        "modified_at": {"N": "100"},
        "ttl": {"N": "200"},
    })

    assert record.modified_at == 100
    assert isinstance(record.ttl, int)
    assert record.ttl == 200


@pytest.mark.parametrize("ttl,now,expired", [
    (None, 1000, False),
    (0, 1000, False),
    (999, 1000, True),
    (1000, 1000, True),
    (1001, 1000, False),
])
def test_is_expired(ttl, now, expired):
    record = SessionRecord(id="ABC", data="d", modified_at=1, ttl=ttl)
    assert record.is_expired(now) is expired


def test_key():
    assert SessionRecord.key("ABC") == {"id": {"S": "ABC"}}
