"""Persisted representation of a session in DynamoDB."""

from decimal import Decimal
from typing import Any, Optional

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from pydantic import BaseModel, Field

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()

ID_ATTRIBUTE = "id"
TTL_ATTRIBUTE = "ttl"


class SessionRecord(BaseModel):
    """One item per session ID.

    ``data`` holds the signed (and optionally encrypted) session values.
    ``ttl`` is a unix timestamp; the record is logically absent once it passes.
    """

    id: str
    data: str
    modified_at: int
    ttl: Optional[int] = Field(default=None)

    def is_expired(self, now: float) -> bool:
        return self.ttl is not None and self.ttl > 0 and self.ttl <= now

    def to_item(self) -> dict[str, Any]:
        """Marshal into a DynamoDB attribute-value map"""
        return {
            key: _serializer.serialize(value)
            for key, value in self.model_dump(exclude_none=True).items()
        }

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "SessionRecord":
        """Unmarshal a DynamoDB attribute-value map"""
        values = {key: _deserializer.deserialize(value) for key, value in item.items()}
        for key, value in values.items():
            # Numbers come back as Decimal
            if isinstance(value, Decimal):
                values[key] = int(value)
        return cls.model_validate(values)

    @staticmethod
    def key(session_id: str) -> dict[str, Any]:
        """Primary-key attribute map for ``session_id``"""
        return {ID_ATTRIBUTE: {"S": session_id}}

    def __repr__(self) -> str:
        return f"<SessionRecord(id={self.id[:8]!r}..., modified_at={self.modified_at})>"
