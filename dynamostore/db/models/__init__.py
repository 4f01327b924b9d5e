from dynamostore.db.models.session_record import SessionRecord

__all__ = ["SessionRecord"]
