"""
Exception hierarchy for the session store.

Construction and write-path errors propagate to callers. Read-path errors
(cookie decode, missing or expired records) are absorbed by the store and
turned into a fresh session.
"""


class DynamoStoreError(Exception):
    """Base class for all session store errors"""
    pass


class ConfigurationError(DynamoStoreError):
    """Raised when a store option cannot be parsed or a signing key is missing"""
    pass


class ProvisioningError(DynamoStoreError):
    """Raised when the backing table cannot be described, created or configured"""
    pass


class CookieEncodeError(DynamoStoreError):
    """Raised when a value cannot be serialized, encrypted or signed"""
    pass


class CookieDecodeError(DynamoStoreError):
    """Raised when a signed value is tampered, expired or malformed"""
    pass


class SessionNotFoundError(DynamoStoreError):
    """Raised when no live record exists for a session ID"""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__("Session not found")


class SessionSaveError(DynamoStoreError):
    """Raised when a session record cannot be written"""
    pass


class SessionDeleteError(DynamoStoreError):
    """Raised when a session record cannot be deleted"""
    pass
