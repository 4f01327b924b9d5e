"""DynamoDB-backed server-side session store with signed cookies."""

from dynamostore.core.config import Settings, StoreConfig
from dynamostore.core.exceptions import (
    ConfigurationError,
    CookieDecodeError,
    CookieEncodeError,
    DynamoStoreError,
    ProvisioningError,
    SessionDeleteError,
    SessionNotFoundError,
    SessionSaveError,
)
from dynamostore.core.sessions import CookieOptions, Session, SessionRegistry
from dynamostore.core.store import DynamoStore

__version__ = "1.0.0"

__all__ = [
    "ConfigurationError",
    "CookieDecodeError",
    "CookieEncodeError",
    "CookieOptions",
    "DynamoStore",
    "DynamoStoreError",
    "ProvisioningError",
    "Session",
    "SessionDeleteError",
    "SessionNotFoundError",
    "SessionRegistry",
    "SessionSaveError",
    "Settings",
    "StoreConfig",
]
