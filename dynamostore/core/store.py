"""
DynamoDB-backed session store.

Session values live in DynamoDB, one item per session ID. The cookie only
carries the signed session ID. A store is built once and shared across
requests; it holds the DynamoDB client and the codecs.
"""

import base64
import logging
import time
from typing import Any, Mapping, Optional, Union

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import Response

from dynamostore.core.config import Settings, StoreConfig
from dynamostore.core.exceptions import (
    ConfigurationError,
    CookieDecodeError,
    DynamoStoreError,
    SessionDeleteError,
    SessionNotFoundError,
    SessionSaveError,
)
from dynamostore.core.sessions import CookieOptions, Session, SessionRegistry, set_session_cookie
from dynamostore.core.utils.codecs import (
    Codec,
    MaxAgeCodec,
    codecs_from_pairs,
    decode_multi,
    encode_multi,
    generate_random_key,
)
from dynamostore.db.client import create_dynamodb_client
from dynamostore.db.init_db import create_table_if_not_exists
from dynamostore.db.models.session_record import SessionRecord

logger = logging.getLogger(__name__)

SESSION_ID_BYTES = 32


def generate_session_id() -> str:
    """Random 256-bit token, base32 encoded without padding."""
    return base64.b32encode(generate_random_key(SESSION_ID_BYTES)).decode("ascii").rstrip("=")


def _short(session_id: str) -> str:
    # Never log a full session ID
    return f"{session_id[:8]}..." if session_id else "<unset>"


class DynamoStore:
    """Stores sessions in DynamoDB and session IDs in signed cookies."""

    def __init__(
        self,
        config: Union[StoreConfig, Mapping[str, Any], None] = None,
        *key_pairs: Optional[bytes],
        client: Any = None,
    ):
        """
        Build the store and make sure its table exists.

        Args:
            config: StoreConfig or an option bag (table, read_capacity,
                write_capacity, region, endpoint, max_age, ttl_enabled).
                Missing or wrongly typed options use their defaults.
            *key_pairs: Signing/encryption keys as (hash key, block key) pairs
            client: Optional pre-built DynamoDB client

        Raises:
            ConfigurationError: If a capacity option is malformed, no key is
                given, or the DynamoDB client cannot be created
            ProvisioningError: If the table cannot be described or created
        """
        if not isinstance(config, StoreConfig):
            config = StoreConfig.from_mapping(config)

        self.config = config
        self.table = config.table
        self.ttl_enabled = config.ttl_enabled
        self.codecs: list[Codec] = list(codecs_from_pairs(*key_pairs))
        self.options = CookieOptions(path="/", max_age=config.max_age)

        if client is None:
            try:
                client = create_dynamodb_client(config.region, config.endpoint)
            except (ValueError, BotoCoreError) as e:
                logger.error(f"Error creating DynamoDB client: {e}", extra={
                    "region": config.region,
                    "error_type": type(e).__name__,
                })
                raise ConfigurationError(
                    f"Cannot create DynamoDB client for region {config.region}: {e}"
                ) from e
        self.client = client

        create_table_if_not_exists(
            self.client,
            self.table,
            config.read_capacity,
            config.write_capacity,
            self.ttl_enabled,
        )

        self.max_age(config.max_age)

        logger.info(
            "Session store ready",
            extra={"table": self.table, "region": config.region, "ttl_enabled": self.ttl_enabled},
        )

    @classmethod
    def from_settings(cls, settings: Settings, client: Any = None) -> "DynamoStore":
        """Build a store from application settings"""
        if settings.uses_default_secret_key and not settings.dev_mode:
            logger.warning(
                "Signing session cookies with the built-in default secret key; "
                "set DYNAMOSTORE_SECRET_KEY before deploying"
            )
        store = cls(settings.store_options(), *settings.key_pairs(), client=client)
        store.options.secure = settings.cookie_secure
        return store

    def get(self, request: Request, name: str) -> Session:
        """
        Return the session for ``name``, registered on the request.

        Repeated calls for the same name within one request return the same
        Session instance.
        """
        return SessionRegistry.for_request(request).get(self, name)

    def new(self, request: Request, name: str) -> Session:
        """
        Return a fresh session for ``name`` without registering it.

        If the request carries a valid cookie for an existing, unexpired
        record, the session is populated and ``is_new`` is False. Any
        failure to decode or load yields an empty new session.
        """
        session = Session(name=name, store=self, options=self.options.copy())

        cookie = request.cookies.get(name)
        if cookie is None:
            return session

        try:
            session_id = decode_multi(name, cookie, self.codecs)
        except CookieDecodeError as e:
            logger.warning(f"Discarding session cookie {name}: {e}")
            return session

        if not isinstance(session_id, str) or not session_id:
            logger.warning(f"Discarding session cookie {name}: no session ID")
            return session

        session.id = session_id
        try:
            self._load(session)
            session.is_new = False
        except (DynamoStoreError, ClientError, BotoCoreError) as e:
            logger.info(f"Starting new session {name}: could not load {_short(session_id)} ({e})")
            session.values = {}

        return session

    def save(self, request: Request, response: Response, session: Session) -> None:
        """
        Persist the session and set its cookie on ``response``.

        A non-positive ``options.max_age`` deletes the record and clears the
        cookie. The record write happens before the cookie is set; if
        encoding the cookie fails afterwards the record stays written.

        Raises:
            SessionSaveError: If the record cannot be written
            SessionDeleteError: If the record cannot be deleted
            CookieEncodeError: If the values or the session ID cannot be encoded
        """
        if session.options.max_age <= 0:
            self._delete(session)
            set_session_cookie(response, session.name, "", session.options)
            return

        if not session.id:
            session.id = generate_session_id()

        self._save(session)

        encoded = encode_multi(session.name, session.id, self.codecs)
        set_session_cookie(response, session.name, encoded, session.options)

    def max_age(self, age: int) -> None:
        """
        Set the default max age for new sessions and the codecs' age ceiling.

        Individual sessions can be deleted by setting
        ``session.options.max_age = -1`` and saving.
        """
        self.options.max_age = age

        for codec in self.codecs:
            if isinstance(codec, MaxAgeCodec):
                codec.max_age(age)

    def _save(self, session: Session) -> None:
        data = encode_multi(session.name, session.values, self.codecs)

        now = int(time.time())
        ttl = None
        if self.ttl_enabled and session.options.max_age > 0:
            ttl = now + session.options.max_age
        record = SessionRecord(id=session.id, data=data, modified_at=now, ttl=ttl)

        try:
            self.client.put_item(TableName=self.table, Item=record.to_item())
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to save session {_short(session.id)}: {e}", extra={
                "error_type": type(e).__name__,
            })
            raise SessionSaveError(f"Failed to save session to table {self.table}") from e

        logger.debug(f"Saved session {_short(session.id)}")

    def _load(self, session: Session) -> None:
        response = self.client.get_item(
            TableName=self.table,
            Key=SessionRecord.key(session.id),
            ConsistentRead=True,
        )

        item = response.get("Item")
        if not item:
            raise SessionNotFoundError(session.id)

        try:
            record = SessionRecord.from_item(item)
        except ValidationError as e:
            raise CookieDecodeError("Stored session record is malformed") from e

        # TTL deletion is eventual; an expired record may still be returned
        if record.is_expired(time.time()):
            raise SessionNotFoundError(session.id)

        values = decode_multi(session.name, record.data, self.codecs)
        if not isinstance(values, dict):
            raise CookieDecodeError("Stored session data is not a mapping")
        session.values = values

    def _delete(self, session: Session) -> None:
        # Never saved, so there is nothing to remove
        if not session.id:
            return

        try:
            self.client.delete_item(TableName=self.table, Key=SessionRecord.key(session.id))
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to delete session {_short(session.id)}: {e}", extra={
                "error_type": type(e).__name__,
            })
            raise SessionDeleteError(f"Failed to delete session from table {self.table}") from e

        logger.debug(f"Deleted session {_short(session.id)}")

    def __repr__(self) -> str:
        return f"DynamoStore(table={self.table!r}, codecs={len(self.codecs)})"


def save_sessions(request: Request, response: Response) -> None:
    """Save every session registered on ``request`` via ``DynamoStore.get``"""
    SessionRegistry.for_request(request).save_all(response)
