"""
Signing and encryption codecs for cookie values and stored session data.

Values are serialized to JSON, optionally encrypted with Fernet, then signed
and timestamped with itsdangerous. A codec is built from a hash key (signing)
and an optional block key (encryption).
"""

import base64
import json
import secrets
from typing import Any, Optional, Protocol, Sequence, runtime_checkable

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from itsdangerous import BadData, SignatureExpired, URLSafeTimedSerializer
from itsdangerous.encoding import base64_decode, base64_encode

from dynamostore.core.exceptions import ConfigurationError, CookieDecodeError, CookieEncodeError

DEFAULT_CODEC_MAX_AGE = 86400 * 30

_SALT_PREFIX = "dynamostore.cookie."
_HKDF_INFO = b"dynamostore block key"


@runtime_checkable
class Codec(Protocol):
    """Encodes values into web-safe strings and reverses the process."""

    def encode(self, name: str, value: Any) -> str:
        ...

    def decode(self, name: str, value: str) -> Any:
        ...


@runtime_checkable
class MaxAgeCodec(Protocol):
    """Codec capability: enforces an age ceiling on decoded values."""

    def max_age(self, age: int) -> None:
        ...


def generate_random_key(length: int = 32) -> bytes:
    """Return ``length`` cryptographically random bytes."""
    return secrets.token_bytes(length)


def _has_canonical_signature(value: str) -> bool:
    # The signature must re-encode to itself; non-zero pad bits are rejected
    _, sep, signature = value.rpartition(".")
    if not sep or not signature:
        return False
    try:
        return base64_encode(base64_decode(signature)).decode("ascii") == signature
    except BadData:
        return False


def _dump_exact(value: Any) -> str:
    """Serialize to JSON, refusing values that would not load back equal"""
    plain = json.dumps(value, separators=(",", ":"))
    if json.loads(plain) != value:
        # Non-string keys and tuples change shape in JSON
        raise ValueError("value does not survive JSON serialization unchanged")
    return plain


def _derive_fernet_key(block_key: bytes) -> bytes:
    """Derive a Fernet key from an arbitrary-length block key"""
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=None,
        info=_HKDF_INFO,
    )
    return base64.urlsafe_b64encode(hkdf.derive(block_key))


class SecureCookieCodec:
    """
    Signs, timestamps and optionally encrypts values.

    The cookie name is bound into the signature, so a value issued for one
    name does not verify under another.
    """

    def __init__(self, hash_key: bytes, block_key: Optional[bytes] = None):
        """
        Args:
            hash_key: Secret used to sign values; required
            block_key: Optional secret used to encrypt values before signing
        """
        if not hash_key:
            raise ConfigurationError("A hash key is required to sign session values")

        self._hash_key = hash_key
        self._cipher = Fernet(_derive_fernet_key(block_key)) if block_key else None
        self._max_age = DEFAULT_CODEC_MAX_AGE

    @property
    def encrypted(self) -> bool:
        return self._cipher is not None

    @property
    def age_ceiling(self) -> int:
        return self._max_age

    def max_age(self, age: int) -> None:
        """Set the age ceiling in seconds; ``age <= 0`` disables the check."""
        self._max_age = age

    def _serializer(self, name: str) -> URLSafeTimedSerializer:
        return URLSafeTimedSerializer(self._hash_key, salt=f"{_SALT_PREFIX}{name}")

    def encode(self, name: str, value: Any) -> str:
        """
        Serialize, encrypt and sign a value.

        Args:
            name: Cookie name the value is bound to
            value: JSON-serializable value. Keys must be strings and
                sequences lists, so the decoded value equals the original.

        Returns:
            URL-safe signed string

        Raises:
            CookieEncodeError: If the value cannot be serialized exactly or
                cannot be encrypted
        """
        try:
            plain = _dump_exact(value)
            payload: Any = value
            if self._cipher is not None:
                payload = self._cipher.encrypt(plain.encode("utf-8")).decode("ascii")
            return self._serializer(name).dumps(payload)
        except (TypeError, ValueError) as e:
            raise CookieEncodeError(f"Failed to encode value for {name!r}: {e}") from e

    def decode(self, name: str, value: str) -> Any:
        """
        Verify, decrypt and deserialize a value.

        Raises:
            CookieDecodeError: If the signature is invalid, the value is older
                than the age ceiling, or the payload is malformed
        """
        if not _has_canonical_signature(value):
            raise CookieDecodeError(f"Value for {name!r} failed signature verification")

        max_age = self._max_age if self._max_age > 0 else None
        try:
            payload = self._serializer(name).loads(value, max_age=max_age)
        except SignatureExpired as e:
            raise CookieDecodeError(f"Value for {name!r} has expired") from e
        except BadData as e:
            raise CookieDecodeError(f"Value for {name!r} failed signature verification") from e

        if self._cipher is None:
            return payload

        if not isinstance(payload, str):
            raise CookieDecodeError(f"Value for {name!r} is not an encrypted payload")
        try:
            plain = self._cipher.decrypt(payload.encode("ascii"))
            return json.loads(plain.decode("utf-8"))
        except (InvalidToken, UnicodeError, ValueError) as e:
            raise CookieDecodeError(f"Value for {name!r} could not be decrypted") from e

    def __repr__(self) -> str:
        return f"SecureCookieCodec(encrypted={self.encrypted}, max_age={self._max_age})"


def codecs_from_pairs(*keys: Optional[bytes]) -> list[SecureCookieCodec]:
    """
    Build codecs from keys given as (hash key, block key) pairs.

    A trailing hash key without a block key yields a signing-only codec.
    List the newest pair first; older pairs keep verifying existing cookies
    during key rotation.

    Raises:
        ConfigurationError: If no keys are given
    """
    if not keys:
        raise ConfigurationError("At least one signing key is required")

    codecs = []
    for i in range(0, len(keys), 2):
        hash_key = keys[i]
        block_key = keys[i + 1] if i + 1 < len(keys) else None
        codecs.append(SecureCookieCodec(hash_key, block_key))
    return codecs


def encode_multi(name: str, value: Any, codecs: Sequence[Codec]) -> str:
    """Encode with the first codec that succeeds."""
    if not codecs:
        raise CookieEncodeError("No codecs configured")

    errors = []
    for codec in codecs:
        try:
            return codec.encode(name, value)
        except CookieEncodeError as e:
            errors.append(str(e))
    raise CookieEncodeError("; ".join(errors))


def decode_multi(name: str, value: str, codecs: Sequence[Codec]) -> Any:
    """Decode with each codec in turn, returning the first success."""
    if not codecs:
        raise CookieDecodeError("No codecs configured")

    errors = []
    for codec in codecs:
        try:
            return codec.decode(name, value)
        except CookieDecodeError as e:
            errors.append(str(e))
    raise CookieDecodeError("; ".join(errors))
