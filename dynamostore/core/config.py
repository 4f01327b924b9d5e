"""
Store and application configuration using Pydantic.

``StoreConfig`` is the typed form of the option bag accepted by
``DynamoStore``. ``Settings`` reads process-level configuration from
environment variables or a .env file.
"""

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dynamostore.core.exceptions import ConfigurationError

DEFAULT_TABLE_NAME = "session-backend"
DEFAULT_READ_CAPACITY = 5
DEFAULT_WRITE_CAPACITY = 5
DEFAULT_REGION = "us-east-1"
DEFAULT_MAX_AGE = 86400 * 30
DEFAULT_TTL_ENABLED = True
DEFAULT_SECRET_KEY = "change-me-in-production"


class StoreConfig(BaseModel):
    """Construction options for a DynamoStore.

    Missing or wrongly typed values fall back to their defaults, with one
    exception: a capacity value that cannot be parsed as an integer is a
    configuration error.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    table: str = DEFAULT_TABLE_NAME
    read_capacity: int = DEFAULT_READ_CAPACITY
    write_capacity: int = DEFAULT_WRITE_CAPACITY
    region: str = DEFAULT_REGION
    endpoint: Optional[str] = None
    max_age: int = DEFAULT_MAX_AGE
    ttl_enabled: bool = DEFAULT_TTL_ENABLED

    @classmethod
    def from_mapping(cls, options: Optional[Mapping[str, Any]] = None, **overrides: Any) -> "StoreConfig":
        """
        Build a config from a loosely typed mapping.

        Args:
            options: Option bag keyed by option name (unknown keys are ignored)
            **overrides: Extra options that take precedence over ``options``

        Returns:
            Parsed StoreConfig

        Raises:
            ConfigurationError: If a capacity value is not an integer
        """
        values = dict(options or {})
        values.update(overrides)
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
            raise ConfigurationError(f"Invalid store option(s): {fields}") from e

    @field_validator("table", "region", mode="before")
    @classmethod
    def _non_empty_string(cls, value: Any, info: ValidationInfo) -> str:
        if isinstance(value, str) and value:
            return value
        return cls.model_fields[info.field_name].default

    @field_validator("endpoint", mode="before")
    @classmethod
    def _endpoint(cls, value: Any) -> Optional[str]:
        # Empty means the provider's default endpoint
        if isinstance(value, str) and value:
            return value
        return None

    @field_validator("read_capacity", "write_capacity", mode="before")
    @classmethod
    def _capacity(cls, value: Any, info: ValidationInfo) -> int:
        default = cls.model_fields[info.field_name].default
        if value is None:
            return default

        if isinstance(value, bool):
            raise ValueError(f"{info.field_name} must be an integer, got a boolean")
        if isinstance(value, int):
            parsed = value
        elif isinstance(value, float) and value.is_integer():
            parsed = int(value)
        elif isinstance(value, str):
            try:
                parsed = int(value.strip())
            except ValueError:
                raise ValueError(f"{info.field_name} must be an integer, got {value!r}") from None
        else:
            raise ValueError(f"{info.field_name} must be an integer, got {type(value).__name__}")

        return parsed if parsed > 0 else default

    @field_validator("max_age", mode="before")
    @classmethod
    def _max_age(cls, value: Any) -> int:
        if value is None or isinstance(value, bool):
            return DEFAULT_MAX_AGE
        try:
            parsed = int(value)
        except (TypeError, ValueError):
            return DEFAULT_MAX_AGE
        return parsed if parsed > 0 else DEFAULT_MAX_AGE

    @field_validator("ttl_enabled", mode="before")
    @classmethod
    def _ttl_enabled(cls, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        return DEFAULT_TTL_ENABLED


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="DYNAMOSTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = "dynamostore"
    debug: bool = False
    dev_mode: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # Logging
    log_level: str = "INFO"
    json_logging: bool = True

    # Backing table
    table: str = DEFAULT_TABLE_NAME
    read_capacity: int = DEFAULT_READ_CAPACITY
    write_capacity: int = DEFAULT_WRITE_CAPACITY
    region: str = DEFAULT_REGION
    endpoint: Optional[str] = None
    max_age: int = DEFAULT_MAX_AGE
    ttl_enabled: bool = DEFAULT_TTL_ENABLED

    # Cookie signing. ENCRYPTION_KEY is optional; without it values are
    # signed but not encrypted.
    secret_key: str = DEFAULT_SECRET_KEY
    encryption_key: Optional[str] = None
    cookie_name: str = "session"
    cookie_secure: bool = False

    def store_options(self) -> dict[str, Any]:
        """Return the option bag understood by StoreConfig.from_mapping"""
        return {
            "table": self.table,
            "read_capacity": self.read_capacity,
            "write_capacity": self.write_capacity,
            "region": self.region,
            "endpoint": self.endpoint,
            "max_age": self.max_age,
            "ttl_enabled": self.ttl_enabled,
        }

    def key_pairs(self) -> list[bytes]:
        """Return signing/encryption keys in (hash, block) order"""
        keys = [self.secret_key.encode("utf-8")]
        if self.encryption_key:
            keys.append(self.encryption_key.encode("utf-8"))
        return keys

    @property
    def uses_default_secret_key(self) -> bool:
        return self.secret_key == DEFAULT_SECRET_KEY


# Global settings instance
settings = Settings()
