"""Provision the sessions table if it does not exist yet"""

import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError, WaiterError

from dynamostore.core.exceptions import ProvisioningError
from dynamostore.db.models.session_record import ID_ATTRIBUTE, TTL_ATTRIBUTE

logger = logging.getLogger("dynamostore.database")

TABLE_WAIT_DELAY_SECONDS = 5
TABLE_WAIT_MAX_ATTEMPTS = 25


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


def create_table_if_not_exists(
    client: Any,
    table: str,
    read_capacity: int,
    write_capacity: int,
    ttl_enabled: bool,
) -> bool:
    """
    Create the sessions table unless it already exists.

    An existing table is left as it is; its schema and throughput are not
    reconciled with the arguments.

    Args:
        client: Low-level DynamoDB client
        table: Table name
        read_capacity: Provisioned read units for a new table
        write_capacity: Provisioned write units for a new table
        ttl_enabled: Whether to enable expiry on the ``ttl`` attribute of a new table

    Returns:
        True if the table was created, False if it already existed

    Raises:
        ProvisioningError: If the table cannot be described, created or configured
    """
    try:
        client.describe_table(TableName=table)
        logger.debug(f"Table {table} already exists")
        return False
    except ClientError as e:
        if _error_code(e) != "ResourceNotFoundException":
            logger.error(f"Failed to describe table {table}: {e}")
            raise ProvisioningError(f"Failed to describe table {table}") from e
    except BotoCoreError as e:
        logger.error(f"Failed to reach DynamoDB while describing table {table}: {e}")
        raise ProvisioningError(f"Failed to describe table {table}") from e

    configure_table(client, table, read_capacity, write_capacity, ttl_enabled)
    return True


def configure_table(
    client: Any,
    table: str,
    read_capacity: int,
    write_capacity: int,
    ttl_enabled: bool,
) -> None:
    """Create the table, wait for it to become active and optionally enable TTL"""
    logger.info(
        "Creating sessions table",
        extra={
            "table": table,
            "read_capacity": read_capacity,
            "write_capacity": write_capacity,
            "ttl_enabled": ttl_enabled,
        },
    )

    try:
        client.create_table(
            TableName=table,
            AttributeDefinitions=[{"AttributeName": ID_ATTRIBUTE, "AttributeType": "S"}],
            KeySchema=[{"AttributeName": ID_ATTRIBUTE, "KeyType": "HASH"}],
            ProvisionedThroughput={
                "ReadCapacityUnits": read_capacity,
                "WriteCapacityUnits": write_capacity,
            },
        )

        client.get_waiter("table_exists").wait(
            TableName=table,
            WaiterConfig={
                "Delay": TABLE_WAIT_DELAY_SECONDS,
                "MaxAttempts": TABLE_WAIT_MAX_ATTEMPTS,
            },
        )

        if ttl_enabled:
            client.update_time_to_live(
                TableName=table,
                TimeToLiveSpecification={
                    "AttributeName": TTL_ATTRIBUTE,
                    "Enabled": True,
                },
            )
    except (ClientError, WaiterError, BotoCoreError) as e:
        logger.error(f"Error provisioning table {table}: {e}", extra={
            "error_type": type(e).__name__,
        })
        raise ProvisioningError(f"Failed to provision table {table}") from e

    logger.info(f"Table {table} is active")
