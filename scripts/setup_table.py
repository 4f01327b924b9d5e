#!/usr/bin/env python3
"""
Table setup script for dynamostore.

Creates the sessions table from the current settings if it does not exist.
Safe to run repeatedly; an existing table is left untouched.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from dynamostore.core.config import settings
from dynamostore.core.exceptions import ProvisioningError
from dynamostore.core.logging_config import setup_logging
from dynamostore.db.client import create_dynamodb_client
from dynamostore.db.init_db import create_table_if_not_exists


def main() -> bool:
    """Provision the sessions table based on configuration"""
    setup_logging(log_level=settings.log_level, enable_json=False)

    print("dynamostore table setup")
    print("=" * 40)
    print(f"Table: {settings.table}")
    print(f"Region: {settings.region}")
    print(f"Endpoint: {settings.endpoint or 'default'}")
    print(f"TTL enabled: {settings.ttl_enabled}")

    client = create_dynamodb_client(settings.region, settings.endpoint)
    try:
        created = create_table_if_not_exists(
            client,
            settings.table,
            settings.read_capacity,
            settings.write_capacity,
            settings.ttl_enabled,
        )
    except ProvisioningError as e:
        print(f"Table setup failed: {e} ({e.__cause__})")
        return False

    if created:
        print("Table created successfully")
    else:
        print("Table already exists; nothing to do")
    return True


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
