"""
Unit tests for sessions table bootstrap
"""

import pytest
from botocore.exceptions import EndpointConnectionError

from dynamostore.core.exceptions import ProvisioningError
from dynamostore.db.init_db import create_table_if_not_exists
from tests.utils.fakes import FakeDynamoDBClient, client_error, waiter_error

pytestmark = pytest.mark.unit


class TestCreateTableIfNotExists:

    def test_creates_missing_table(self):
        client = FakeDynamoDBClient()

        created = create_table_if_not_exists(client, "sessions", 3, 4, ttl_enabled=True)

        assert created is True
        assert client.operations() == ["describe_table", "create_table", "wait", "update_time_to_live"]

        spec = client.created["sessions"]
        assert spec["KeySchema"] == [{"AttributeName": "id", "KeyType": "HASH"}]
        assert spec["AttributeDefinitions"] == [{"AttributeName": "id", "AttributeType": "S"}]
        assert spec["ProvisionedThroughput"] == {"ReadCapacityUnits": 3, "WriteCapacityUnits": 4}
        assert client.ttl_specs["sessions"] == {"AttributeName": "ttl", "Enabled": True}

    def test_waits_for_table_exists(self):
        client = FakeDynamoDBClient()
        create_table_if_not_exists(client, "sessions", 5, 5, ttl_enabled=False)

        wait_call = dict(client.calls)["wait"]
        assert wait_call["name"] == "table_exists"
        assert wait_call["TableName"] == "sessions"

    def test_ttl_disabled_skips_ttl_update(self):
        client = FakeDynamoDBClient()

        create_table_if_not_exists(client, "sessions", 5, 5, ttl_enabled=False)

        assert "update_time_to_live" not in client.operations()
        assert "sessions" not in client.ttl_specs

    def test_existing_table_untouched(self):
        client = FakeDynamoDBClient(existing_tables=("sessions",))

        created = create_table_if_not_exists(client, "sessions", 50, 50, ttl_enabled=True)

        assert created is False
        assert client.operations() == ["describe_table"]

    def test_idempotent(self):
        client = FakeDynamoDBClient()

        assert create_table_if_not_exists(client, "sessions", 5, 5, True) is True
        assert create_table_if_not_exists(client, "sessions", 5, 5, True) is False
        assert client.operations().count("create_table") == 1


class TestBootstrapFailures:

    def test_describe_error_other_than_not_found(self):
        client = FakeDynamoDBClient()
        client.fail("describe_table", client_error("AccessDeniedException", "DescribeTable"))

        with pytest.raises(ProvisioningError) as exc_info:
            create_table_if_not_exists(client, "sessions", 5, 5, True)

        assert exc_info.value.__cause__.response["Error"]["Code"] == "AccessDeniedException"
        assert "create_table" not in client.operations()

    def test_unreachable_endpoint(self):
        client = FakeDynamoDBClient()
        client.fail("describe_table", EndpointConnectionError(endpoint_url="http://localhost:8000"))

        with pytest.raises(ProvisioningError):
            create_table_if_not_exists(client, "sessions", 5, 5, True)

    @pytest.mark.parametrize("operation", ["create_table", "update_time_to_live"])
    def test_create_or_ttl_failure(self, operation):
        client = FakeDynamoDBClient()
        client.fail(operation)

        with pytest.raises(ProvisioningError):
            create_table_if_not_exists(client, "sessions", 5, 5, True)

    def test_table_never_becomes_active(self):
        client = FakeDynamoDBClient()
        client.fail("wait", waiter_error())

        with pytest.raises(ProvisioningError):
            create_table_if_not_exists(client, "sessions", 5, 5, True)

        assert "update_time_to_live" not in client.operations()
