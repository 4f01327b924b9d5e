"""DynamoDB client factory."""

import logging
from typing import Any, Optional

import boto3
from botocore.config import Config

logger = logging.getLogger(__name__)


def create_dynamodb_client(region: str, endpoint: Optional[str] = None, **client_kwargs: Any):
    """
    Create a low-level DynamoDB client.

    Args:
        region: AWS region for the table
        endpoint: Optional endpoint override (e.g. a local DynamoDB instance)
        **client_kwargs: Extra arguments passed to ``boto3.session.Session.client``

    Returns:
        botocore DynamoDB client
    """
    session = boto3.session.Session(region_name=region)
    client_kwargs.setdefault("config", Config(retries={"mode": "standard"}))
    logger.debug(
        "Creating DynamoDB client",
        extra={"region": region, "endpoint": endpoint or "default"},
    )
    return session.client("dynamodb", endpoint_url=endpoint, **client_kwargs)
