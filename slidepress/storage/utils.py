from __future__ import annotations

import logging
from typing import Any

from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


def ensure_table_exists(resource: Any, table_name: str, key_schema: list[dict[str, str]], attribute_definitions: list[dict[str, str]], *, ttl_attribute: str | None = None, billing_mode: str = "PAY_PER_REQUEST") -> None:
  """Idempotently create a DynamoDB table and wait until it's active."""
  try:
    table = resource.create_table(TableName=table_name, KeySchema=key_schema, AttributeDefinitions=attribute_definitions, BillingMode=billing_mode)
    logger.info("Creating table %s...", table_name)
    table.wait_until_exists()
    logger.info("Table %s is now ACTIVE.", table_name)
  except ClientError as e:
    if e.response["Error"]["Code"] == "ResourceInUseException":
      logger.info("Table %s already exists.", table_name)
      return
    logger.error("Failed to create table %s: %s", table_name, e)
    raise

  # Only a freshly created table needs its TTL attribute switched on.
  if ttl_attribute:
    resource.meta.client.update_time_to_live(TableName=table_name, TimeToLiveSpecification={"Enabled": True, "AttributeName": ttl_attribute})
    logger.info("Enabled TTL on %s.%s", table_name, ttl_attribute)
