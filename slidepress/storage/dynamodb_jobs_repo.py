"""Job store backed by a single-key DynamoDB table (``pk = JOB#<id>``)."""

from __future__ import annotations

import dataclasses
import logging
import os
import time
from collections.abc import Callable
from decimal import Decimal
from typing import Any

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError
from starlette.concurrency import run_in_threadpool

from slidepress.jobs.guardrails import enforce_item_size_guardrails, maybe_truncate_payload, sanitize_logs
from slidepress.jobs.models import JobRecord
from slidepress.storage.jobs_repo import JobAlreadyFinalizedError, JobsRepository
from slidepress.storage.utils import ensure_table_exists

logger = logging.getLogger(__name__)

_RECORD_FIELDS = frozenset(field.name for field in dataclasses.fields(JobRecord))
_LOCAL_HOSTS = ("localhost", "127.0.0.1")


def _serialize_for_dynamodb(obj: Any) -> Any:
  """boto3 refuses Python floats; store them as Decimal."""
  if isinstance(obj, dict):
    return {key: _serialize_for_dynamodb(value) for key, value in obj.items()}
  if isinstance(obj, list):
    return list(map(_serialize_for_dynamodb, obj))
  return Decimal(repr(obj)) if isinstance(obj, float) else obj


def _deserialize_from_dynamodb(obj: Any) -> Any:
  if isinstance(obj, dict):
    return {key: _deserialize_from_dynamodb(value) for key, value in obj.items()}
  if isinstance(obj, list):
    return list(map(_deserialize_from_dynamodb, obj))
  if isinstance(obj, Decimal):
    return float(obj) if obj != obj.to_integral_value() else int(obj)
  return obj


def _dynamodb_resource(region: str, endpoint_url: str | None, timeout_seconds: int) -> Any:
  credentials: dict[str, str] = {}
  # DynamoDB Local accepts any credentials but boto3 still requires some.
  is_local = endpoint_url is not None and any(host in endpoint_url for host in _LOCAL_HOSTS)
  if is_local and "AWS_ACCESS_KEY_ID" not in os.environ:
    credentials = {"aws_access_key_id": "local", "aws_secret_access_key": "local"}
  config = Config(connect_timeout=timeout_seconds, read_timeout=timeout_seconds)
  return boto3.session.Session().resource("dynamodb", region_name=region, endpoint_url=endpoint_url, config=config, **credentials)


class DynamoJobsRepository(JobsRepository):
  """Persist jobs to DynamoDB so pollers in other processes can see them."""

  def __init__(self, *, table_name: str, region: str, endpoint_url: str | None = None, timeout_seconds: int = 10, table: Any | None = None, clock: Callable[[], float] = time.time) -> None:
    self._clock = clock
    if table is None:
      resource = _dynamodb_resource(region, endpoint_url, timeout_seconds)
      ensure_table_exists(resource=resource, table_name=table_name, key_schema=[{"AttributeName": "pk", "KeyType": "HASH"}], attribute_definitions=[{"AttributeName": "pk", "AttributeType": "S"}], ttl_attribute="ttl")
      table = resource.Table(table_name)
    self._table = table

  async def put_job(self, record: JobRecord) -> None:
    item = enforce_item_size_guardrails(self._record_to_item(record))
    # Reject overwrites of terminal records atomically on the server side.
    condition = "attribute_not_exists(pk) OR #status = :processing"
    try:
      await run_in_threadpool(self._table.put_item, Item=item, ConditionExpression=condition, ExpressionAttributeNames={"#status": "status"}, ExpressionAttributeValues={":processing": "processing"})
    except ClientError as exc:
      if exc.response["Error"]["Code"] == "ConditionalCheckFailedException":
        raise JobAlreadyFinalizedError(record.job_id) from exc
      raise

  async def get_job(self, job_id: str) -> JobRecord | None:
    response = await run_in_threadpool(self._table.get_item, Key={"pk": self._job_key(job_id)}, ConsistentRead=True)
    if "Item" not in response:
      return None
    found = self._item_to_record(response["Item"])
    # Native TTL deletion lags by up to days, so expired items are hidden here.
    if found.ttl is not None and found.ttl <= self._clock():
      logger.debug("Job %s is past its ttl; reporting not found", job_id)
      return None
    return found

  async def delete_job(self, job_id: str) -> None:
    await run_in_threadpool(self._table.delete_item, Key={"pk": self._job_key(job_id)})

  def _job_key(self, job_id: str) -> str:
    return f"JOB#{job_id}"

  def _record_to_item(self, record: JobRecord) -> dict[str, Any]:
    attributes = dataclasses.asdict(record)
    attributes["logs"] = sanitize_logs(record.logs)
    attributes["data"] = maybe_truncate_payload(record.data)
    attributes["artifacts"] = maybe_truncate_payload(record.artifacts)
    # DynamoDB has no use for null attributes; absent reads back as None.
    stored = {name: _serialize_for_dynamodb(value) for name, value in attributes.items() if value is not None}
    return {"pk": self._job_key(record.job_id), **stored}

  def _item_to_record(self, item: dict[str, Any]) -> JobRecord:
    values = {name: value for name, value in _deserialize_from_dynamodb(item).items() if name in _RECORD_FIELDS}
    values["progress"] = int(values.get("progress") or 0)
    values.setdefault("message", "")
    return JobRecord(**values)
