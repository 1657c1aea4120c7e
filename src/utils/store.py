from dataclasses import dataclass
from typing import Any, Dict, Optional

import boto3
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import BotoCoreError, ClientError

from utils.errors import StoreUnavailable
from utils.logger import get_logger

logger = get_logger("store")

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


@dataclass(frozen=True)
class UpdateResult:
    """
    applied=True  -> the guard held at write time and new_fields were written.
    applied=False -> precondition failed; `current` is the stored document as the
                     failed write saw it, or None when no document exists.
    """

    applied: bool
    current: Optional[Dict[str, Any]] = None


def _from_item(item: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not item:
        return None
    return {k: _deserializer.deserialize(v) for k, v in item.items()}


class DynamoDocumentStore:
    """
    Document store over DynamoDB tables. A collection is a table name and every
    table is keyed by a single string attribute (`key_attr`).
    """

    def __init__(self, client=None, key_attr: str = "external_id", region_name: Optional[str] = None):
        self._client = client or boto3.client("dynamodb", region_name=region_name)
        self.key_attr = key_attr

    def _key(self, key: str) -> Dict[str, Any]:
        return {self.key_attr: {"S": key}}

    def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        try:
            resp = self._client.get_item(
                TableName=collection,
                Key=self._key(key),
                ConsistentRead=True,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("store.get_failed", extra={"table": collection, "key": key, "error": str(e)})
            raise StoreUnavailable(str(e)) from e
        return _from_item(resp.get("Item"))

    def conditional_update(
        self,
        collection: str,
        key: str,
        expected: Dict[str, Any],
        new_fields: Dict[str, Any],
    ) -> UpdateResult:
        """
        Write `new_fields` only if every `expected` field holds its value at write
        time. The guard and the write are a single UpdateItem call, so two
        concurrent deliveries can never both observe the old value.
        """
        names = {"#k": self.key_attr}
        values: Dict[str, Any] = {}

        conditions = ["attribute_exists(#k)"]
        for i, (field, value) in enumerate(expected.items()):
            names[f"#e{i}"] = field
            values[f":e{i}"] = _serializer.serialize(value)
            conditions.append(f"#e{i} = :e{i}")

        assignments = []
        for i, (field, value) in enumerate(new_fields.items()):
            if value is None:
                continue
            names[f"#f{i}"] = field
            values[f":f{i}"] = _serializer.serialize(value)
            assignments.append(f"#f{i} = :f{i}")

        if not assignments:
            raise ValueError("conditional_update needs at least one non-null field")

        try:
            resp = self._client.update_item(
                TableName=collection,
                Key=self._key(key),
                UpdateExpression="SET " + ", ".join(assignments),
                ConditionExpression=" AND ".join(conditions),
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
                ReturnValuesOnConditionCheckFailure="ALL_OLD",
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return UpdateResult(applied=False, current=_from_item(e.response.get("Item")))
            logger.error(
                "store.update_failed",
                extra={"table": collection, "key": key, "error": str(e)},
            )
            raise StoreUnavailable(str(e)) from e
        except BotoCoreError as e:
            logger.error(
                "store.update_failed",
                extra={"table": collection, "key": key, "error": str(e)},
            )
            raise StoreUnavailable(str(e)) from e

        return UpdateResult(applied=True, current=_from_item(resp.get("Attributes")))
