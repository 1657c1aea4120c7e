import json
import os
import threading

import pytest
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import ClientError

from utils.config import WebhookConfig
from utils.store import DynamoDocumentStore

EVENTS_DIR = os.path.join(os.path.dirname(__file__), "events")
TABLE = "payment-links-test"

_ser = TypeSerializer()
_de = TypeDeserializer()


def load_event(name):
    with open(os.path.join(EVENTS_DIR, name), "r", encoding="utf-8") as f:
        return json.load(f)


class StubDynamoDB:
    """
    In-memory stand-in for the low-level DynamoDB client.

    Understands just the expression shape DynamoDocumentStore emits:
    `#k` names the key attribute, `#eN = :eN` are guard conditions and
    `#fN = :fN` are assignments.
    """

    def __init__(self):
        self.tables = {}
        self.operations = []
        self.update_calls = 0
        self.applied_updates = 0
        self.fail_with = None
        # Called inside update_item before the condition is evaluated.
        self.before_condition = None
        self._lock = threading.Lock()

    def seed(self, table, doc, key_attr="external_id"):
        item = {k: _ser.serialize(v) for k, v in doc.items()}
        self.tables.setdefault(table, {})[doc[key_attr]] = item

    def doc(self, table, key):
        item = self.tables.get(table, {}).get(key)
        if item is None:
            return None
        return {k: _de.deserialize(v) for k, v in item.items()}

    def _maybe_fail(self, op):
        if self.fail_with is not None:
            raise ClientError({"Error": {"Code": self.fail_with, "Message": "stub failure"}}, op)

    def get_item(self, TableName, Key, ConsistentRead=False):
        self.operations.append("GetItem")
        self._maybe_fail("GetItem")
        (key_value,) = Key.values()
        item = self.tables.get(TableName, {}).get(key_value["S"])
        return {"Item": dict(item)} if item else {}

    def update_item(
        self,
        TableName,
        Key,
        UpdateExpression,
        ConditionExpression,
        ExpressionAttributeNames,
        ExpressionAttributeValues,
        ReturnValues=None,
        ReturnValuesOnConditionCheckFailure=None,
    ):
        self.operations.append("UpdateItem")
        self.update_calls += 1
        self._maybe_fail("UpdateItem")
        if self.before_condition is not None:
            self.before_condition()

        names, values = ExpressionAttributeNames, ExpressionAttributeValues
        key_value = Key[names["#k"]]["S"]

        # DynamoDB evaluates the condition and applies the write atomically.
        with self._lock:
            item = self.tables.setdefault(TableName, {}).get(key_value)
            ok = item is not None and all(
                item.get(names[alias]) == values[":" + alias[1:]]
                for alias in names
                if alias.startswith("#e")
            )
            if not ok:
                error = {"Error": {"Code": "ConditionalCheckFailedException", "Message": "The conditional request failed"}}
                if item is not None and ReturnValuesOnConditionCheckFailure == "ALL_OLD":
                    error["Item"] = dict(item)
                raise ClientError(error, "UpdateItem")

            for alias, field in names.items():
                if alias.startswith("#f"):
                    item[field] = values[":" + alias[1:]]
            self.applied_updates += 1
            return {"Attributes": dict(item)}


@pytest.fixture
def dynamo():
    return StubDynamoDB()


@pytest.fixture
def store(dynamo):
    return DynamoDocumentStore(client=dynamo)


@pytest.fixture
def config():
    return WebhookConfig(table_name=TABLE, webhook_secret="s3cr3t")


@pytest.fixture
def created_link(dynamo):
    doc = {
        "external_id": "plink_42",
        "status": "created",
        "amount": 500,
        "customer_name": "Asha",
        "customer_phone": "+919800000000",
        "bill_reference": "BILL-1001",
    }
    dynamo.seed(TABLE, doc)
    return doc
