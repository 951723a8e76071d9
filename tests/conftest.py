from collections import defaultdict
from copy import deepcopy
from decimal import Decimal

import pytest
from botocore.exceptions import ClientError

from farmrecords.crops import CropService
from farmrecords.farms import FarmService
from farmrecords.finances import FinancialEntryService
from farmrecords.record_client import RecordClient, reset_record_client
from farmrecords.tasks import TaskService


def _clause_matches(record, clause):
    actual = record.get(clause["FieldName"])
    values = clause["Values"]
    if clause["Operator"] == "EqualTo":
        return actual in values
    if clause["Operator"] == "LessThanOrEqualTo":
        return actual is not None and actual <= values[0]
    raise AssertionError(f"operator not supported by the fake: {clause['Operator']}")


class InMemoryRecordClient(RecordClient):
    """Record backend stand-in speaking the envelope protocol."""

    def __init__(self):
        self.tables = defaultdict(dict)
        self.calls = []
        self.last_id = 0
        self.fail_message = None
        self.raise_error = None
        self.extra_failed_result = False

    def _guard(self, name, *args):
        self.calls.append((name,) + args)
        if self.raise_error is not None:
            raise self.raise_error
        if self.fail_message is not None:
            return {"success": False, "message": self.fail_message}
        return None

    def _results(self, results):
        if self.extra_failed_result:
            results.insert(0, {"success": False, "data": None, "message": "validation failed"})
        return {"success": True, "results": results, "message": ""}

    @staticmethod
    def _present(record):
        out = deepcopy(record)
        if isinstance(out, dict) and out.get("farmId_c") is not None:
            out["farmId_c"] = {"Id": out["farmId_c"], "Name": f"Farm {out['farmId_c']}"}
        return out

    def seed(self, collection, **record):
        self.last_id += 1
        record.setdefault("CreatedOn", "2026-01-01T00:00:00.000Z")
        self.tables[collection][self.last_id] = dict(record, Id=self.last_id)
        return self.last_id

    def fetch_records(self, collection, fields, where=None):
        failed = self._guard("fetch_records", collection, fields, where)
        if failed:
            return failed
        rows = [r for r in self.tables[collection].values() if all(_clause_matches(r, c) for c in where or [])]
        return {"success": True, "data": [self._present(r) for r in rows], "message": ""}

    def get_record_by_id(self, collection, record_id, fields):
        failed = self._guard("get_record_by_id", collection, record_id, fields)
        if failed:
            return failed
        record = self.tables[collection].get(record_id)
        return {"success": True, "data": self._present(record) if record else None, "message": ""}

    def create_record(self, collection, records):
        failed = self._guard("create_record", collection, records)
        if failed:
            return failed
        results = []
        for record in records:
            record_id = self.seed(collection, **record)
            results.append({"success": True, "data": self._present(self.tables[collection][record_id])})
        return self._results(results)

    def update_record(self, collection, records):
        failed = self._guard("update_record", collection, records)
        if failed:
            return failed
        results = []
        for record in records:
            existing = self.tables[collection].get(record["Id"])
            if existing is None:
                results.append({"success": False, "data": None, "message": "not found"})
                continue
            self.tables[collection][record["Id"]] = dict(record, CreatedOn=existing["CreatedOn"])
            results.append({"success": True, "data": self._present(self.tables[collection][record["Id"]])})
        return self._results(results)

    def delete_record(self, collection, record_ids):
        failed = self._guard("delete_record", collection, record_ids)
        if failed:
            return failed
        results = []
        for record_id in record_ids:
            removed = self.tables[collection].pop(record_id, None)
            results.append({"success": removed is not None, "data": None})
        return self._results(results)


@pytest.fixture(autouse=True)
def _no_global_client():
    reset_record_client()
    yield
    reset_record_client()


@pytest.fixture
def client():
    return InMemoryRecordClient()


@pytest.fixture
def crops(client):
    return CropService(client_getter=lambda: client)


@pytest.fixture
def farms(client):
    return FarmService(client_getter=lambda: client)


@pytest.fixture
def finances(client):
    return FinancialEntryService(client_getter=lambda: client)


@pytest.fixture
def tasks(client):
    return TaskService(client_getter=lambda: client)


# ----- fake DynamoDB resource -----
def _dynamo_value(value):
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: _dynamo_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_dynamo_value(v) for v in value]
    return value


def _conditional_failure(operation):
    return ClientError(
        {"Error": {"Code": "ConditionalCheckFailedException", "Message": "The conditional request failed"}},
        operation,
    )


def evaluate(condition, item):
    """Evaluate a boto3 condition object against a stored item."""
    expr = condition.get_expression()
    op, values = expr["operator"], expr["values"]
    if op == "AND":
        return all(evaluate(v, item) for v in values)
    if op == "OR":
        return any(evaluate(v, item) for v in values)
    if op == "NOT":
        return not evaluate(values[0], item)
    name = values[0].name
    if op == "attribute_exists":
        return name in item
    if op == "attribute_not_exists":
        return name not in item
    if name not in item:
        return False
    actual, expected = item[name], values[1] if len(values) > 1 else None
    if op == "=":
        return actual == expected
    if op == "<>":
        return actual != expected
    if op == "<":
        return actual < expected
    if op == "<=":
        return actual <= expected
    if op == ">":
        return actual > expected
    if op == ">=":
        return actual >= expected
    if op == "IN":
        return actual in expected
    if op == "contains":
        return expected in actual
    raise AssertionError(f"operator not supported by the fake: {op}")


class FakeTable:
    def __init__(self, name, key, page_size=2):
        self.name = name
        self.key = key
        self.items = {}
        self.page_size = page_size
        self.error = None

    def _check(self, operation):
        if self.error is not None:
            raise ClientError({"Error": {"Code": self.error, "Message": "boom"}}, operation)

    def get_item(self, Key):
        self._check("GetItem")
        item = self.items.get(Key[self.key])
        return {"Item": deepcopy(item)} if item is not None else {}

    def put_item(self, Item, ConditionExpression=None):
        self._check("PutItem")
        current = self.items.get(Item[self.key], {})
        if ConditionExpression is not None and not evaluate(ConditionExpression, current):
            raise _conditional_failure("PutItem")
        self.items[Item[self.key]] = _dynamo_value(Item)
        return {}

    def delete_item(self, Key, ConditionExpression=None):
        self._check("DeleteItem")
        current = self.items.get(Key[self.key], {})
        if ConditionExpression is not None and not evaluate(ConditionExpression, current):
            raise _conditional_failure("DeleteItem")
        self.items.pop(Key[self.key], None)
        return {}

    def update_item(self, Key, UpdateExpression, ExpressionAttributeValues, ReturnValues=None):
        self._check("UpdateItem")
        assert UpdateExpression == "ADD next_id :one"
        item = self.items.setdefault(Key[self.key], dict(Key))
        item["next_id"] = item.get("next_id", Decimal(0)) + Decimal(ExpressionAttributeValues[":one"])
        return {"Attributes": {"next_id": item["next_id"]}}

    def scan(self, FilterExpression=None, ExclusiveStartKey=None):
        self._check("Scan")
        self.scans = getattr(self, "scans", 0) + 1
        keys = sorted(self.items)
        start = keys.index(ExclusiveStartKey[self.key]) + 1 if ExclusiveStartKey else 0
        page = keys[start:start + self.page_size]
        items = [deepcopy(self.items[k]) for k in page]
        if FilterExpression is not None:
            items = [it for it in items if evaluate(FilterExpression, it)]
        resp = {"Items": items}
        if start + self.page_size < len(keys):
            resp["LastEvaluatedKey"] = {self.key: page[-1]}
        return resp


class FakeDynamoResource:
    def __init__(self, counters_table="record_counters"):
        self.counters_table = counters_table
        self.tables = {}

    def Table(self, name):
        if name not in self.tables:
            key = "collection" if name == self.counters_table else "Id"
            self.tables[name] = FakeTable(name, key)
        return self.tables[name]


@pytest.fixture
def dynamo_resource():
    return FakeDynamoResource()
