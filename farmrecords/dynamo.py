"""
farmrecords/dynamo.py

DynamoDB-backed record client.

Layout:
- one table per collection, named DYNAMO_TABLE_PREFIX + collection, hash key "Id" (N)
- a counters table (DYNAMO_COUNTERS_TABLE, hash key "collection") handing out
  integer ids with an atomic ADD
- reference fields (farmId_c) are stored as the referenced integer id and
  expanded to {"Id": ..., "Name": ...} on the way out

Envelope-level problems (bad where clause, ClientError on a scan) become
{"success": False, "message": ...}; a failure on one record of a batch write
is reported in that record's result entry and the rest of the batch goes on.
"""
from __future__ import annotations

import functools
import logging
import operator
from decimal import Decimal
from typing import Any, Dict, List, Optional, Set

import boto3
from botocore.exceptions import ClientError
from boto3.dynamodb.conditions import Attr

from . import settings
from .mappers import iso_timestamp, parse_int
from .record_client import RecordClient, failure

logger = logging.getLogger(__name__)

# reference field -> collection it points at
REFERENCES = {"farmId_c": "farms_c"}

_OPERATORS = {
    "EqualTo": lambda attr, values: attr.is_in(values) if len(values) > 1 else attr.eq(values[0]),
    "NotEqualTo": lambda attr, values: attr.ne(values[0]),
    "LessThan": lambda attr, values: attr.lt(values[0]),
    "LessThanOrEqualTo": lambda attr, values: attr.lte(values[0]),
    "GreaterThan": lambda attr, values: attr.gt(values[0]),
    "GreaterThanOrEqualTo": lambda attr, values: attr.gte(values[0]),
    "Contains": lambda attr, values: attr.contains(values[0]),
}


def _to_dynamo_decimal(obj: Any) -> Any:
    """Convert floats -> Decimal and recurse into lists/dicts."""
    if isinstance(obj, dict):
        return {k: _to_dynamo_decimal(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_to_dynamo_decimal(v) for v in obj]
    if isinstance(obj, float):
        return Decimal(str(obj))
    return obj


def _from_dynamo_decimal(obj: Any) -> Any:
    """Decimal -> int when integral, float otherwise; recurse into lists/dicts."""
    if isinstance(obj, dict):
        return {k: _from_dynamo_decimal(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_from_dynamo_decimal(v) for v in obj]
    if isinstance(obj, Decimal):
        return int(obj) if obj == obj.to_integral_value() else float(obj)
    return obj


def build_condition(where: Optional[List[Dict[str, Any]]]):
    """AND together the where clauses as a boto3 condition (None if there are none)."""
    conditions = []
    for clause in where or []:
        name = clause.get("FieldName")
        op = _OPERATORS.get(clause.get("Operator"))
        if not name or op is None:
            raise ValueError(f"Unsupported where clause: {clause}")
        values = list(clause.get("Values") or [])
        if not values:
            raise ValueError(f"Where clause on {name} has no values")
        conditions.append(op(Attr(name), _to_dynamo_decimal(values)))
    if not conditions:
        return None
    return functools.reduce(operator.and_, conditions)


def _selected_names(fields: Optional[List[Dict[str, Any]]]) -> Optional[Set[str]]:
    if not fields:
        return None
    return {f["field"]["Name"] for f in fields if f.get("field")}


def _named_references(fields: Optional[List[Dict[str, Any]]]) -> Set[str]:
    return {f["field"]["Name"] for f in fields or [] if f.get("field") and f.get("referenceField")}


class DynamoRecordClient(RecordClient):
    def __init__(self, resource=None, table_prefix: Optional[str] = None,
                 counters_table: Optional[str] = None, references: Optional[Dict[str, str]] = None):
        self._resource = resource
        self.table_prefix = settings.DYNAMO_TABLE_PREFIX if table_prefix is None else table_prefix
        self.counters_table = counters_table or settings.DYNAMO_COUNTERS_TABLE
        self.references = REFERENCES if references is None else references

    # ----- Dynamo resource / helpers -----
    def resource(self):
        if self._resource is None:
            self._resource = boto3.resource(
                "dynamodb", region_name=settings.AWS_REGION, endpoint_url=settings.DYNAMO_ENDPOINT_URL
            )
        return self._resource

    def table_name(self, collection: str) -> str:
        return f"{self.table_prefix}{collection}"

    def _table(self, collection: str):
        return self.resource().Table(self.table_name(collection))

    def _next_id(self, collection: str) -> int:
        resp = self.resource().Table(self.counters_table).update_item(
            Key={"collection": collection},
            UpdateExpression="ADD next_id :one",
            ExpressionAttributeValues={":one": 1},
            ReturnValues="UPDATED_NEW",
        )
        return int(resp["Attributes"]["next_id"])

    def _reference_name(self, collection: str, record_id: int, lookups: Dict) -> Optional[str]:
        key = (collection, record_id)
        if key not in lookups:
            try:
                item = self._table(collection).get_item(Key={"Id": record_id}).get("Item")
                lookups[key] = item.get("Name") if item else None
            except ClientError as e:
                logger.debug("Reference lookup failed for %s/%s: %s", collection, record_id, e)
                lookups[key] = None
        return lookups[key]

    def _present(self, item: Dict[str, Any], fields: Optional[List[Dict[str, Any]]],
                 lookups: Dict) -> Dict[str, Any]:
        """Project an item to the requested fields and expand its references."""
        names = _selected_names(fields)
        with_name = _named_references(fields) if fields else set(self.references)
        record = {k: v for k, v in _from_dynamo_decimal(item).items() if names is None or k in names}
        for source, target in self.references.items():
            ref = parse_int(record.get(source))
            if ref is None:
                continue
            expanded: Dict[str, Any] = {"Id": ref}
            if source in with_name:
                expanded["Name"] = self._reference_name(target, ref, lookups)
            record[source] = expanded
        return record

    # ----- record client -----
    def fetch_records(self, collection, fields, where=None):
        try:
            table = self._table(collection)
            scan_kwargs = {}
            condition = build_condition(where)
            if condition is not None:
                scan_kwargs["FilterExpression"] = condition
            items = []
            start_key = None
            while True:
                if start_key:
                    scan_kwargs["ExclusiveStartKey"] = start_key
                resp = table.scan(**scan_kwargs)
                items.extend(resp.get("Items", []) or [])
                start_key = resp.get("LastEvaluatedKey")
                if not start_key:
                    break
            logger.debug("Scanned and found %d records in %s", len(items), collection)
            items.sort(key=lambda it: it.get("Id", 0))
            lookups: Dict = {}
            return {"success": True, "data": [self._present(it, fields, lookups) for it in items], "message": ""}
        except ClientError as e:
            logger.exception("DynamoDB ClientError fetching %s: %s", collection, e)
            return failure(str(e))
        except Exception as e:
            logger.exception("Unexpected error fetching %s: %s", collection, e)
            return failure(str(e))

    def get_record_by_id(self, collection, record_id, fields):
        try:
            item = self._table(collection).get_item(Key={"Id": int(record_id)}).get("Item")
            if not item:
                return {"success": True, "data": None, "message": f"Record {record_id} not found in {collection}"}
            return {"success": True, "data": self._present(item, fields, {}), "message": ""}
        except ClientError as e:
            logger.exception("DynamoDB ClientError getting %s/%s: %s", collection, record_id, e)
            return failure(str(e))
        except Exception as e:
            logger.exception("Unexpected error getting %s/%s: %s", collection, record_id, e)
            return failure(str(e))

    def create_record(self, collection, records):
        try:
            table = self._table(collection)
            results = []
            lookups: Dict = {}
            for record in records:
                try:
                    now = iso_timestamp()
                    item = {k: v for k, v in record.items() if v is not None and k != "Id"}
                    item.update(Id=self._next_id(collection), CreatedOn=now, ModifiedOn=now)
                    table.put_item(Item=_to_dynamo_decimal(item))
                    logger.info("Created %s record %s", collection, item["Id"])
                    results.append({"success": True, "data": self._present(item, None, lookups), "message": ""})
                except ClientError as e:
                    logger.exception("DynamoDB ClientError creating %s record: %s", collection, e)
                    results.append({"success": False, "data": None, "message": str(e)})
            return {"success": True, "results": results, "message": ""}
        except Exception as e:
            logger.exception("Unexpected error creating %s records: %s", collection, e)
            return failure(str(e))

    def update_record(self, collection, records):
        try:
            table = self._table(collection)
            results = []
            lookups: Dict = {}
            for record in records:
                record_id = parse_int(record.get("Id"))
                if record_id is None:
                    results.append({"success": False, "data": None, "message": "Record is missing its Id"})
                    continue
                try:
                    existing = table.get_item(Key={"Id": record_id}).get("Item")
                    if not existing:
                        results.append({"success": False, "data": None,
                                        "message": f"Record {record_id} not found in {collection}"})
                        continue
                    item = dict(record)
                    item.update(Id=record_id, CreatedOn=existing.get("CreatedOn"), ModifiedOn=iso_timestamp())
                    item = {k: v for k, v in item.items() if v is not None}
                    # full replace; the condition catches a delete between the read and the write
                    table.put_item(Item=_to_dynamo_decimal(item), ConditionExpression=Attr("Id").exists())
                    logger.info("Updated %s record %s", collection, record_id)
                    results.append({"success": True, "data": self._present(item, None, lookups), "message": ""})
                except ClientError as e:
                    logger.exception("DynamoDB ClientError updating %s/%s: %s", collection, record_id, e)
                    results.append({"success": False, "data": None, "message": str(e)})
            return {"success": True, "results": results, "message": ""}
        except Exception as e:
            logger.exception("Unexpected error updating %s records: %s", collection, e)
            return failure(str(e))

    def delete_record(self, collection, record_ids):
        try:
            table = self._table(collection)
            results = []
            for record_id in record_ids:
                try:
                    table.delete_item(Key={"Id": int(record_id)}, ConditionExpression=Attr("Id").exists())
                    logger.info("Deleted %s record %s", collection, record_id)
                    results.append({"success": True, "data": {"Id": record_id}, "message": ""})
                except ClientError as e:
                    if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                        message = f"Record {record_id} not found in {collection}"
                        logger.info("Delete skipped, %s/%s does not exist", collection, record_id)
                    else:
                        message = str(e)
                        logger.exception("DynamoDB ClientError deleting %s/%s: %s", collection, record_id, e)
                    results.append({"success": False, "data": None, "message": message})
            return {"success": True, "results": results, "message": ""}
        except Exception as e:
            logger.exception("Unexpected error deleting %s records: %s", collection, e)
            return failure(str(e))
