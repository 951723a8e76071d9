"""
farmrecords/record_client.py

The record backend as seen by the entity services.

Every call returns an envelope dict:
    {"success": bool, "data": ..., "message": str}       fetch / get by id
    {"success": bool, "results": [...], "message": str}  create / update / delete

Each entry of "results" is itself {"success": bool, "data": record, "message": str}.

The services never import a concrete backend; they ask `get_record_client()`
for whatever was registered (or lazily built from settings) and treat a
None return as "client unavailable".
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from . import settings

logger = logging.getLogger(__name__)


class RecordClient:
    """Interface of the hosted record backend."""

    def fetch_records(self, collection: str, fields: List[Dict[str, Any]],
                      where: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        raise NotImplementedError

    def get_record_by_id(self, collection: str, record_id: int,
                         fields: List[Dict[str, Any]]) -> Dict[str, Any]:
        raise NotImplementedError

    def create_record(self, collection: str, records: List[Dict[str, Any]]) -> Dict[str, Any]:
        raise NotImplementedError

    def update_record(self, collection: str, records: List[Dict[str, Any]]) -> Dict[str, Any]:
        raise NotImplementedError

    def delete_record(self, collection: str, record_ids: List[int]) -> Dict[str, Any]:
        raise NotImplementedError


def failure(message: str) -> Dict[str, Any]:
    return {"success": False, "message": message}


# ----- client registry -----
_record_client: Optional[RecordClient] = None


def init_record_client(client: Optional[RecordClient]) -> Optional[RecordClient]:
    """Register the client used by every service (None makes it unavailable)."""
    global _record_client
    _record_client = client
    return _record_client


def reset_record_client() -> None:
    global _record_client
    _record_client = None


def get_record_client() -> Optional[RecordClient]:
    """
    Return the registered client, building the DynamoDB one on first use when
    RECORDS_BACKEND is "dynamodb". Returns None if no backend is configured or
    the backend could not be built; callers treat that as unavailable.
    """
    global _record_client
    if _record_client is not None:
        return _record_client
    if settings.RECORDS_BACKEND != "dynamodb":
        return None
    try:
        # lazy import keeps boto3 out of the import path for callers that register their own client
        from .dynamo import DynamoRecordClient

        _record_client = DynamoRecordClient()
        logger.info("Initialized DynamoDB record client (region=%s)", settings.AWS_REGION)
    except Exception as e:
        logger.exception("Could not initialize DynamoDB record client: %s", e)
        return None
    return _record_client
