"""
farmrecords/services.py

Generic CRUD service over one `Entity`.

Every public method is safe to call from the UI layer: failures of any kind
(no client, unsuccessful envelope, missing record, partial batch failure,
exceptions from the client) are logged and turned into [] / None / False.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from .mappers import Entity, parse_int
from .record_client import RecordClient, get_record_client

logger = logging.getLogger(__name__)


class EntityService:
    def __init__(self, entity: Entity,
                 client_getter: Callable[[], Optional[RecordClient]] = get_record_client):
        self.entity = entity
        self._client_getter = client_getter

    # ----- helpers -----
    def _client(self) -> Optional[RecordClient]:
        client = self._client_getter()
        if client is None:
            logger.error("Record client not available")
        return client

    def _map_all(self, response: Dict[str, Any], action: str) -> List[Dict[str, Any]]:
        if not response.get("success"):
            logger.error("Error %s: %s", action, response.get("message"))
            return []
        return [self.entity.to_domain(raw) for raw in response.get("data") or []]

    def _fetch(self, action: str, where: Optional[List[Dict[str, Any]]] = None) -> List[Dict[str, Any]]:
        try:
            client = self._client()
            if client is None:
                return []
            response = client.fetch_records(
                self.entity.collection, fields=self.entity.field_selection(), where=where
            )
            return self._map_all(response, action)
        except Exception as e:
            logger.exception("Error %s: %s", action, e)
            return []

    def _successful(self, response: Dict[str, Any], verb: str) -> Optional[List[Dict[str, Any]]]:
        """
        Split per-record results, logging any failures with their count.
        Returns the successful entries, or None when the envelope carried no results.
        """
        results = response.get("results")
        if results is None:
            return None
        successful = [r for r in results if r.get("success")]
        failed = [r for r in results if not r.get("success")]
        if failed:
            logger.error("Failed to %s %d %s: %s", verb, len(failed), self.entity.plural, failed)
        return successful

    def _write(self, verb: str, data: Dict[str, Any], record_id: Any = None) -> Optional[Dict[str, Any]]:
        action = f"{verb[:-1]}ing {self.entity.singular}"
        try:
            client = self._client()
            if client is None:
                return None
            payload = self.entity.to_persisted(data, record_id=record_id)
            send = client.create_record if verb == "create" else client.update_record
            response = send(self.entity.collection, records=[payload])
            if not response.get("success"):
                logger.error("Error %s: %s", action, response.get("message"))
                return None
            successful = self._successful(response, verb)
            if successful:
                return self.entity.to_domain(successful[0].get("data"))
            return None
        except Exception as e:
            logger.exception("Error %s: %s", action, e)
            return None

    # ----- operations -----
    def get_all(self) -> List[Dict[str, Any]]:
        return self._fetch(f"fetching {self.entity.plural}")

    def get_by_id(self, record_id: Any) -> Optional[Dict[str, Any]]:
        action = f"fetching {self.entity.singular}"
        try:
            client = self._client()
            if client is None:
                return None
            pk = parse_int(record_id)
            if pk is None:
                logger.error("Error %s: invalid id %r", action, record_id)
                return None
            response = client.get_record_by_id(self.entity.collection, pk, fields=self.entity.field_selection())
            if not response.get("success") or not response.get("data"):
                logger.error("Error %s: %s", action, response.get("message"))
                return None
            return self.entity.to_domain(response["data"])
        except Exception as e:
            logger.exception("Error %s: %s", action, e)
            return None

    def create(self, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self._write("create", data)

    def update(self, record_id: Any, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Full replace: fields missing from `data` are written as their defaults."""
        if parse_int(record_id) is None:
            logger.error("Error updating %s: invalid id %r", self.entity.singular, record_id)
            return None
        return self._write("update", data, record_id=record_id)

    def delete(self, record_id: Any) -> bool:
        action = f"deleting {self.entity.singular}"
        try:
            client = self._client()
            if client is None:
                return False
            pk = parse_int(record_id)
            if pk is None:
                logger.error("Error %s: invalid id %r", action, record_id)
                return False
            response = client.delete_record(self.entity.collection, record_ids=[pk])
            if not response.get("success"):
                logger.error("Error %s: %s", action, response.get("message"))
                return False
            successful = self._successful(response, "delete")
            if successful is None:
                return True
            return len(successful) > 0
        except Exception as e:
            logger.exception("Error %s: %s", action, e)
            return False


class FarmScopedService(EntityService):
    """Service for entities carrying a ``farmId`` reference."""

    def get_by_farm_id(self, farm_id: Any) -> List[Dict[str, Any]]:
        pk = parse_int(farm_id)
        if pk is None:
            logger.error("Error fetching %s by farm: invalid id %r", self.entity.plural, farm_id)
            return []
        where = [{
            "FieldName": self.entity.source_of("farmId"),
            "Operator": "EqualTo",
            "Values": [pk],
        }]
        return self._fetch(f"fetching {self.entity.plural} by farm", where=where)
