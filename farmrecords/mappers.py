"""
farmrecords/mappers.py

Translation between backend records (``cropType_c``, ``farmId_c`` ...) and the
UI-facing records the services return (``cropType``, ``farmId`` ...).

Each entity is described once by an `Entity`: its collection, the field
mirrored into the backend's generic ``Name`` label, and a table of `Field`s.
Coercion is permissive on purpose: numbers are parsed from the leading digits
of strings, unparseable values fall back to the field's write default.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

TEXT = "text"
NUMBER = "number"
REFERENCE = "reference"
FLAG = "flag"

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_int(value: Any) -> Optional[int]:
    """Leading-integer parse: ``"12abc" -> 12``, ``3.9 -> 3``, junk -> None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        return int(value) if math.isfinite(value) else None
    match = _INT_PREFIX.match(str(value))
    return int(match.group(1)) if match else None


def parse_float(value: Any) -> Optional[Union[int, float]]:
    """Leading-number parse: ``"12.5kg" -> 12.5``; ints pass through unchanged."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        return float(value) if math.isfinite(value) else None
    match = _FLOAT_PREFIX.match(str(value))
    return float(match.group(1)) if match else None


def as_utc(moment: Optional[datetime] = None) -> datetime:
    """Aware UTC datetime; None means now, naive values are taken as UTC."""
    if moment is None:
        return datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def iso_timestamp(moment: Optional[datetime] = None) -> str:
    """UTC timestamp as ``2026-10-19T08:30:00.000Z``."""
    moment = as_utc(moment)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO date or datetime into an aware UTC datetime. Date-only values
    are midnight UTC, naive datetimes are taken as UTC. Returns None on junk.
    """
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    return as_utc(moment)


def reference_id(value: Any) -> str:
    """``{"Id": 3, "Name": "North"} -> "3"``; absent reference -> ``""``."""
    if isinstance(value, Mapping):
        value = value.get("Id")
    if value is None or isinstance(value, bool) or value == "":
        return ""
    return str(value)


@dataclass(frozen=True)
class Field:
    name: str
    source: str
    kind: str = TEXT
    # plain value or zero-argument callable, evaluated per write
    default: Union[Any, Callable[[], Any]] = ""

    def write_default(self) -> Any:
        if self.kind == REFERENCE:
            return None
        if self.kind == FLAG and self.default == "":
            return False
        if self.kind == NUMBER and self.default == "":
            return 0
        return self.default() if callable(self.default) else self.default

    def to_persisted(self, data: Mapping[str, Any]) -> Any:
        value = data.get(self.name)
        if self.kind == NUMBER:
            return parse_float(value) or self.write_default()
        if self.kind == REFERENCE:
            # 0 is not a valid backend id
            return parse_int(value) or None
        if self.kind == FLAG:
            # only an absent key falls back; an explicit falsy value is written as False
            if self.name not in data:
                return self.write_default()
            return bool(value)
        return value or self.write_default()


@dataclass(frozen=True)
class Entity:
    collection: str
    label: str
    fields: Tuple[Field, ...]
    singular: str
    plural: str

    def field(self, name: str) -> Field:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)

    def source_of(self, name: str) -> str:
        return self.field(name).source

    def field_selection(self) -> List[Dict[str, Any]]:
        selection = [{"field": {"Name": "Id"}}, {"field": {"Name": "Name"}}]
        for f in self.fields:
            entry: Dict[str, Any] = {"field": {"Name": f.source}}
            if f.kind == REFERENCE:
                entry["referenceField"] = {"field": {"Name": "Name"}}
            selection.append(entry)
        selection.append({"field": {"Name": "CreatedOn"}})
        return selection

    def to_domain(self, raw: Mapping[str, Any]) -> Dict[str, Any]:
        if not isinstance(raw, Mapping):
            raise TypeError(f"{self.singular} record must be a mapping, got {type(raw).__name__}")
        record: Dict[str, Any] = {"Id": raw.get("Id")}
        for f in self.fields:
            value = raw.get(f.source)
            record[f.name] = reference_id(value) if f.kind == REFERENCE else value
        record["createdAt"] = raw.get("CreatedOn")
        return record

    def to_persisted(self, data: Mapping[str, Any], record_id: Any = None) -> Dict[str, Any]:
        """
        Build the full backend payload for a create (no record_id) or a
        full-replace update. Fields missing from `data` take their write
        default, never a previously stored value.
        """
        data = data or {}
        payload: Dict[str, Any] = {}
        if record_id is not None:
            payload["Id"] = parse_int(record_id)
        for f in self.fields:
            payload[f.source] = f.to_persisted(data)
        payload["Name"] = payload[self.source_of(self.label)]
        return payload
