"""
Convex-backed implementation of the marketplace store.

Talks to a Convex deployment through its HTTP function API. Each table is a
Convex module exposing ``get``, ``list``, ``create``, ``update`` and
``remove`` (for example ``rfqResponses:list``). Documents are stored in
camelCase with timestamps as epoch milliseconds.
"""

from __future__ import annotations

import logging
from dataclasses import fields
from datetime import datetime, timezone
from typing import Any, Optional

import requests
from dacite import Config, from_dict
from pydantic.alias_generators import to_camel

from jamakers.db import TABLES, BaseDbClient
from shared.json_utils import convert_keys

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30  # seconds


class ConvexError(Exception):
    """Raised when a Convex function call reports an error."""


def _decode_datetime(value: Any) -> Any:
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return value


def _encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return int(value.timestamp() * 1000)
    return value


DACITE_CONFIG = Config(type_hooks={datetime: _decode_datetime}, check_types=False)


class ConvexDbClient(BaseDbClient):
    """Remote store on a Convex deployment."""

    backend_name = "convex"

    def __init__(self, url: str, session: Optional[requests.Session] = None):
        if not url:
            raise ValueError("CONVEX_URL is required for ConvexDbClient")
        self.url = url.rstrip("/")
        self.http = session or requests.Session()

    def query(self, path: str, args: dict) -> Any:
        return self._call("query", path, args)

    def mutation(self, path: str, args: dict) -> Any:
        return self._call("mutation", path, args)

    def _call(self, kind: str, path: str, args: dict) -> Any:
        response = self.http.post(
            f"{self.url}/api/{kind}",
            json={"path": path, "args": args, "format": "json"},
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        payload = response.json()
        if payload.get("status") != "success":
            message = payload.get("errorMessage") or "unknown error"
            logger.warning("Convex %s %s failed: %s", kind, path, message)
            raise ConvexError(f"{path}: {message}")
        return payload.get("value")

    def _to_record(self, table: str, document: Optional[dict]) -> Optional[Any]:
        if not document:
            return None
        return from_dict(
            data_class=TABLES[table],
            data=convert_keys(document, "camel_to_snake"),
            config=DACITE_CONFIG,
        )

    def _to_document(self, record: Any) -> dict:
        values = {
            f.name: _encode_value(getattr(record, f.name))
            for f in fields(record)
            if getattr(record, f.name) is not None
        }
        return convert_keys(values, "snake_to_camel")

    def _get(self, table: str, record_id: str) -> Optional[Any]:
        return self._to_record(table, self.query(f"{to_camel(table)}:get", {"id": record_id}))

    def _select(self, table: str, **equals: Any) -> list:
        filters = convert_keys(
            {key: _encode_value(value) for key, value in equals.items()},
            "snake_to_camel",
        )
        documents = self.query(f"{to_camel(table)}:list", {"filters": filters}) or []
        records = [self._to_record(table, document) for document in documents]
        return sorted(
            records,
            key=lambda record: record.created_at
            or datetime.min.replace(tzinfo=timezone.utc),
        )

    def _insert(self, table: str, record: Any) -> Any:
        document = self.mutation(
            f"{to_camel(table)}:create", self._to_document(record)
        )
        return self._to_record(table, document) or record

    def _replace(self, table: str, record: Any) -> Any:
        data = self._to_document(record)
        data.pop("id", None)
        document = self.mutation(
            f"{to_camel(table)}:update", {"id": record.id, "data": data}
        )
        return self._to_record(table, document) or record

    def _delete(self, table: str, record_id: str) -> bool:
        return bool(self.mutation(f"{to_camel(table)}:remove", {"id": record_id}))
