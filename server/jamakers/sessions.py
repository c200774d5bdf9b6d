"""
Server-side login sessions.

Supports an in-memory store for tests/local runs, a SQL table for
single-database deployments and Redis for production.
"""

from __future__ import annotations

import json
import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Protocol

import redis
from sqlalchemy import delete

from jamakers.db_postgres import PostgresDbClient, SessionRow


@dataclass
class SessionRecord:
    sid: str
    user_id: str
    expires_at: datetime
    data: dict = field(default_factory=dict)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.now(timezone.utc)) >= self.expires_at

    def as_dict(self) -> dict:
        return {"userId": self.user_id, "data": self.data}


class SessionStore(Protocol):
    """Minimal session interface used by the authentication layer."""

    def create(self, user_id: str, ttl_seconds: int, data: Optional[dict] = None) -> SessionRecord:
        ...

    def get(self, sid: str) -> Optional[SessionRecord]:
        ...

    def delete(self, sid: str) -> None:
        ...


def _new_session(user_id: str, ttl_seconds: int, data: Optional[dict]) -> SessionRecord:
    return SessionRecord(
        sid=secrets.token_urlsafe(32),
        user_id=user_id,
        expires_at=datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds),
        data=dict(data or {}),
    )


class InMemorySessionStore:
    """Process-local sessions. Expired entries are dropped when read."""

    def __init__(self):
        self.sessions: Dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def create(self, user_id: str, ttl_seconds: int, data: Optional[dict] = None) -> SessionRecord:
        record = _new_session(user_id, ttl_seconds, data)
        with self._lock:
            self.sessions[record.sid] = record
        return record

    def get(self, sid: str) -> Optional[SessionRecord]:
        with self._lock:
            record = self.sessions.get(sid)
            if record and record.is_expired():
                del self.sessions[sid]
                return None
            return record

    def delete(self, sid: str) -> None:
        with self._lock:
            self.sessions.pop(sid, None)


class DbSessionStore:
    """Sessions in the ``sessions`` table of the SQL store."""

    def __init__(self, db: PostgresDbClient):
        self.Session = db.Session

    def create(self, user_id: str, ttl_seconds: int, data: Optional[dict] = None) -> SessionRecord:
        record = _new_session(user_id, ttl_seconds, data)
        with self.Session() as session:
            session.add(
                SessionRow(sid=record.sid, sess=record.as_dict(), expire=record.expires_at)
            )
            session.commit()
        return record

    def get(self, sid: str) -> Optional[SessionRecord]:
        with self.Session() as session:
            row = session.get(SessionRow, sid)
            if not row:
                return None
            expires_at = row.expire
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            record = SessionRecord(
                sid=row.sid,
                user_id=row.sess.get("userId", ""),
                expires_at=expires_at,
                data=row.sess.get("data") or {},
            )
            if record.is_expired():
                session.delete(row)
                session.commit()
                return None
            return record

    def delete(self, sid: str) -> None:
        with self.Session() as session:
            session.execute(delete(SessionRow).where(SessionRow.sid == sid))
            session.commit()


@dataclass
class RedisSessionStore:
    """Redis-backed sessions; Redis expires keys on its own."""

    url: str
    prefix: str = "jamakers:sess:"

    def __post_init__(self):
        self.client = redis.Redis.from_url(self.url)

    def create(self, user_id: str, ttl_seconds: int, data: Optional[dict] = None) -> SessionRecord:
        record = _new_session(user_id, ttl_seconds, data)
        payload = {**record.as_dict(), "expiresAt": record.expires_at.isoformat()}
        self.client.setex(self.prefix + record.sid, ttl_seconds, json.dumps(payload))
        return record

    def get(self, sid: str) -> Optional[SessionRecord]:
        raw = self.client.get(self.prefix + sid)
        if raw is None:
            return None
        payload = json.loads(raw)
        return SessionRecord(
            sid=sid,
            user_id=payload["userId"],
            expires_at=datetime.fromisoformat(payload["expiresAt"]),
            data=payload.get("data") or {},
        )

    def delete(self, sid: str) -> None:
        self.client.delete(self.prefix + sid)
