"""
Filesystem-backed object storage.

Public assets are looked up across a list of search directories and served
from ``/public-objects/<path>``. User uploads live under the private
directory and are served from ``/objects/<entity>`` subject to their ACL.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import AsyncIterator, Dict, List, Optional

from starlette.concurrency import run_in_threadpool

from jamakers.acl import (
    ObjectAccessDeniedError,
    ObjectAclPolicy,
    ObjectNotFoundError,
    ObjectPermission,
    can_access_object,
    get_object_acl_policy,
    set_object_acl_policy,
)

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 3600
UPLOAD_URL_TTL_SECONDS = 900
MAX_PENDING_UPLOADS = 10_000

CONTENT_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".json": "application/json",
}


def content_type_for(path: Path) -> str:
    return CONTENT_TYPES.get(Path(path).suffix.lower(), "application/octet-stream")


def _is_within(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


@dataclass
class UploadTarget:
    object_id: str
    upload_url: str
    public_url: str


@dataclass
class PendingUpload:
    """An issued upload id: who may complete it and the sharing options requested."""

    owner: str
    is_public: bool = False
    allowed_users: List[str] = field(default_factory=list)
    issued_at: float = field(default_factory=time.monotonic)

    def is_expired(self, ttl_seconds: float, now: Optional[float] = None) -> bool:
        return (now if now is not None else time.monotonic()) - self.issued_at > ttl_seconds


class ObjectStorageService:
    def __init__(
        self,
        public_search_paths: List[str],
        private_dir: str,
        upload_ttl_seconds: float = UPLOAD_URL_TTL_SECONDS,
        max_pending_uploads: int = MAX_PENDING_UPLOADS,
    ):
        self.public_search_paths = [Path(p).resolve() for p in dict.fromkeys(public_search_paths)]
        self.private_dir = Path(private_dir).resolve()
        self.upload_ttl_seconds = upload_ttl_seconds
        self.max_pending_uploads = max_pending_uploads
        self._pending: Dict[str, PendingUpload] = {}
        self._lock = threading.Lock()

    def ensure_dirs(self) -> None:
        for directory in [*self.public_search_paths, self.private_dir / "uploads"]:
            directory.mkdir(parents=True, exist_ok=True)

    def search_public_object(self, file_path: str) -> Optional[Path]:
        for search_path in self.public_search_paths:
            candidate = (search_path / file_path).resolve()
            if _is_within(candidate, search_path) and candidate.is_file():
                return candidate
        return None

    def get_object_entity_file(self, object_path: str) -> Path:
        if not object_path.startswith("/objects/"):
            raise ObjectNotFoundError()
        parts = object_path.lstrip("/").split("/")
        if len(parts) < 2 or object_path.endswith(".acl.json"):
            raise ObjectNotFoundError()
        entity_path = (self.private_dir / "/".join(parts[1:])).resolve()
        if not _is_within(entity_path, self.private_dir) or not entity_path.is_file():
            raise ObjectNotFoundError()
        return entity_path

    def get_object_entity_upload_url(
        self,
        owner: str,
        is_public: bool = False,
        allowed_users: Optional[List[str]] = None,
    ) -> UploadTarget:
        object_id = str(uuid.uuid4())
        with self._lock:
            self._prune_pending()
            self._pending[object_id] = PendingUpload(
                owner=owner, is_public=is_public, allowed_users=list(allowed_users or [])
            )
        return UploadTarget(
            object_id=object_id,
            upload_url=f"/api/objects/upload/{object_id}",
            public_url=f"/objects/uploads/{object_id}",
        )

    def _prune_pending(self) -> None:
        # Caller holds self._lock.
        now = time.monotonic()
        for object_id in [
            key
            for key, pending in self._pending.items()
            if pending.is_expired(self.upload_ttl_seconds, now)
        ]:
            del self._pending[object_id]
        while len(self._pending) >= self.max_pending_uploads:
            # Dicts keep insertion order, so this drops the oldest id.
            del self._pending[next(iter(self._pending))]

    def _claim_upload(self, object_id: str, owner: str) -> PendingUpload:
        """Consume an issued upload id. Each id accepts exactly one upload."""
        with self._lock:
            pending = self._pending.get(object_id)
            if pending is None or pending.is_expired(self.upload_ttl_seconds):
                self._pending.pop(object_id, None)
                raise ObjectNotFoundError(f"Unknown upload target: {object_id}")
            if pending.owner != owner:
                raise ObjectAccessDeniedError()
            return self._pending.pop(object_id)

    async def write_upload(
        self, object_id: str, owner: str, chunks: AsyncIterator[bytes]
    ) -> str:
        """Stream an upload body to disk and attach its ACL. Returns the object path."""
        try:
            uuid.UUID(object_id)
        except ValueError as exc:
            raise ObjectNotFoundError(f"Unknown upload target: {object_id}") from exc

        target = self.private_dir / "uploads" / object_id
        if target.exists() and not can_access_object(owner, target, ObjectPermission.WRITE):
            raise ObjectAccessDeniedError()
        pending = self._claim_upload(object_id, owner)

        await run_in_threadpool(target.parent.mkdir, parents=True, exist_ok=True)
        size = 0
        handle = await run_in_threadpool(open, target, "wb")
        try:
            async for chunk in chunks:
                await run_in_threadpool(handle.write, chunk)
                size += len(chunk)
        finally:
            await run_in_threadpool(handle.close)

        await run_in_threadpool(
            set_object_acl_policy,
            target,
            ObjectAclPolicy(
                owner=owner,
                visibility="public" if pending.is_public else "private",
                allowed_users=pending.allowed_users,
            ),
        )
        logger.info("Stored upload %s (%d bytes) for %s", object_id, size, owner)
        return f"/objects/uploads/{object_id}"

    def normalize_object_entity_path(self, raw_path: str) -> str:
        """Map an absolute private path or an upload URL to ``/objects/...``."""
        if raw_path.startswith("/api/objects/upload/"):
            return "/objects/uploads/" + raw_path.rsplit("/", 1)[-1]
        if raw_path.startswith("/objects/"):
            return raw_path
        absolute = Path(raw_path).resolve()
        if not _is_within(absolute, self.private_dir):
            return raw_path
        return "/objects/" + absolute.relative_to(self.private_dir).as_posix()

    def try_set_object_entity_acl_policy(
        self, raw_path: str, policy: ObjectAclPolicy
    ) -> str:
        normalized = self.normalize_object_entity_path(raw_path)
        if not normalized.startswith("/"):
            return normalized
        set_object_acl_policy(self.get_object_entity_file(normalized), policy)
        return normalized

    def can_access_object_entity(
        self,
        user_id: Optional[str],
        object_file: Path,
        permission: ObjectPermission = ObjectPermission.READ,
    ) -> bool:
        return can_access_object(user_id, object_file, permission)

    def download_headers(self, object_file: Path) -> Dict[str, str]:
        policy = get_object_acl_policy(object_file)
        scope = "public" if policy and policy.visibility == "public" else "private"
        return {
            "Content-Type": content_type_for(object_file),
            "Cache-Control": f"{scope}, max-age={CACHE_TTL_SECONDS}",
        }
