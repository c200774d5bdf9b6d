"""
Access control for stored objects.

Each object may carry a JSON sidecar ``<path>.acl.json`` describing its
owner, visibility and the users it has been shared with.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from shared.json_utils import convert_keys


class ObjectPermission(str, Enum):
    READ = "read"
    WRITE = "write"


class ObjectNotFoundError(Exception):
    def __init__(self, message: str = "Object not found"):
        super().__init__(message)


class ObjectAccessDeniedError(Exception):
    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


@dataclass
class ObjectAclPolicy:
    owner: str
    visibility: str = "private"
    allowed_users: List[str] = field(default_factory=list)


def _sidecar(object_path: Path) -> Path:
    return object_path.with_name(object_path.name + ".acl.json")


def get_object_acl_policy(object_path: Path) -> Optional[ObjectAclPolicy]:
    sidecar = _sidecar(Path(object_path))
    if not sidecar.is_file():
        return None
    data = convert_keys(json.loads(sidecar.read_text(encoding="utf-8")), "camel_to_snake")
    return ObjectAclPolicy(
        owner=data.get("owner", ""),
        visibility=data.get("visibility", "private"),
        allowed_users=list(data.get("allowed_users") or []),
    )


def set_object_acl_policy(object_path: Path, policy: ObjectAclPolicy) -> None:
    object_path = Path(object_path)
    if not object_path.is_file():
        raise ObjectNotFoundError(f"Object not found: {object_path}")
    payload = convert_keys(asdict(policy), "snake_to_camel")
    _sidecar(object_path).write_text(json.dumps(payload, indent=2), encoding="utf-8")


def can_access_object(
    user_id: Optional[str],
    object_path: Path,
    permission: ObjectPermission = ObjectPermission.READ,
) -> bool:
    if not Path(object_path).is_file():
        return False
    policy = get_object_acl_policy(object_path)
    if policy is None:
        # Objects without a policy are world-readable.
        return permission == ObjectPermission.READ
    if policy.visibility == "public" and permission == ObjectPermission.READ:
        return True
    if not user_id:
        return False
    if policy.owner == user_id:
        return True
    if user_id in policy.allowed_users:
        return permission == ObjectPermission.READ
    return False
