"""
Helpers shared by the route modules.
"""

from __future__ import annotations

import logging
from typing import Optional, TypeVar

from fastapi import HTTPException

from jamakers.db import DbClient
from shared.json_utils import to_json
from shared.records import Project
from shared.types import ProjectStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")


def found(record: Optional[T], message: str) -> T:
    """Return ``record`` or raise a 404 with ``message``."""
    if record is None:
        raise HTTPException(status_code=404, detail=message)
    return record


def project_progress(project: Project) -> int:
    milestones = project.milestones or []
    if not milestones:
        return 100 if project.status == ProjectStatus.COMPLETED.value else 0
    completed = sum(1 for milestone in milestones if milestone.get("completed"))
    return round(100 * completed / len(milestones))


def project_json(project: Project) -> dict:
    data = to_json(project)
    data["progress"] = project_progress(project)
    return data


def notify(
    db: DbClient,
    user_id: Optional[str],
    kind: str,
    title: str,
    message: str,
    action_url: Optional[str] = None,
) -> None:
    if not user_id:
        return
    db.create_notification(
        {
            "user_id": user_id,
            "type": kind,
            "title": title,
            "message": message,
            "action_url": action_url,
        }
    )
    logger.debug("Notified %s: %s", user_id, title)
