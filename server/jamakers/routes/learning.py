"""
Training courses and the downloadable resource library.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Response

from jamakers.auth import Principal, require_authenticated
from jamakers.db import DbClient
from jamakers.dependencies import get_db_client
from jamakers.routes.common import found
from shared.json_utils import to_json
from shared.records import CourseDetail

router = APIRouter()


def course_detail_json(detail: CourseDetail) -> dict:
    """A course with its modules inlined, each module with its lessons."""
    return {
        **to_json(detail.course),
        "modules": [
            {**to_json(entry.module), "lessons": to_json(entry.lessons)}
            for entry in detail.modules
        ],
    }


@router.get("/courses")
def list_courses(category: Optional[str] = None, db: DbClient = Depends(get_db_client)):
    return to_json(db.get_courses(category))


@router.get("/courses/{course_id}")
def get_course(course_id: str, db: DbClient = Depends(get_db_client)):
    detail = db.get_course_with_modules_and_lessons(course_id)
    return course_detail_json(found(detail, "Course not found"))


@router.post("/courses/{course_id}/enroll", status_code=201)
def enroll(
    course_id: str,
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    found(db.get_course(course_id), "Course not found")
    return to_json(db.enroll_in_course(principal.user_id, course_id))


@router.get("/courses/{course_id}/progress")
def course_progress(
    course_id: str,
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    return to_json(db.get_course_progress(principal.user_id, course_id))


@router.post("/lessons/{lesson_id}/complete")
def complete_lesson(
    lesson_id: str,
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    return to_json(db.mark_lesson_complete(principal.user_id, lesson_id))


@router.get("/enrollments")
def my_enrollments(
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    return to_json(db.get_user_enrollments(principal.user_id))


# Resources


@router.get("/resources")
def list_resources(category: Optional[str] = None, db: DbClient = Depends(get_db_client)):
    return to_json(db.get_resources(category))


@router.post("/resources/{resource_id}/view", status_code=204)
def record_resource_view(resource_id: str, db: DbClient = Depends(get_db_client)):
    db.increment_resource_view(resource_id)
    return Response(status_code=204)


@router.post("/resources/{resource_id}/download", status_code=204)
def record_resource_download(resource_id: str, db: DbClient = Depends(get_db_client)):
    db.increment_resource_download(resource_id)
    return Response(status_code=204)
