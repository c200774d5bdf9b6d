"""
Trust signals for manufacturers: reviews, certifications, portfolio items
and the admin verification queue.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from jamakers.auth import Principal, require_authenticated
from jamakers.authorization import (
    require_manufacturer,
    require_ownership,
    require_role,
    review_owner,
)
from jamakers.db import DbClient
from jamakers.dependencies import get_db_client
from jamakers.routes.common import found, notify
from jamakers.schemas import (
    CertificationCreate,
    PortfolioItemCreate,
    ReviewCreate,
    ReviewResponsePayload,
    VerificationDecision,
    VerificationRequestCreate,
)
from shared.json_utils import to_json
from shared.records import Manufacturer
from shared.types import UserRole, VerificationStatus

router = APIRouter()

require_admin = require_role(UserRole.ADMIN)


# Reviews


@router.post("/reviews", status_code=201)
def create_review(
    payload: ReviewCreate,
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    found(db.get_manufacturer(payload.manufacturer_id), "Manufacturer not found")
    review = db.create_review({**payload.values(), "reviewer_id": principal.user_id})
    return to_json(review)


@router.put(
    "/reviews/{review_id}/response",
    dependencies=[Depends(require_ownership(review_owner, "review_id"))],
)
def respond_to_review(
    review_id: str,
    payload: ReviewResponsePayload,
    db: DbClient = Depends(get_db_client),
):
    if not payload.response or not payload.response.strip():
        raise HTTPException(status_code=400, detail="Response text is required")
    updated = db.update_review_response(review_id, payload.response)
    return to_json(found(updated, "Review not found"))


# Certifications and portfolio


@router.post("/certifications", status_code=201)
def create_certification(
    payload: CertificationCreate,
    manufacturer: Manufacturer = Depends(require_manufacturer),
    db: DbClient = Depends(get_db_client),
):
    certification = db.create_certification(
        {**payload.values(), "manufacturer_id": manufacturer.id}
    )
    return to_json(certification)


@router.put("/certifications/{certification_id}/verify")
def verify_certification(
    certification_id: str,
    _: Principal = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    verified = db.verify_certification(certification_id)
    return to_json(found(verified, "Certification not found"))


@router.post("/portfolio", status_code=201)
def create_portfolio_item(
    payload: PortfolioItemCreate,
    manufacturer: Manufacturer = Depends(require_manufacturer),
    db: DbClient = Depends(get_db_client),
):
    item = db.create_portfolio_item({**payload.values(), "manufacturer_id": manufacturer.id})
    return to_json(item)


# Verification queue


@router.get("/verifications")
@router.get("/admin/verifications")
def pending_verifications(
    _: Principal = Depends(require_admin), db: DbClient = Depends(get_db_client)
):
    return to_json(db.get_pending_verifications())


@router.post("/verifications", status_code=201)
def request_verification(
    payload: VerificationRequestCreate,
    manufacturer: Manufacturer = Depends(require_manufacturer),
    db: DbClient = Depends(get_db_client),
):
    request = db.create_verification_request(
        {**payload.values(), "manufacturer_id": manufacturer.id}
    )
    return to_json(request)


def _decide(
    db: DbClient,
    request_id: str,
    status: VerificationStatus,
    admin: Principal,
    notes: Optional[str],
):
    request = db.update_verification_status(request_id, status.value, admin.user_id, notes)
    request = found(request, "Verification request not found")
    manufacturer = db.get_manufacturer(request.manufacturer_id)
    notify(
        db,
        manufacturer.user_id if manufacturer else None,
        "verification",
        f"Verification {status.value}",
        f"Your verification request was {status.value}.",
        "/profile",
    )
    return to_json(request)


@router.put("/verifications/{request_id}/approve")
@router.put("/admin/verifications/{request_id}/approve")
def approve_verification(
    request_id: str,
    payload: Optional[VerificationDecision] = None,
    admin: Principal = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    notes = payload.notes if payload else None
    return _decide(db, request_id, VerificationStatus.APPROVED, admin, notes)


@router.put("/verifications/{request_id}/reject")
@router.put("/admin/verifications/{request_id}/reject")
def reject_verification(
    request_id: str,
    payload: Optional[VerificationDecision] = None,
    admin: Principal = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    notes = payload.notes if payload else None
    return _decide(db, request_id, VerificationStatus.REJECTED, admin, notes)


# Admin


@router.get("/admin/users")
def list_users_by_role(
    role: UserRole,
    _: Principal = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    return to_json(db.get_users_by_role(role.value))
