"""
Authorization guards, expressed as FastAPI dependencies.

Each guard authenticates the caller first (401 when anonymous) and then
checks role, ownership or the presence of a business profile.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from fastapi import Depends, HTTPException, Request

from jamakers.auth import Principal, get_principal
from jamakers.db import DbClient
from jamakers.dependencies import get_db_client

logger = logging.getLogger(__name__)

OwnerResolver = Callable[[DbClient, str], Optional[str]]


def _authenticated(principal: Optional[Principal]) -> Principal:
    if principal is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return principal


def require_role(*roles: str):
    """Allow only callers whose role is one of ``roles``."""
    allowed = {getattr(role, "value", role) for role in roles}

    def guard(principal: Optional[Principal] = Depends(get_principal)) -> Principal:
        principal = _authenticated(principal)
        if not principal.role:
            raise HTTPException(status_code=403, detail="Access denied: No role assigned")
        if principal.role not in allowed:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return principal

    return guard


def require_ownership(resolve_owner: OwnerResolver, param: str = "id"):
    """
    Allow the user owning the resource named by the ``param`` path parameter.

    ``resolve_owner`` maps the resource id to its owning user id, or None
    when the resource does not exist. Admins are always allowed.
    """

    def guard(
        request: Request,
        principal: Optional[Principal] = Depends(get_principal),
        db: DbClient = Depends(get_db_client),
    ) -> Principal:
        principal = _authenticated(principal)
        resource_id = request.path_params.get(param, "")
        try:
            owner_id = resolve_owner(db, resource_id)
        except Exception as exc:
            logger.exception("Ownership lookup failed for %s", request.url.path)
            raise HTTPException(
                status_code=500, detail="Failed to authorize request"
            ) from exc
        if owner_id is None:
            raise HTTPException(status_code=404, detail="Resource not found")
        if principal.is_admin or owner_id == principal.user_id:
            return principal
        raise HTTPException(status_code=403, detail="Access denied: Not the owner")

    return guard


def _require_profile(lookup: Callable[[DbClient, str], Any], label: str):
    def guard(
        principal: Optional[Principal] = Depends(get_principal),
        db: DbClient = Depends(get_db_client),
    ):
        principal = _authenticated(principal)
        profile = lookup(db, principal.user_id)
        if profile is None:
            raise HTTPException(
                status_code=403, detail=f"Access denied: {label} profile required"
            )
        return profile

    return guard


require_manufacturer = _require_profile(
    lambda db, user_id: db.get_manufacturer_by_user_id(user_id), "Manufacturer"
)
require_brand = _require_profile(lambda db, user_id: db.get_brand_by_user_id(user_id), "Brand")
require_financial_institution = _require_profile(
    lambda db, user_id: db.get_financial_institution_by_user_id(user_id),
    "Financial institution",
)


# Owner resolvers


def manufacturer_owner(db: DbClient, manufacturer_id: str) -> Optional[str]:
    manufacturer = db.get_manufacturer(manufacturer_id)
    return manufacturer.user_id if manufacturer else None


def brand_owner(db: DbClient, brand_id: str) -> Optional[str]:
    brand = db.get_brand(brand_id)
    return brand.user_id if brand else None


def creator_owner(db: DbClient, creator_id: str) -> Optional[str]:
    creator = db.get_creator(creator_id)
    return creator.user_id if creator else None


def designer_owner(db: DbClient, designer_id: str) -> Optional[str]:
    designer = db.get_designer(designer_id)
    return designer.user_id if designer else None


def lender_owner(db: DbClient, lender_id: str) -> Optional[str]:
    lender = db.get_financial_institution(lender_id)
    return lender.user_id if lender else None


def rfq_owner(db: DbClient, rfq_id: str) -> Optional[str]:
    rfq = db.get_rfq(rfq_id)
    return brand_owner(db, rfq.brand_id) if rfq else None


def rfq_response_owner(db: DbClient, response_id: str) -> Optional[str]:
    response = db.get_rfq_response(response_id)
    return rfq_owner(db, response.rfq_id) if response else None


def project_owner(db: DbClient, project_id: str) -> Optional[str]:
    project = db.get_project(project_id)
    return brand_owner(db, project.brand_id) if project else None


def project_material_owner(db: DbClient, material_id: str) -> Optional[str]:
    material = db.get_project_material(material_id)
    return project_owner(db, material.project_id) if material else None


def review_owner(db: DbClient, review_id: str) -> Optional[str]:
    review = db.get_review(review_id)
    return manufacturer_owner(db, review.manufacturer_id) if review else None


def financing_lead_owner(db: DbClient, lead_id: str) -> Optional[str]:
    lead = db.get_financing_lead(lead_id)
    if lead is None:
        return None
    # Unassigned leads exist but belong to nobody but admins.
    if not lead.institution_id:
        return ""
    return lender_owner(db, lead.institution_id) or ""


def loan_application_owner(db: DbClient, application_id: str) -> Optional[str]:
    application = db.get_loan_application(application_id)
    if application is None:
        return None
    product = db.get_loan_product(application.loan_product_id)
    if product is None:
        return ""
    return lender_owner(db, product.lender_id) or ""


def message_owner(db: DbClient, message_id: str) -> Optional[str]:
    message = db.get_message(message_id)
    return message.recipient_id if message else None


def notification_owner(db: DbClient, notification_id: str) -> Optional[str]:
    notification = db.get_notification(notification_id)
    return notification.user_id if notification else None
