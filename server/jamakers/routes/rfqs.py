"""
Request-for-quote routes: brands post RFQs, manufacturers quote against them.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from jamakers.auth import Principal, require_authenticated
from jamakers.authorization import (
    require_brand,
    require_manufacturer,
    require_ownership,
    rfq_owner,
    rfq_response_owner,
)
from jamakers.db import DbClient
from jamakers.dependencies import get_db_client
from jamakers.routes.common import found, notify
from jamakers.schemas import RfqCreate, RfqResponseCreate, RfqUpdate
from shared.json_utils import to_json
from shared.records import Brand, Manufacturer
from shared.types import UserRole

router = APIRouter()


@router.get("/rfqs")
def list_rfqs(
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    """Brands see their own RFQs, manufacturers see every open one."""
    if principal.role == UserRole.BRAND.value:
        brand = db.get_brand_by_user_id(principal.user_id)
        if brand:
            return to_json(db.get_rfqs_by_brand(brand.id))
    elif principal.role == UserRole.MANUFACTURER.value:
        return to_json(db.get_active_rfqs())
    return []


@router.get("/rfqs/{rfq_id}")
def get_rfq(rfq_id: str, db: DbClient = Depends(get_db_client)):
    return to_json(found(db.get_rfq(rfq_id), "RFQ not found"))


@router.post("/rfqs", status_code=201)
def create_rfq(
    payload: RfqCreate,
    brand: Brand = Depends(require_brand),
    db: DbClient = Depends(get_db_client),
):
    return to_json(db.create_rfq({**payload.values(), "brand_id": brand.id}))


@router.api_route(
    "/rfqs/{rfq_id}",
    methods=["PUT", "PATCH"],
    dependencies=[Depends(require_ownership(rfq_owner, "rfq_id"))],
)
def update_rfq(rfq_id: str, payload: RfqUpdate, db: DbClient = Depends(get_db_client)):
    return to_json(found(db.update_rfq(rfq_id, payload.values()), "RFQ not found"))


@router.delete(
    "/rfqs/{rfq_id}",
    status_code=204,
    dependencies=[Depends(require_ownership(rfq_owner, "rfq_id"))],
)
def delete_rfq(rfq_id: str, db: DbClient = Depends(get_db_client)):
    if not db.delete_rfq(rfq_id):
        found(None, "RFQ not found")
    return Response(status_code=204)


@router.get("/rfqs/{rfq_id}/responses")
def list_rfq_responses(rfq_id: str, db: DbClient = Depends(get_db_client)):
    return to_json(db.get_rfq_responses_by_rfq(rfq_id))


@router.post("/rfqs/{rfq_id}/responses", status_code=201)
def respond_to_rfq(
    rfq_id: str,
    payload: RfqResponseCreate,
    manufacturer: Manufacturer = Depends(require_manufacturer),
    db: DbClient = Depends(get_db_client),
):
    rfq = found(db.get_rfq(rfq_id), "RFQ not found")
    response = db.create_rfq_response(
        {**payload.values(), "rfq_id": rfq.id, "manufacturer_id": manufacturer.id}
    )
    brand = db.get_brand(rfq.brand_id)
    notify(
        db,
        brand.user_id if brand else None,
        "rfq_response",
        "New quote received",
        f"{manufacturer.business_name} responded to \"{rfq.title}\"",
        f"/rfqs/{rfq.id}",
    )
    return to_json(response)


@router.put(
    "/rfq-responses/{response_id}/award",
    dependencies=[Depends(require_ownership(rfq_response_owner, "response_id"))],
)
def award_rfq_response(response_id: str, db: DbClient = Depends(get_db_client)):
    awarded = found(db.award_rfq_response(response_id), "RFQ response not found")
    manufacturer = db.get_manufacturer(awarded.manufacturer_id)
    notify(
        db,
        manufacturer.user_id if manufacturer else None,
        "rfq_awarded",
        "Your quote was accepted",
        "A brand awarded your RFQ response.",
        f"/rfqs/{awarded.rfq_id}",
    )
    return to_json(awarded)
