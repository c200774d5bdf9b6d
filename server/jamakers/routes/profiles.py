"""
Directory and profile routes: manufacturers, brands, creators and designers.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from jamakers.auth import Principal, require_authenticated
from jamakers.authorization import (
    brand_owner,
    creator_owner,
    designer_owner,
    manufacturer_owner,
    require_ownership,
)
from jamakers.db import DbClient
from jamakers.dependencies import get_db_client
from jamakers.routes.common import found
from jamakers.schemas import (
    BrandCreate,
    BrandUpdate,
    CreatorCreate,
    CreatorUpdate,
    DesignerCreate,
    DesignerUpdate,
    ManufacturerCreate,
    ManufacturerUpdate,
)
from shared.json_utils import to_json

router = APIRouter()


# Current user's profiles


@router.get("/profile/manufacturer")
def my_manufacturer_profile(
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    manufacturer = db.get_manufacturer_by_user_id(principal.user_id)
    return to_json(found(manufacturer, "Manufacturer profile not found"))


@router.get("/profile/brand")
def my_brand_profile(
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    brand = db.get_brand_by_user_id(principal.user_id)
    return to_json(found(brand, "Brand profile not found"))


@router.get("/profile/creator")
def my_creator_profile(
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    creator = db.get_creator_by_user_id(principal.user_id)
    return to_json(found(creator, "Creator profile not found"))


@router.get("/profile/designer")
def my_designer_profile(
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    designer = db.get_designer_by_user_id(principal.user_id)
    return to_json(found(designer, "Designer profile not found"))


@router.get("/profile/financial-institution")
def my_financial_institution_profile(
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    lender = db.get_financial_institution_by_user_id(principal.user_id)
    return to_json(found(lender, "Financial institution profile not found"))


# Manufacturers


@router.get("/manufacturers")
def list_manufacturers(
    search: Optional[str] = None,
    location: Optional[str] = None,
    industry: Optional[str] = None,
    capability: Optional[str] = None,
    verified: Optional[bool] = None,
    db: DbClient = Depends(get_db_client),
):
    return to_json(
        db.search_manufacturers(
            search=search,
            location=location,
            industry=industry,
            capability=capability,
            verified=verified,
        )
    )


@router.get("/manufacturers/{manufacturer_id}")
def get_manufacturer(manufacturer_id: str, db: DbClient = Depends(get_db_client)):
    return to_json(found(db.get_manufacturer(manufacturer_id), "Manufacturer not found"))


@router.post("/manufacturers", status_code=201)
def create_manufacturer(
    payload: ManufacturerCreate,
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    manufacturer = db.create_manufacturer({**payload.values(), "user_id": principal.user_id})
    return to_json(manufacturer)


@router.api_route(
    "/manufacturers/{manufacturer_id}",
    methods=["PUT", "PATCH"],
    dependencies=[Depends(require_ownership(manufacturer_owner, "manufacturer_id"))],
)
def update_manufacturer(
    manufacturer_id: str,
    payload: ManufacturerUpdate,
    db: DbClient = Depends(get_db_client),
):
    updated = db.update_manufacturer(manufacturer_id, payload.values())
    return to_json(found(updated, "Manufacturer not found"))


@router.get("/manufacturers/{manufacturer_id}/portfolio")
def manufacturer_portfolio(manufacturer_id: str, db: DbClient = Depends(get_db_client)):
    return to_json(db.get_portfolio_items_by_manufacturer(manufacturer_id))


@router.get("/manufacturers/{manufacturer_id}/certifications")
def manufacturer_certifications(
    manufacturer_id: str, db: DbClient = Depends(get_db_client)
):
    return to_json(db.get_certifications_by_manufacturer(manufacturer_id))


@router.get("/manufacturers/{manufacturer_id}/reviews")
def manufacturer_reviews(manufacturer_id: str, db: DbClient = Depends(get_db_client)):
    return to_json(db.get_reviews_by_manufacturer(manufacturer_id))


# Brands


@router.get("/brands/{brand_id}")
def get_brand(brand_id: str, db: DbClient = Depends(get_db_client)):
    return to_json(found(db.get_brand(brand_id), "Brand not found"))


@router.post("/brands", status_code=201)
def create_brand(
    payload: BrandCreate,
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    return to_json(db.create_brand({**payload.values(), "user_id": principal.user_id}))


@router.api_route(
    "/brands/{brand_id}",
    methods=["PUT", "PATCH"],
    dependencies=[Depends(require_ownership(brand_owner, "brand_id"))],
)
def update_brand(
    brand_id: str, payload: BrandUpdate, db: DbClient = Depends(get_db_client)
):
    return to_json(found(db.update_brand(brand_id, payload.values()), "Brand not found"))


# Creators and designers


def _parse_availability(value: Optional[str]) -> Optional[bool]:
    # Anything other than "true"/"false" means no filter.
    if value == "true":
        return True
    if value == "false":
        return False
    return None


@router.get("/creators")
def list_creators(
    available_for_hire: Optional[str] = Query(default=None, alias="availableForHire"),
    db: DbClient = Depends(get_db_client),
):
    return to_json(db.get_creators(_parse_availability(available_for_hire)))


@router.get("/creators/{creator_id}")
def get_creator(creator_id: str, db: DbClient = Depends(get_db_client)):
    return to_json(found(db.get_creator(creator_id), "Creator not found"))


@router.post("/creators", status_code=201)
def create_creator(
    payload: CreatorCreate,
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    return to_json(db.create_creator({**payload.values(), "user_id": principal.user_id}))


@router.patch(
    "/creators/{creator_id}",
    dependencies=[Depends(require_ownership(creator_owner, "creator_id"))],
)
def update_creator(
    creator_id: str, payload: CreatorUpdate, db: DbClient = Depends(get_db_client)
):
    updated = db.update_creator(creator_id, payload.values())
    return to_json(found(updated, "Creator not found"))


@router.get("/designers")
def list_designers(
    available_for_hire: Optional[str] = Query(default=None, alias="availableForHire"),
    db: DbClient = Depends(get_db_client),
):
    return to_json(db.get_designers(_parse_availability(available_for_hire)))


@router.get("/designers/{designer_id}")
def get_designer(designer_id: str, db: DbClient = Depends(get_db_client)):
    return to_json(found(db.get_designer(designer_id), "Designer not found"))


@router.post("/designers", status_code=201)
def create_designer(
    payload: DesignerCreate,
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    return to_json(db.create_designer({**payload.values(), "user_id": principal.user_id}))


@router.patch(
    "/designers/{designer_id}",
    dependencies=[Depends(require_ownership(designer_owner, "designer_id"))],
)
def update_designer(
    designer_id: str, payload: DesignerUpdate, db: DbClient = Depends(get_db_client)
):
    updated = db.update_designer(designer_id, payload.values())
    return to_json(found(updated, "Designer not found"))
