"""
Projects, their bills of raw materials and the raw materials catalogue.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from jamakers.auth import Principal, require_authenticated
from jamakers.authorization import (
    project_material_owner,
    project_owner,
    require_brand,
    require_ownership,
)
from jamakers.db import DbClient
from jamakers.dependencies import get_db_client
from jamakers.routes.common import found, project_json
from jamakers.schemas import (
    ProjectCreate,
    ProjectMaterialCreate,
    ProjectMaterialUpdate,
    ProjectUpdate,
)
from shared.json_utils import to_json
from shared.records import Brand
from shared.types import UserRole

router = APIRouter()


@router.get("/projects")
def list_projects(
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    projects = []
    if principal.role == UserRole.BRAND.value:
        brand = db.get_brand_by_user_id(principal.user_id)
        if brand:
            projects = db.get_projects_by_brand(brand.id)
    elif principal.role == UserRole.MANUFACTURER.value:
        manufacturer = db.get_manufacturer_by_user_id(principal.user_id)
        if manufacturer:
            projects = db.get_projects_by_manufacturer(manufacturer.id)
    return [project_json(project) for project in projects]


@router.get("/projects/{project_id}", dependencies=[Depends(require_authenticated)])
def get_project(project_id: str, db: DbClient = Depends(get_db_client)):
    return project_json(found(db.get_project(project_id), "Project not found"))


@router.post("/projects", status_code=201)
def create_project(
    payload: ProjectCreate,
    brand: Brand = Depends(require_brand),
    db: DbClient = Depends(get_db_client),
):
    return project_json(db.create_project({**payload.values(), "brand_id": brand.id}))


@router.api_route(
    "/projects/{project_id}",
    methods=["PUT", "PATCH"],
    dependencies=[Depends(require_ownership(project_owner, "project_id"))],
)
def update_project(
    project_id: str, payload: ProjectUpdate, db: DbClient = Depends(get_db_client)
):
    updated = db.update_project(project_id, payload.values())
    return project_json(found(updated, "Project not found"))


# Bill of materials


@router.get(
    "/projects/{project_id}/materials", dependencies=[Depends(require_authenticated)]
)
def list_project_materials(project_id: str, db: DbClient = Depends(get_db_client)):
    return to_json(db.get_project_materials(project_id))


@router.get(
    "/projects/{project_id}/materials/cost",
    dependencies=[Depends(require_authenticated)],
)
def project_materials_cost(project_id: str, db: DbClient = Depends(get_db_client)):
    return to_json(db.get_project_materials_cost(project_id))


@router.post(
    "/projects/{project_id}/materials",
    status_code=201,
    dependencies=[Depends(require_ownership(project_owner, "project_id"))],
)
def add_project_material(
    project_id: str,
    payload: ProjectMaterialCreate,
    db: DbClient = Depends(get_db_client),
):
    found(db.get_raw_material(payload.raw_material_id), "Raw material not found")
    material = db.add_material_to_project({**payload.values(), "project_id": project_id})
    return to_json(material)


@router.patch(
    "/project-materials/{material_id}",
    dependencies=[Depends(require_ownership(project_material_owner, "material_id"))],
)
def update_project_material(
    material_id: str,
    payload: ProjectMaterialUpdate,
    db: DbClient = Depends(get_db_client),
):
    if payload.quantity is None or payload.quantity <= 0:
        raise HTTPException(status_code=400, detail="Valid quantity required")
    updated = db.update_project_material_quantity(material_id, payload.quantity)
    return to_json(found(updated, "Material not found"))


@router.delete(
    "/project-materials/{material_id}",
    dependencies=[Depends(require_ownership(project_material_owner, "material_id"))],
)
def remove_project_material(material_id: str, db: DbClient = Depends(get_db_client)):
    if not db.remove_material_from_project(material_id):
        found(None, "Material not found")
    return {"success": True}


# Raw materials catalogue


@router.get("/raw-materials")
def list_raw_materials(
    category: Optional[str] = None, db: DbClient = Depends(get_db_client)
):
    return to_json(db.get_raw_materials(category))


@router.get("/raw-materials/{material_id}")
def get_raw_material(material_id: str, db: DbClient = Depends(get_db_client)):
    return to_json(found(db.get_raw_material(material_id), "Raw material not found"))


@router.get("/raw-materials/{material_id}/suppliers")
def list_raw_material_suppliers(
    material_id: str, db: DbClient = Depends(get_db_client)
):
    return to_json(db.get_raw_material_suppliers(material_id))
