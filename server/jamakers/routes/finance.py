"""
Finance directory (lenders, loan products, loan applications) and the
financing lead pipeline.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from jamakers.auth import Principal, require_authenticated
from jamakers.authorization import (
    financing_lead_owner,
    lender_owner,
    loan_application_owner,
    require_ownership,
    require_role,
)
from jamakers.db import DbClient
from jamakers.dependencies import get_db_client
from jamakers.routes.common import found
from jamakers.schemas import (
    FinancialInstitutionCreate,
    FinancialInstitutionUpdate,
    FinancingLeadCreate,
    FinancingLeadUpdate,
    LoanApplicationCreate,
    LoanApplicationStatusUpdate,
    LoanProductCreate,
)
from shared.json_utils import to_json
from shared.types import UserRole

router = APIRouter()


# Lenders


@router.get("/finance/lenders")
def list_lenders(db: DbClient = Depends(get_db_client)):
    return to_json(db.get_financial_institutions())


@router.get("/finance/lenders/{lender_id}")
def get_lender(lender_id: str, db: DbClient = Depends(get_db_client)):
    return to_json(found(db.get_financial_institution(lender_id), "Lender not found"))


@router.post("/finance/lenders", status_code=201)
def create_lender(
    payload: FinancialInstitutionCreate,
    principal: Principal = Depends(require_role(UserRole.FINANCIAL_INSTITUTION)),
    db: DbClient = Depends(get_db_client),
):
    lender = db.create_financial_institution(
        {**payload.values(), "user_id": principal.user_id}
    )
    return to_json(lender)


@router.patch(
    "/finance/lenders/{lender_id}",
    dependencies=[Depends(require_ownership(lender_owner, "lender_id"))],
)
def update_lender(
    lender_id: str,
    payload: FinancialInstitutionUpdate,
    db: DbClient = Depends(get_db_client),
):
    updated = db.update_financial_institution(lender_id, payload.values())
    return to_json(found(updated, "Lender not found"))


@router.get("/finance/lenders/{lender_id}/loan-products")
def list_loan_products(lender_id: str, db: DbClient = Depends(get_db_client)):
    return to_json(db.get_loan_products_by_lender(lender_id))


@router.post(
    "/finance/lenders/{lender_id}/loan-products",
    status_code=201,
    dependencies=[Depends(require_ownership(lender_owner, "lender_id"))],
)
def create_loan_product(
    lender_id: str,
    payload: LoanProductCreate,
    db: DbClient = Depends(get_db_client),
):
    product = db.create_loan_product({**payload.values(), "lender_id": lender_id})
    return to_json(product)


@router.get(
    "/finance/lenders/{lender_id}/applications",
    dependencies=[Depends(require_ownership(lender_owner, "lender_id"))],
)
def list_lender_applications(lender_id: str, db: DbClient = Depends(get_db_client)):
    return to_json(db.get_loan_applications_by_institution(lender_id))


# Loan applications


@router.post("/finance/loan-applications", status_code=201)
def apply_for_loan(
    payload: LoanApplicationCreate,
    principal: Principal = Depends(require_role(UserRole.BRAND, UserRole.MANUFACTURER)),
    db: DbClient = Depends(get_db_client),
):
    found(db.get_loan_product(payload.loan_product_id), "Loan product not found")
    application = db.create_loan_application(
        {
            **payload.values(),
            "applicant_id": principal.user_id,
            "business_type": principal.role,
        }
    )
    return to_json(application)


@router.get("/finance/loan-applications")
def my_loan_applications(
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    return to_json(db.get_loan_applications_by_applicant(principal.user_id))


@router.patch(
    "/finance/loan-applications/{application_id}/status",
    dependencies=[Depends(require_ownership(loan_application_owner, "application_id"))],
)
def update_loan_application_status(
    application_id: str,
    payload: LoanApplicationStatusUpdate,
    db: DbClient = Depends(get_db_client),
):
    updated = db.update_loan_application(application_id, payload.values())
    return to_json(found(updated, "Loan application not found"))


# Financing leads


@router.get("/financing/leads")
def list_financing_leads(
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    if principal.role != UserRole.FINANCIAL_INSTITUTION.value:
        return []
    institution = db.get_financial_institution_by_user_id(principal.user_id)
    if institution is None:
        return []
    return to_json(db.get_financing_leads_by_institution(institution.id))


@router.post("/financing/leads", status_code=201)
def create_financing_lead(
    payload: FinancingLeadCreate,
    principal: Principal = Depends(require_authenticated),
    db: DbClient = Depends(get_db_client),
):
    lead = db.create_financing_lead({**payload.values(), "applicant_id": principal.user_id})
    return to_json(lead)


@router.put(
    "/financing/leads/{lead_id}",
    dependencies=[
        Depends(require_role(UserRole.FINANCIAL_INSTITUTION, UserRole.ADMIN)),
        Depends(require_ownership(financing_lead_owner, "lead_id")),
    ],
)
def update_financing_lead(
    lead_id: str,
    payload: FinancingLeadUpdate,
    db: DbClient = Depends(get_db_client),
):
    updated = db.update_financing_lead(lead_id, payload.values())
    return to_json(found(updated, "Financing lead not found"))
