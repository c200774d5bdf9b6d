"""
Pydantic request schemas for the JA Makers API.

Bodies arrive in camelCase; ``model_dump()`` hands snake_case values to the
storage layer. ``*Update`` schemas leave out fields callers may not change
(owner ids, verification state). ``*Create`` schemas extend them with the
required fields.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from shared.types import (
    CertificationType,
    LeadStatus,
    LoanApplicationStatus,
    ProjectStatus,
    RfqStatus,
    UserRole,
)


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    @field_validator("*")
    @classmethod
    def _utc_datetimes(cls, value: Any) -> Any:
        # Timestamps without an offset are taken as UTC.
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=timezone.utc)
            return value.astimezone(timezone.utc)
        return value

    def values(self) -> Dict[str, Any]:
        """Fields the client actually sent, without nulls."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


# Auth


class LoginPayload(ApiModel):
    username: Optional[str] = None
    password: Optional[str] = None
    role: Optional[UserRole] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None


class UserUpdate(ApiModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)


# Profiles


class ManufacturerUpdate(ApiModel):
    business_name: Optional[str] = Field(default=None, min_length=1)
    business_registration_number: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    cover_image_url: Optional[str] = None
    daily_capacity: Optional[int] = None
    weekly_capacity: Optional[int] = None
    monthly_capacity: Optional[int] = None
    current_utilization: Optional[float] = None
    max_order_size: Optional[int] = None
    min_order_quantity: Optional[int] = None
    production_lines: Optional[int] = None
    workforce_size: Optional[int] = None
    shifts_per_day: Optional[int] = None
    industries: Optional[List[str]] = None
    capabilities: Optional[List[str]] = None
    equipment_specs: Optional[Dict[str, Any]] = None


class ManufacturerCreate(ManufacturerUpdate):
    business_name: str = Field(min_length=1)


class BrandUpdate(ApiModel):
    company_name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    logo_url: Optional[str] = None
    industry: Optional[str] = None
    product_categories: Optional[List[str]] = None
    company_size: Optional[str] = None
    annual_volume: Optional[str] = None
    preferred_locations: Optional[List[str]] = None
    website: Optional[str] = None
    phone: Optional[str] = None


class BrandCreate(BrandUpdate):
    company_name: str = Field(min_length=1)


class _TalentFields(ApiModel):
    display_name: Optional[str] = Field(default=None, min_length=1)
    tagline: Optional[str] = None
    bio: Optional[str] = None
    profile_image_url: Optional[str] = None
    cover_image_url: Optional[str] = None
    services_offered: Optional[List[str]] = None
    hourly_rate: Optional[float] = None
    project_rate: Optional[float] = None
    available_for_hire: Optional[bool] = None
    portfolio_items: Optional[List[Dict[str, Any]]] = None
    years_experience: Optional[int] = None
    location: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    social_links: Optional[Dict[str, str]] = None


class CreatorUpdate(_TalentFields):
    specialties: Optional[List[str]] = None
    skills: Optional[List[str]] = None
    content_types: Optional[List[str]] = None


class CreatorCreate(CreatorUpdate):
    display_name: str = Field(min_length=1)


class DesignerUpdate(_TalentFields):
    design_specialties: Optional[List[str]] = None
    software_proficiency: Optional[List[str]] = None
    design_styles: Optional[List[str]] = None
    certifications: Optional[List[str]] = None


class DesignerCreate(DesignerUpdate):
    display_name: str = Field(min_length=1)


# Finance


class FinancialInstitutionUpdate(ApiModel):
    institution_name: Optional[str] = Field(default=None, min_length=1)
    institution_type: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    location: Optional[str] = None
    address: Optional[str] = None
    loan_products: Optional[List[str]] = None
    min_loan_amount: Optional[float] = None
    max_loan_amount: Optional[float] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class FinancialInstitutionCreate(FinancialInstitutionUpdate):
    institution_name: str = Field(min_length=1)


class LoanProductCreate(ApiModel):
    product_name: str = Field(min_length=1)
    min_amount: float = Field(ge=0)
    max_amount: float = Field(ge=0)
    description: Optional[str] = None
    loan_type: Optional[str] = None
    interest_rate_min: Optional[float] = None
    interest_rate_max: Optional[float] = None
    term_months_min: Optional[int] = None
    term_months_max: Optional[int] = None
    currency: Optional[str] = None
    requirements: Optional[List[str]] = None
    features: Optional[List[str]] = None
    is_active: Optional[bool] = None


class LoanApplicationCreate(ApiModel):
    loan_product_id: str
    requested_amount: float = Field(gt=0)
    requested_term_months: int = Field(gt=0)
    purpose: str = Field(min_length=1)
    business_id: Optional[str] = None
    business_revenue: Optional[float] = None
    years_in_business: Optional[int] = None
    employee_count: Optional[int] = None
    collateral_description: Optional[str] = None
    documents: Optional[List[str]] = None
    status: Optional[LoanApplicationStatus] = None


class LoanApplicationStatusUpdate(ApiModel):
    status: LoanApplicationStatus
    review_notes: Optional[str] = None
    approved_amount: Optional[float] = None
    approved_rate: Optional[float] = None
    approved_term_months: Optional[int] = None


class FinancingLeadCreate(ApiModel):
    company_name: str = Field(min_length=1)
    loan_amount: float = Field(gt=0)
    institution_id: Optional[str] = None
    currency: Optional[str] = None
    loan_purpose: Optional[str] = None
    industry: Optional[str] = None
    years_in_business: Optional[int] = None
    annual_revenue: Optional[float] = None
    credit_score: Optional[int] = None


class FinancingLeadUpdate(ApiModel):
    status: LeadStatus
    notes: Optional[str] = None


# RFQs and projects


class RfqUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = None
    status: Optional[RfqStatus] = None
    budget: Optional[float] = None
    currency: Optional[str] = None
    quantity: Optional[int] = None
    timeline: Optional[str] = None
    requirements: Optional[Dict[str, Any]] = None
    target_manufacturers: Optional[List[str]] = None
    attachments: Optional[List[str]] = None
    expires_at: Optional[datetime] = None


class RfqCreate(RfqUpdate):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)


class RfqResponseCreate(ApiModel):
    proposed_price: Optional[float] = None
    currency: Optional[str] = None
    proposed_timeline: Optional[str] = None
    message: Optional[str] = None
    attachments: Optional[List[str]] = None


class ProjectUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1)
    manufacturer_id: Optional[str] = None
    rfq_id: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    status: Optional[ProjectStatus] = None
    budget: Optional[float] = None
    currency: Optional[str] = None
    timeline: Optional[str] = None
    start_date: Optional[datetime] = None
    expected_completion_date: Optional[datetime] = None
    actual_completion_date: Optional[datetime] = None
    requirements: Optional[Dict[str, Any]] = None
    # Free-form {title, completed, dueDate} items, stored as sent.
    milestones: Optional[List[Dict[str, Any]]] = None


class ProjectCreate(ProjectUpdate):
    title: str = Field(min_length=1)


class ProjectMaterialCreate(ApiModel):
    raw_material_id: str
    quantity: int = Field(gt=0)
    supplier_id: Optional[str] = None
    unit_price: Optional[int] = Field(default=None, ge=0)
    currency: Optional[str] = None
    notes: Optional[str] = None


class ProjectMaterialUpdate(ApiModel):
    quantity: Optional[int] = None


# Messaging, reviews and verification


class MessageCreate(ApiModel):
    recipient_id: str = Field(min_length=1)
    content: str = Field(min_length=1)
    subject: Optional[str] = None
    thread_id: Optional[str] = None
    attachments: Optional[List[str]] = None


class ReviewCreate(ApiModel):
    manufacturer_id: str
    rating: int = Field(ge=1, le=5)
    project_id: Optional[str] = None
    quality_rating: Optional[int] = Field(default=None, ge=1, le=5)
    communication_rating: Optional[int] = Field(default=None, ge=1, le=5)
    timeliness_rating: Optional[int] = Field(default=None, ge=1, le=5)
    testimonial: Optional[str] = None


class ReviewResponsePayload(ApiModel):
    response: Optional[str] = None


class CertificationCreate(ApiModel):
    certification_type: CertificationType
    issuer: str = Field(min_length=1)
    custom_type: Optional[str] = None
    issue_date: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    document_url: Optional[str] = None


class PortfolioItemCreate(ApiModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    images: Optional[List[str]] = None
    project_date: Optional[datetime] = None
    tags: Optional[List[str]] = None


class VerificationRequestCreate(ApiModel):
    request_type: str = Field(min_length=1)
    documents: Optional[List[str]] = None
    notes: Optional[str] = None


class VerificationDecision(ApiModel):
    notes: Optional[str] = None


# Objects, chat and CMS


class UploadRequest(ApiModel):
    filename: Optional[str] = None
    content_type: Optional[str] = None
    allowed_users: List[str] = Field(default_factory=list)
    is_public: bool = False


class ChatTurn(ApiModel):
    role: str
    content: str


class ChatPayload(ApiModel):
    message: Optional[str] = None
    conversation_history: List[ChatTurn] = Field(default_factory=list)


class LandingConfigUpdate(ApiModel):
    model_config = ConfigDict(extra="allow")

    header: Optional[Dict[str, Any]] = None
    hero: Optional[Dict[str, Any]] = None
    sections: Optional[Dict[str, Any]] = None
    cta: Optional[Dict[str, Any]] = None
