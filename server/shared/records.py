from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class User:
    """An account. For local sign-in the id is the chosen username."""

    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: Optional[str] = None
    currency: str = "USD"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Manufacturer:
    """Manufacturer profile, one per user."""

    id: str
    user_id: str
    business_name: str
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
    industries: List[str] = field(default_factory=list)
    capabilities: List[str] = field(default_factory=list)
    equipment_specs: Optional[Dict[str, Any]] = None
    verification_status: str = "pending"
    verified_at: Optional[datetime] = None
    is_premium_verified: bool = False
    average_rating: float = 0.0
    total_reviews: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Brand:
    """Brand profile, one per user."""

    id: str
    user_id: str
    company_name: str
    description: Optional[str] = None
    logo_url: Optional[str] = None
    industry: Optional[str] = None
    product_categories: List[str] = field(default_factory=list)
    company_size: Optional[str] = None
    annual_volume: Optional[str] = None
    preferred_locations: List[str] = field(default_factory=list)
    website: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Creator:
    """Content creator profile."""

    id: str
    user_id: str
    display_name: str
    tagline: Optional[str] = None
    bio: Optional[str] = None
    profile_image_url: Optional[str] = None
    cover_image_url: Optional[str] = None
    specialties: List[str] = field(default_factory=list)
    skills: List[str] = field(default_factory=list)
    content_types: List[str] = field(default_factory=list)
    services_offered: List[str] = field(default_factory=list)
    hourly_rate: Optional[float] = None
    project_rate: Optional[float] = None
    available_for_hire: bool = True
    portfolio_items: List[Dict[str, Any]] = field(default_factory=list)
    years_experience: Optional[int] = None
    location: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    social_links: Dict[str, str] = field(default_factory=dict)
    average_rating: float = 0.0
    total_reviews: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Designer:
    """Product and packaging designer profile."""

    id: str
    user_id: str
    display_name: str
    tagline: Optional[str] = None
    bio: Optional[str] = None
    profile_image_url: Optional[str] = None
    cover_image_url: Optional[str] = None
    design_specialties: List[str] = field(default_factory=list)
    software_proficiency: List[str] = field(default_factory=list)
    design_styles: List[str] = field(default_factory=list)
    services_offered: List[str] = field(default_factory=list)
    hourly_rate: Optional[float] = None
    project_rate: Optional[float] = None
    available_for_hire: bool = True
    portfolio_items: List[Dict[str, Any]] = field(default_factory=list)
    years_experience: Optional[int] = None
    certifications: List[str] = field(default_factory=list)
    location: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    social_links: Dict[str, str] = field(default_factory=dict)
    average_rating: float = 0.0
    total_reviews: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class FinancialInstitution:
    """A lender listed in the finance directory."""

    id: str
    user_id: str
    institution_name: str
    institution_type: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    location: Optional[str] = None
    address: Optional[str] = None
    loan_products: List[str] = field(default_factory=list)
    min_loan_amount: Optional[float] = None
    max_loan_amount: Optional[float] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class LoanProduct:
    id: str
    lender_id: str
    product_name: str
    min_amount: float
    max_amount: float
    description: Optional[str] = None
    loan_type: Optional[str] = None
    interest_rate_min: Optional[float] = None
    interest_rate_max: Optional[float] = None
    term_months_min: Optional[int] = None
    term_months_max: Optional[int] = None
    currency: str = "JMD"
    requirements: List[str] = field(default_factory=list)
    features: List[str] = field(default_factory=list)
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class LoanApplication:
    id: str
    loan_product_id: str
    applicant_id: str
    requested_amount: float
    requested_term_months: int
    purpose: str
    business_id: Optional[str] = None
    business_type: Optional[str] = None
    business_revenue: Optional[float] = None
    years_in_business: Optional[int] = None
    employee_count: Optional[int] = None
    collateral_description: Optional[str] = None
    status: str = "draft"
    review_notes: Optional[str] = None
    approved_amount: Optional[float] = None
    approved_rate: Optional[float] = None
    approved_term_months: Optional[int] = None
    documents: List[str] = field(default_factory=list)
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Project:
    """
    A production run owned by a brand.

    Milestones are stored as a list of ``{"title", "completed", "dueDate"}``
    dictionaries; progress is derived from them when serialized.
    """

    id: str
    brand_id: str
    title: str
    manufacturer_id: Optional[str] = None
    rfq_id: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    status: str = "draft"
    budget: Optional[float] = None
    currency: str = "USD"
    timeline: Optional[str] = None
    start_date: Optional[datetime] = None
    expected_completion_date: Optional[datetime] = None
    actual_completion_date: Optional[datetime] = None
    requirements: Optional[Dict[str, Any]] = None
    milestones: List[Dict[str, Any]] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Rfq:
    """A request for quote posted by a brand."""

    id: str
    brand_id: str
    title: str
    description: str
    category: Optional[str] = None
    status: str = "active"
    budget: Optional[float] = None
    currency: str = "USD"
    quantity: Optional[int] = None
    timeline: Optional[str] = None
    requirements: Optional[Dict[str, Any]] = None
    target_manufacturers: List[str] = field(default_factory=list)
    attachments: List[str] = field(default_factory=list)
    response_count: int = 0
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class RfqResponse:
    """A manufacturer's quote against an RFQ."""

    id: str
    rfq_id: str
    manufacturer_id: str
    proposed_price: Optional[float] = None
    currency: str = "USD"
    proposed_timeline: Optional[str] = None
    message: Optional[str] = None
    attachments: List[str] = field(default_factory=list)
    is_awarded: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Message:
    id: str
    sender_id: str
    recipient_id: str
    content: str
    subject: Optional[str] = None
    thread_id: Optional[str] = None
    status: str = "sent"
    attachments: List[str] = field(default_factory=list)
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class MessageThread:
    """A conversation summary, grouped by the other participant."""

    counterpart_id: str
    last_message: Message
    unread_count: int = 0


@dataclass
class Review:
    id: str
    manufacturer_id: str
    reviewer_id: str
    rating: int
    project_id: Optional[str] = None
    quality_rating: Optional[int] = None
    communication_rating: Optional[int] = None
    timeliness_rating: Optional[int] = None
    testimonial: Optional[str] = None
    response: Optional[str] = None
    responded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Certification:
    id: str
    manufacturer_id: str
    certification_type: str
    issuer: str
    custom_type: Optional[str] = None
    issue_date: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    document_url: Optional[str] = None
    verification_status: str = "pending"
    verified_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class PortfolioItem:
    id: str
    manufacturer_id: str
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    images: List[str] = field(default_factory=list)
    project_date: Optional[datetime] = None
    tags: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class VerificationRequest:
    id: str
    manufacturer_id: str
    request_type: str
    status: str = "pending"
    documents: List[str] = field(default_factory=list)
    notes: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class FinancingLead:
    id: str
    applicant_id: str
    company_name: str
    loan_amount: float
    institution_id: Optional[str] = None
    currency: str = "USD"
    loan_purpose: Optional[str] = None
    industry: Optional[str] = None
    years_in_business: Optional[int] = None
    annual_revenue: Optional[float] = None
    credit_score: Optional[int] = None
    status: str = "new"
    contacted_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Resource:
    id: str
    title: str
    category: str
    description: Optional[str] = None
    file_url: Optional[str] = None
    file_type: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    view_count: int = 0
    download_count: int = 0
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Notification:
    id: str
    user_id: str
    type: str
    title: str
    message: str
    action_url: Optional[str] = None
    is_read: bool = False
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Course:
    id: str
    title: str
    category: str
    description: Optional[str] = None
    level: str = "beginner"
    duration: Optional[int] = None
    thumbnail_url: Optional[str] = None
    instructor_name: Optional[str] = None
    instructor_bio: Optional[str] = None
    is_published: bool = True
    enrollment_count: int = 0
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class CourseModule:
    id: str
    course_id: str
    title: str
    description: Optional[str] = None
    order_index: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class CourseLesson:
    id: str
    module_id: str
    title: str
    content: Optional[str] = None
    video_url: Optional[str] = None
    duration: Optional[int] = None
    order_index: int = 0
    resource_urls: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class UserCourseEnrollment:
    id: str
    user_id: str
    course_id: str
    enrolled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    progress_percentage: int = 0
    last_accessed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class UserLessonProgress:
    id: str
    user_id: str
    lesson_id: str
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    time_spent: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class ModuleWithLessons:
    module: CourseModule
    lessons: List[CourseLesson] = field(default_factory=list)


@dataclass
class CourseDetail:
    """A course with its modules and lessons in display order."""

    course: Course
    modules: List[ModuleWithLessons] = field(default_factory=list)


@dataclass
class CourseProgress:
    course_id: str
    progress_percentage: int
    completed_lessons: int
    total_lessons: int
    enrolled: bool = False


@dataclass
class RawMaterial:
    id: str
    name: str
    category: str
    unit_of_measure: str
    description: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None
    image_url: Optional[str] = None
    minimum_order_quantity: Optional[int] = None
    # Prices are integer cents.
    average_price: Optional[int] = None
    currency: str = "JMD"
    supplier_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class RawMaterialSupplier:
    id: str
    raw_material_id: str
    manufacturer_id: str
    price_per_unit: int
    currency: str = "JMD"
    minimum_order_quantity: Optional[int] = None
    lead_time_days: Optional[int] = None
    is_verified: bool = False
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class ProjectMaterial:
    """A raw material line on a project's bill of materials, in cents."""

    id: str
    project_id: str
    raw_material_id: str
    quantity: int
    supplier_id: Optional[str] = None
    unit_price: int = 0
    total_cost: int = 0
    currency: str = "JMD"
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class ProjectCost:
    total_cost: int
    currency: str
