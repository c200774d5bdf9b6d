"""
SQLAlchemy implementation of the marketplace store.

Implements the whole ``DbClient`` contract on top of the shared domain rules
in ``BaseDbClient``; nothing falls back to process memory.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import fields
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    Integer,
    String,
    Text,
    create_engine,
    select,
)
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from jamakers.db import TABLES, BaseDbClient

logger = logging.getLogger(__name__)


class PostgresDbClient(BaseDbClient):
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    backend_name = "postgres"

    def __init__(self, database_url: str, pool_size: Optional[int] = None):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresDbClient")
        self.engine = create_engine(database_url, **_engine_options(database_url, pool_size))
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        self._local = threading.local()
        Base.metadata.create_all(self.engine)
        logger.info(
            "SQL store ready at %s", self.engine.url.render_as_string(hide_password=True)
        )

    @contextmanager
    def _atomic(self) -> Iterator[None]:
        if getattr(self._local, "session", None) is not None:
            yield
            return
        with self.Session() as session:
            self._local.session = session
            try:
                yield
                session.commit()
            except Exception:
                session.rollback()
                raise
            finally:
                self._local.session = None

    @contextmanager
    def _session(self) -> Iterator[Session]:
        current = getattr(self._local, "session", None)
        if current is not None:
            yield current
            return
        with self.Session() as session:
            yield session
            session.commit()

    def _to_record(self, table: str, row: Any) -> Any:
        record_type = TABLES[table]
        return record_type(
            **{f.name: _as_utc(getattr(row, f.name)) for f in fields(record_type)}
        )

    def _get(self, table: str, record_id: str) -> Optional[Any]:
        with self._session() as session:
            row = session.get(ROW_TYPES[table], record_id)
            if not row:
                return None
            return self._to_record(table, row)

    def _select(self, table: str, **equals: Any) -> list:
        row_type = ROW_TYPES[table]
        with self._session() as session:
            stmt = (
                select(row_type)
                .filter_by(**equals)
                .order_by(row_type.created_at.asc(), row_type.id.asc())
            )
            return [
                self._to_record(table, row) for row in session.execute(stmt).scalars()
            ]

    def _insert(self, table: str, record: Any) -> Any:
        row_type = ROW_TYPES[table]
        with self._session() as session:
            session.add(row_type(**_record_values(record)))
            session.flush()
        return record

    def _replace(self, table: str, record: Any) -> Any:
        with self._session() as session:
            row = session.get(ROW_TYPES[table], record.id)
            if row is None:
                session.add(ROW_TYPES[table](**_record_values(record)))
            else:
                for key, value in _record_values(record).items():
                    setattr(row, key, value)
            session.flush()
        return record

    def _delete(self, table: str, record_id: str) -> bool:
        with self._session() as session:
            row = session.get(ROW_TYPES[table], record_id)
            if row is None:
                return False
            session.delete(row)
            session.flush()
            return True


def _engine_options(database_url: str, pool_size: Optional[int]) -> dict:
    options: dict = {"future": True, "pool_pre_ping": True, "pool_recycle": 1800}
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        # One shared connection, otherwise every thread sees an empty database.
        options["poolclass"] = StaticPool
        options["connect_args"] = {"check_same_thread": False}
    elif pool_size and not database_url.startswith("sqlite"):
        options["pool_size"] = pool_size
    return options


def _record_values(record: Any) -> dict:
    return {f.name: getattr(record, f.name) for f in fields(record)}


def _as_utc(value: Any) -> Any:
    # SQLite drops tzinfo on the way back.
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


Base = declarative_base()


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class UserRow(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=True, index=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    profile_image_url = Column(String, nullable=True)
    role = Column(String, nullable=True, index=True)
    currency = Column(String(3), nullable=True, default="USD")


class ManufacturerRow(TimestampMixin, Base):
    __tablename__ = "manufacturers"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    business_name = Column(String, nullable=False)
    business_registration_number = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    location = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    phone = Column(String, nullable=True)
    website = Column(String, nullable=True)
    logo_url = Column(String, nullable=True)
    cover_image_url = Column(String, nullable=True)
    daily_capacity = Column(Integer, nullable=True)
    weekly_capacity = Column(Integer, nullable=True)
    monthly_capacity = Column(Integer, nullable=True)
    current_utilization = Column(Float, nullable=True)
    max_order_size = Column(Integer, nullable=True)
    min_order_quantity = Column(Integer, nullable=True)
    production_lines = Column(Integer, nullable=True)
    workforce_size = Column(Integer, nullable=True)
    shifts_per_day = Column(Integer, nullable=True)
    industries = Column(JSON, nullable=False, default=list)
    capabilities = Column(JSON, nullable=False, default=list)
    equipment_specs = Column(JSON, nullable=True)
    verification_status = Column(String, nullable=False, default="pending")
    verified_at = Column(DateTime(timezone=True), nullable=True)
    is_premium_verified = Column(Boolean, nullable=False, default=False)
    average_rating = Column(Float, nullable=False, default=0.0)
    total_reviews = Column(Integer, nullable=False, default=0)


class BrandRow(TimestampMixin, Base):
    __tablename__ = "brands"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    company_name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    logo_url = Column(String, nullable=True)
    industry = Column(String, nullable=True)
    product_categories = Column(JSON, nullable=False, default=list)
    company_size = Column(String, nullable=True)
    annual_volume = Column(String, nullable=True)
    preferred_locations = Column(JSON, nullable=False, default=list)
    website = Column(String, nullable=True)
    phone = Column(String, nullable=True)


class CreatorRow(TimestampMixin, Base):
    __tablename__ = "creators"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    display_name = Column(String, nullable=False)
    tagline = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    profile_image_url = Column(String, nullable=True)
    cover_image_url = Column(String, nullable=True)
    specialties = Column(JSON, nullable=False, default=list)
    skills = Column(JSON, nullable=False, default=list)
    content_types = Column(JSON, nullable=False, default=list)
    services_offered = Column(JSON, nullable=False, default=list)
    hourly_rate = Column(Float, nullable=True)
    project_rate = Column(Float, nullable=True)
    available_for_hire = Column(Boolean, nullable=False, default=True)
    portfolio_items = Column(JSON, nullable=False, default=list)
    years_experience = Column(Integer, nullable=True)
    location = Column(String, nullable=True)
    website = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    social_links = Column(JSON, nullable=False, default=dict)
    average_rating = Column(Float, nullable=False, default=0.0)
    total_reviews = Column(Integer, nullable=False, default=0)


class DesignerRow(TimestampMixin, Base):
    __tablename__ = "designers"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    display_name = Column(String, nullable=False)
    tagline = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    profile_image_url = Column(String, nullable=True)
    cover_image_url = Column(String, nullable=True)
    design_specialties = Column(JSON, nullable=False, default=list)
    software_proficiency = Column(JSON, nullable=False, default=list)
    design_styles = Column(JSON, nullable=False, default=list)
    services_offered = Column(JSON, nullable=False, default=list)
    hourly_rate = Column(Float, nullable=True)
    project_rate = Column(Float, nullable=True)
    available_for_hire = Column(Boolean, nullable=False, default=True)
    portfolio_items = Column(JSON, nullable=False, default=list)
    years_experience = Column(Integer, nullable=True)
    certifications = Column(JSON, nullable=False, default=list)
    location = Column(String, nullable=True)
    website = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    social_links = Column(JSON, nullable=False, default=dict)
    average_rating = Column(Float, nullable=False, default=0.0)
    total_reviews = Column(Integer, nullable=False, default=0)


class FinancialInstitutionRow(TimestampMixin, Base):
    __tablename__ = "financial_institutions"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    institution_name = Column(String, nullable=False)
    institution_type = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    logo_url = Column(String, nullable=True)
    location = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    loan_products = Column(JSON, nullable=False, default=list)
    min_loan_amount = Column(Float, nullable=True)
    max_loan_amount = Column(Float, nullable=True)
    website = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)


class LoanProductRow(TimestampMixin, Base):
    __tablename__ = "loan_products"

    id = Column(String, primary_key=True)
    lender_id = Column(String, nullable=False, index=True)
    product_name = Column(String, nullable=False)
    min_amount = Column(Float, nullable=False)
    max_amount = Column(Float, nullable=False)
    description = Column(Text, nullable=True)
    loan_type = Column(String, nullable=True)
    interest_rate_min = Column(Float, nullable=True)
    interest_rate_max = Column(Float, nullable=True)
    term_months_min = Column(Integer, nullable=True)
    term_months_max = Column(Integer, nullable=True)
    currency = Column(String(3), nullable=False, default="JMD")
    requirements = Column(JSON, nullable=False, default=list)
    features = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)


class LoanApplicationRow(TimestampMixin, Base):
    __tablename__ = "loan_applications"

    id = Column(String, primary_key=True)
    loan_product_id = Column(String, nullable=False, index=True)
    applicant_id = Column(String, nullable=False, index=True)
    requested_amount = Column(Float, nullable=False)
    requested_term_months = Column(Integer, nullable=False)
    purpose = Column(Text, nullable=False)
    business_id = Column(String, nullable=True)
    business_type = Column(String, nullable=True)
    business_revenue = Column(Float, nullable=True)
    years_in_business = Column(Integer, nullable=True)
    employee_count = Column(Integer, nullable=True)
    collateral_description = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="draft", index=True)
    review_notes = Column(Text, nullable=True)
    approved_amount = Column(Float, nullable=True)
    approved_rate = Column(Float, nullable=True)
    approved_term_months = Column(Integer, nullable=True)
    documents = Column(JSON, nullable=False, default=list)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)


class ProjectRow(TimestampMixin, Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True)
    brand_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    manufacturer_id = Column(String, nullable=True, index=True)
    rfq_id = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=True)
    status = Column(String, nullable=False, default="draft")
    budget = Column(Float, nullable=True)
    currency = Column(String(3), nullable=False, default="USD")
    timeline = Column(String, nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=True)
    expected_completion_date = Column(DateTime(timezone=True), nullable=True)
    actual_completion_date = Column(DateTime(timezone=True), nullable=True)
    requirements = Column(JSON, nullable=True)
    milestones = Column(JSON, nullable=False, default=list)


class RfqRow(TimestampMixin, Base):
    __tablename__ = "rfqs"

    id = Column(String, primary_key=True)
    brand_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String, nullable=True)
    status = Column(String, nullable=False, default="active", index=True)
    budget = Column(Float, nullable=True)
    currency = Column(String(3), nullable=False, default="USD")
    quantity = Column(Integer, nullable=True)
    timeline = Column(String, nullable=True)
    requirements = Column(JSON, nullable=True)
    target_manufacturers = Column(JSON, nullable=False, default=list)
    attachments = Column(JSON, nullable=False, default=list)
    response_count = Column(Integer, nullable=False, default=0)
    expires_at = Column(DateTime(timezone=True), nullable=True)


class RfqResponseRow(TimestampMixin, Base):
    __tablename__ = "rfq_responses"

    id = Column(String, primary_key=True)
    rfq_id = Column(String, nullable=False, index=True)
    manufacturer_id = Column(String, nullable=False, index=True)
    proposed_price = Column(Float, nullable=True)
    currency = Column(String(3), nullable=False, default="USD")
    proposed_timeline = Column(String, nullable=True)
    message = Column(Text, nullable=True)
    attachments = Column(JSON, nullable=False, default=list)
    is_awarded = Column(Boolean, nullable=False, default=False)


class MessageRow(TimestampMixin, Base):
    __tablename__ = "messages"

    id = Column(String, primary_key=True)
    sender_id = Column(String, nullable=False, index=True)
    recipient_id = Column(String, nullable=False, index=True)
    content = Column(Text, nullable=False)
    subject = Column(String, nullable=True)
    thread_id = Column(String, nullable=True)
    status = Column(String, nullable=False, default="sent")
    attachments = Column(JSON, nullable=False, default=list)
    read_at = Column(DateTime(timezone=True), nullable=True)


class ReviewRow(TimestampMixin, Base):
    __tablename__ = "reviews"

    id = Column(String, primary_key=True)
    manufacturer_id = Column(String, nullable=False, index=True)
    reviewer_id = Column(String, nullable=False)
    rating = Column(Integer, nullable=False)
    project_id = Column(String, nullable=True)
    quality_rating = Column(Integer, nullable=True)
    communication_rating = Column(Integer, nullable=True)
    timeliness_rating = Column(Integer, nullable=True)
    testimonial = Column(Text, nullable=True)
    response = Column(Text, nullable=True)
    responded_at = Column(DateTime(timezone=True), nullable=True)


class CertificationRow(TimestampMixin, Base):
    __tablename__ = "certifications"

    id = Column(String, primary_key=True)
    manufacturer_id = Column(String, nullable=False, index=True)
    certification_type = Column(String, nullable=False)
    issuer = Column(String, nullable=False)
    custom_type = Column(String, nullable=True)
    issue_date = Column(DateTime(timezone=True), nullable=True)
    expiry_date = Column(DateTime(timezone=True), nullable=True)
    document_url = Column(String, nullable=True)
    verification_status = Column(String, nullable=False, default="pending")
    verified_at = Column(DateTime(timezone=True), nullable=True)


class PortfolioItemRow(TimestampMixin, Base):
    __tablename__ = "portfolio_items"

    id = Column(String, primary_key=True)
    manufacturer_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=True)
    images = Column(JSON, nullable=False, default=list)
    project_date = Column(DateTime(timezone=True), nullable=True)
    tags = Column(JSON, nullable=False, default=list)


class VerificationRequestRow(TimestampMixin, Base):
    __tablename__ = "verification_requests"

    id = Column(String, primary_key=True)
    manufacturer_id = Column(String, nullable=False, index=True)
    request_type = Column(String, nullable=False)
    status = Column(String, nullable=False, default="pending", index=True)
    documents = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    reviewed_by = Column(String, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    review_notes = Column(Text, nullable=True)


class FinancingLeadRow(TimestampMixin, Base):
    __tablename__ = "financing_leads"

    id = Column(String, primary_key=True)
    applicant_id = Column(String, nullable=False, index=True)
    company_name = Column(String, nullable=False)
    loan_amount = Column(Float, nullable=False)
    institution_id = Column(String, nullable=True, index=True)
    currency = Column(String(3), nullable=False, default="USD")
    loan_purpose = Column(Text, nullable=True)
    industry = Column(String, nullable=True)
    years_in_business = Column(Integer, nullable=True)
    annual_revenue = Column(Float, nullable=True)
    credit_score = Column(Integer, nullable=True)
    status = Column(String, nullable=False, default="new")
    contacted_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)


class ResourceRow(TimestampMixin, Base):
    __tablename__ = "resources"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    category = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    file_url = Column(String, nullable=True)
    file_type = Column(String, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    view_count = Column(Integer, nullable=False, default=0)
    download_count = Column(Integer, nullable=False, default=0)
    created_by = Column(String, nullable=True)


class NotificationRow(TimestampMixin, Base):
    __tablename__ = "notifications"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    action_url = Column(String, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(timezone=True), nullable=True)


class CourseRow(TimestampMixin, Base):
    __tablename__ = "courses"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    category = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    level = Column(String, nullable=False, default="beginner")
    duration = Column(Integer, nullable=True)
    thumbnail_url = Column(String, nullable=True)
    instructor_name = Column(String, nullable=True)
    instructor_bio = Column(Text, nullable=True)
    is_published = Column(Boolean, nullable=False, default=True)
    enrollment_count = Column(Integer, nullable=False, default=0)
    created_by = Column(String, nullable=True)


class CourseModuleRow(TimestampMixin, Base):
    __tablename__ = "course_modules"

    id = Column(String, primary_key=True)
    course_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    order_index = Column(Integer, nullable=False, default=0)


class CourseLessonRow(TimestampMixin, Base):
    __tablename__ = "course_lessons"

    id = Column(String, primary_key=True)
    module_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=True)
    video_url = Column(String, nullable=True)
    duration = Column(Integer, nullable=True)
    order_index = Column(Integer, nullable=False, default=0)
    resource_urls = Column(JSON, nullable=False, default=list)


class UserCourseEnrollmentRow(TimestampMixin, Base):
    __tablename__ = "user_course_enrollments"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    course_id = Column(String, nullable=False, index=True)
    enrolled_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    progress_percentage = Column(Integer, nullable=False, default=0)
    last_accessed_at = Column(DateTime(timezone=True), nullable=True)


class UserLessonProgressRow(TimestampMixin, Base):
    __tablename__ = "user_lesson_progress"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    lesson_id = Column(String, nullable=False, index=True)
    is_completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    time_spent = Column(Integer, nullable=False, default=0)


class RawMaterialRow(TimestampMixin, Base):
    __tablename__ = "raw_materials"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False, index=True)
    unit_of_measure = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    specifications = Column(JSON, nullable=True)
    image_url = Column(String, nullable=True)
    minimum_order_quantity = Column(Integer, nullable=True)
    average_price = Column(Integer, nullable=True)
    currency = Column(String(3), nullable=False, default="JMD")
    supplier_count = Column(Integer, nullable=False, default=0)


class RawMaterialSupplierRow(TimestampMixin, Base):
    __tablename__ = "raw_material_suppliers"

    id = Column(String, primary_key=True)
    raw_material_id = Column(String, nullable=False, index=True)
    manufacturer_id = Column(String, nullable=False, index=True)
    price_per_unit = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="JMD")
    minimum_order_quantity = Column(Integer, nullable=True)
    lead_time_days = Column(Integer, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)


class ProjectMaterialRow(TimestampMixin, Base):
    __tablename__ = "project_materials"

    id = Column(String, primary_key=True)
    project_id = Column(String, nullable=False, index=True)
    raw_material_id = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    supplier_id = Column(String, nullable=True)
    unit_price = Column(Integer, nullable=False, default=0)
    total_cost = Column(Integer, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="JMD")
    notes = Column(Text, nullable=True)


class SessionRow(Base):
    """Login sessions, used by ``DbSessionStore``."""

    __tablename__ = "sessions"

    sid = Column(String, primary_key=True)
    sess = Column(JSON, nullable=False)
    expire = Column(DateTime(timezone=True), nullable=False, index=True)


ROW_TYPES = {
    "users": UserRow,
    "manufacturers": ManufacturerRow,
    "brands": BrandRow,
    "creators": CreatorRow,
    "designers": DesignerRow,
    "financial_institutions": FinancialInstitutionRow,
    "loan_products": LoanProductRow,
    "loan_applications": LoanApplicationRow,
    "projects": ProjectRow,
    "rfqs": RfqRow,
    "rfq_responses": RfqResponseRow,
    "messages": MessageRow,
    "reviews": ReviewRow,
    "certifications": CertificationRow,
    "portfolio_items": PortfolioItemRow,
    "verification_requests": VerificationRequestRow,
    "financing_leads": FinancingLeadRow,
    "resources": ResourceRow,
    "notifications": NotificationRow,
    "courses": CourseRow,
    "course_modules": CourseModuleRow,
    "course_lessons": CourseLessonRow,
    "user_course_enrollments": UserCourseEnrollmentRow,
    "user_lesson_progress": UserLessonProgressRow,
    "raw_materials": RawMaterialRow,
    "raw_material_suppliers": RawMaterialSupplierRow,
    "project_materials": ProjectMaterialRow,
}
