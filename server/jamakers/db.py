"""
Storage contract for the marketplace and its in-memory implementation.

Every backend (in-memory, SQLAlchemy, Convex) shares the domain rules in
``BaseDbClient`` and only implements five table primitives: get a record by
id, select records by field equality, insert, replace and delete.
"""

from __future__ import annotations

import threading
import uuid
from contextlib import contextmanager
from dataclasses import fields, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterator, Mapping, Optional, Protocol

from shared.records import (
    Brand,
    Certification,
    Course,
    CourseDetail,
    CourseLesson,
    CourseModule,
    CourseProgress,
    Creator,
    Designer,
    FinancialInstitution,
    FinancingLead,
    LoanApplication,
    LoanProduct,
    Manufacturer,
    Message,
    MessageThread,
    ModuleWithLessons,
    Notification,
    PortfolioItem,
    Project,
    ProjectCost,
    ProjectMaterial,
    RawMaterial,
    RawMaterialSupplier,
    Resource,
    Review,
    Rfq,
    RfqResponse,
    User,
    UserCourseEnrollment,
    UserLessonProgress,
    VerificationRequest,
)
from shared.types import (
    OPEN_RFQ_STATUSES,
    LeadStatus,
    LoanApplicationStatus,
    MessageStatus,
    RfqStatus,
    VerificationStatus,
)

Values = Mapping[str, Any]

# Table name -> record type. Table names double as SQL table names and
# Convex module names.
TABLES: Dict[str, type] = {
    "users": User,
    "manufacturers": Manufacturer,
    "brands": Brand,
    "creators": Creator,
    "designers": Designer,
    "financial_institutions": FinancialInstitution,
    "loan_products": LoanProduct,
    "loan_applications": LoanApplication,
    "projects": Project,
    "rfqs": Rfq,
    "rfq_responses": RfqResponse,
    "messages": Message,
    "reviews": Review,
    "certifications": Certification,
    "portfolio_items": PortfolioItem,
    "verification_requests": VerificationRequest,
    "financing_leads": FinancingLead,
    "resources": Resource,
    "notifications": Notification,
    "courses": Course,
    "course_modules": CourseModule,
    "course_lessons": CourseLesson,
    "user_course_enrollments": UserCourseEnrollment,
    "user_lesson_progress": UserLessonProgress,
    "raw_materials": RawMaterial,
    "raw_material_suppliers": RawMaterialSupplier,
    "project_materials": ProjectMaterial,
}

_IMMUTABLE_FIELDS = {"id", "created_at"}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


_creation_lock = threading.Lock()
_last_created_at: Optional[datetime] = None


def next_created_at() -> datetime:
    """
    Current time, nudged forward so creation times in this process never repeat.

    ``get_*_by_user_id`` returns the newest record by ``created_at``; strictly
    increasing stamps keep two inserts in the same microsecond ordered.
    """
    global _last_created_at
    with _creation_lock:
        now = utcnow()
        if _last_created_at is not None and now <= _last_created_at:
            now = _last_created_at + timedelta(microseconds=1)
        _last_created_at = now
        return now


def new_id() -> str:
    return str(uuid.uuid4())


class DbClient(Protocol):
    """Interface for marketplace data access."""

    # Users
    def get_user(self, user_id: str) -> Optional[User]:
        ...

    def upsert_user(self, data: Values) -> User:
        ...

    def update_user(self, user_id: str, changes: Values) -> Optional[User]:
        ...

    def get_users_by_role(self, role: str) -> list[User]:
        ...

    # Manufacturers
    def get_manufacturer(self, manufacturer_id: str) -> Optional[Manufacturer]:
        ...

    def get_manufacturer_by_user_id(self, user_id: str) -> Optional[Manufacturer]:
        ...

    def create_manufacturer(self, data: Values) -> Manufacturer:
        ...

    def update_manufacturer(
        self, manufacturer_id: str, changes: Values
    ) -> Optional[Manufacturer]:
        ...

    def search_manufacturers(
        self,
        *,
        search: Optional[str] = None,
        location: Optional[str] = None,
        industry: Optional[str] = None,
        capability: Optional[str] = None,
        verified: Optional[bool] = None,
    ) -> list[Manufacturer]:
        ...

    # Brands
    def get_brand(self, brand_id: str) -> Optional[Brand]:
        ...

    def get_brand_by_user_id(self, user_id: str) -> Optional[Brand]:
        ...

    def create_brand(self, data: Values) -> Brand:
        ...

    def update_brand(self, brand_id: str, changes: Values) -> Optional[Brand]:
        ...

    # Creators and designers
    def get_creators(self, available_for_hire: Optional[bool] = None) -> list[Creator]:
        ...

    def get_creator(self, creator_id: str) -> Optional[Creator]:
        ...

    def get_creator_by_user_id(self, user_id: str) -> Optional[Creator]:
        ...

    def create_creator(self, data: Values) -> Creator:
        ...

    def update_creator(self, creator_id: str, changes: Values) -> Optional[Creator]:
        ...

    def get_designers(
        self, available_for_hire: Optional[bool] = None
    ) -> list[Designer]:
        ...

    def get_designer(self, designer_id: str) -> Optional[Designer]:
        ...

    def get_designer_by_user_id(self, user_id: str) -> Optional[Designer]:
        ...

    def create_designer(self, data: Values) -> Designer:
        ...

    def update_designer(
        self, designer_id: str, changes: Values
    ) -> Optional[Designer]:
        ...

    # Financial institutions and loans
    def get_financial_institutions(self) -> list[FinancialInstitution]:
        ...

    def get_financial_institution(
        self, institution_id: str
    ) -> Optional[FinancialInstitution]:
        ...

    def get_financial_institution_by_user_id(
        self, user_id: str
    ) -> Optional[FinancialInstitution]:
        ...

    def create_financial_institution(self, data: Values) -> FinancialInstitution:
        ...

    def update_financial_institution(
        self, institution_id: str, changes: Values
    ) -> Optional[FinancialInstitution]:
        ...

    def get_loan_products_by_lender(self, lender_id: str) -> list[LoanProduct]:
        ...

    def get_loan_product(self, product_id: str) -> Optional[LoanProduct]:
        ...

    def create_loan_product(self, data: Values) -> LoanProduct:
        ...

    def update_loan_product(
        self, product_id: str, changes: Values
    ) -> Optional[LoanProduct]:
        ...

    def get_loan_application(self, application_id: str) -> Optional[LoanApplication]:
        ...

    def get_loan_applications_by_applicant(
        self, applicant_id: str
    ) -> list[LoanApplication]:
        ...

    def get_loan_applications_by_institution(
        self, institution_id: str
    ) -> list[LoanApplication]:
        ...

    def create_loan_application(self, data: Values) -> LoanApplication:
        ...

    def update_loan_application(
        self, application_id: str, changes: Values
    ) -> Optional[LoanApplication]:
        ...

    # Projects
    def get_project(self, project_id: str) -> Optional[Project]:
        ...

    def get_projects_by_brand(self, brand_id: str) -> list[Project]:
        ...

    def get_projects_by_manufacturer(self, manufacturer_id: str) -> list[Project]:
        ...

    def create_project(self, data: Values) -> Project:
        ...

    def update_project(self, project_id: str, changes: Values) -> Optional[Project]:
        ...

    # RFQs
    def get_rfq(self, rfq_id: str) -> Optional[Rfq]:
        ...

    def get_rfqs_by_brand(self, brand_id: str) -> list[Rfq]:
        ...

    def get_active_rfqs(self) -> list[Rfq]:
        ...

    def create_rfq(self, data: Values) -> Rfq:
        ...

    def update_rfq(self, rfq_id: str, changes: Values) -> Optional[Rfq]:
        ...

    def delete_rfq(self, rfq_id: str) -> bool:
        ...

    def get_rfq_response(self, response_id: str) -> Optional[RfqResponse]:
        ...

    def get_rfq_responses_by_rfq(self, rfq_id: str) -> list[RfqResponse]:
        ...

    def get_rfq_responses_by_manufacturer(
        self, manufacturer_id: str
    ) -> list[RfqResponse]:
        ...

    def create_rfq_response(self, data: Values) -> RfqResponse:
        ...

    def award_rfq_response(self, response_id: str) -> Optional[RfqResponse]:
        ...

    # Messages
    def get_message(self, message_id: str) -> Optional[Message]:
        ...

    def get_messages_between_users(self, user_id: str, other_id: str) -> list[Message]:
        ...

    def get_message_threads(self, user_id: str) -> list[MessageThread]:
        ...

    def create_message(self, data: Values) -> Message:
        ...

    def mark_message_as_read(self, message_id: str) -> bool:
        ...

    # Reviews
    def get_review(self, review_id: str) -> Optional[Review]:
        ...

    def get_reviews_by_manufacturer(self, manufacturer_id: str) -> list[Review]:
        ...

    def create_review(self, data: Values) -> Review:
        ...

    def update_review_response(
        self, review_id: str, response: str
    ) -> Optional[Review]:
        ...

    # Certifications and portfolio
    def get_certifications_by_manufacturer(
        self, manufacturer_id: str
    ) -> list[Certification]:
        ...

    def create_certification(self, data: Values) -> Certification:
        ...

    def verify_certification(self, certification_id: str) -> Optional[Certification]:
        ...

    def get_portfolio_items_by_manufacturer(
        self, manufacturer_id: str
    ) -> list[PortfolioItem]:
        ...

    def create_portfolio_item(self, data: Values) -> PortfolioItem:
        ...

    # Verification
    def get_verification_request(
        self, request_id: str
    ) -> Optional[VerificationRequest]:
        ...

    def get_pending_verifications(self) -> list[VerificationRequest]:
        ...

    def create_verification_request(self, data: Values) -> VerificationRequest:
        ...

    def update_verification_status(
        self,
        request_id: str,
        status: str,
        reviewed_by: str,
        notes: Optional[str] = None,
    ) -> Optional[VerificationRequest]:
        ...

    # Financing leads
    def get_financing_lead(self, lead_id: str) -> Optional[FinancingLead]:
        ...

    def get_financing_leads_by_institution(
        self, institution_id: str
    ) -> list[FinancingLead]:
        ...

    def create_financing_lead(self, data: Values) -> FinancingLead:
        ...

    def update_financing_lead(
        self, lead_id: str, changes: Values
    ) -> Optional[FinancingLead]:
        ...

    # Resources
    def get_resources(self, category: Optional[str] = None) -> list[Resource]:
        ...

    def get_resource(self, resource_id: str) -> Optional[Resource]:
        ...

    def create_resource(self, data: Values) -> Resource:
        ...

    def increment_resource_view(self, resource_id: str) -> bool:
        ...

    def increment_resource_download(self, resource_id: str) -> bool:
        ...

    # Notifications
    def get_notification(self, notification_id: str) -> Optional[Notification]:
        ...

    def get_notifications_by_user(self, user_id: str) -> list[Notification]:
        ...

    def create_notification(self, data: Values) -> Notification:
        ...

    def mark_notification_as_read(self, notification_id: str) -> bool:
        ...

    def mark_all_notifications_as_read(self, user_id: str) -> int:
        ...

    # Learning management
    def get_courses(self, category: Optional[str] = None) -> list[Course]:
        ...

    def get_course(self, course_id: str) -> Optional[Course]:
        ...

    def create_course(self, data: Values) -> Course:
        ...

    def create_course_module(self, data: Values) -> CourseModule:
        ...

    def create_course_lesson(self, data: Values) -> CourseLesson:
        ...

    def get_course_with_modules_and_lessons(
        self, course_id: str
    ) -> Optional[CourseDetail]:
        ...

    def enroll_in_course(self, user_id: str, course_id: str) -> UserCourseEnrollment:
        ...

    def get_course_progress(self, user_id: str, course_id: str) -> CourseProgress:
        ...

    def mark_lesson_complete(self, user_id: str, lesson_id: str) -> UserLessonProgress:
        ...

    def get_user_enrollments(self, user_id: str) -> list[UserCourseEnrollment]:
        ...

    # Raw materials and project bills of materials
    def get_raw_materials(self, category: Optional[str] = None) -> list[RawMaterial]:
        ...

    def get_raw_material(self, material_id: str) -> Optional[RawMaterial]:
        ...

    def create_raw_material(self, data: Values) -> RawMaterial:
        ...

    def get_raw_material_suppliers(
        self, material_id: str
    ) -> list[RawMaterialSupplier]:
        ...

    def create_raw_material_supplier(self, data: Values) -> RawMaterialSupplier:
        ...

    def get_project_materials(self, project_id: str) -> list[ProjectMaterial]:
        ...

    def get_project_material(self, material_id: str) -> Optional[ProjectMaterial]:
        ...

    def add_material_to_project(self, data: Values) -> ProjectMaterial:
        ...

    def update_project_material_quantity(
        self, material_id: str, quantity: int
    ) -> Optional[ProjectMaterial]:
        ...

    def remove_material_from_project(self, material_id: str) -> bool:
        ...

    def get_project_materials_cost(self, project_id: str) -> ProjectCost:
        ...


class BaseDbClient:
    """
    Domain rules shared by every backend.

    Subclasses provide ``_get``, ``_select``, ``_insert``, ``_replace``,
    ``_delete`` and ``_atomic``. ``_select`` returns records in creation
    order.
    """

    backend_name = "base"

    # Table primitives

    def _get(self, table: str, record_id: str) -> Optional[Any]:
        raise NotImplementedError

    def _select(self, table: str, **equals: Any) -> list:
        raise NotImplementedError

    def _insert(self, table: str, record: Any) -> Any:
        raise NotImplementedError

    def _replace(self, table: str, record: Any) -> Any:
        raise NotImplementedError

    def _delete(self, table: str, record_id: str) -> bool:
        raise NotImplementedError

    @contextmanager
    def _atomic(self) -> Iterator[None]:
        yield

    # Generic helpers

    def _create(self, table: str, data: Values) -> Any:
        record_type = TABLES[table]
        known = {f.name for f in fields(record_type)}
        values = {
            key: value
            for key, value in data.items()
            if value is not None and key in known and key != "created_at"
        }
        values.setdefault("id", new_id())
        now = next_created_at()
        values["created_at"] = now
        values["updated_at"] = now
        return self._insert(table, record_type(**values))

    def _update(self, table: str, record_id: str, changes: Values) -> Optional[Any]:
        with self._atomic():
            current = self._get(table, record_id)
            if current is None:
                return None
            known = {f.name for f in fields(current)}
            values = {
                key: value
                for key, value in changes.items()
                if key in known and key not in _IMMUTABLE_FIELDS
            }
            values["updated_at"] = utcnow()
            return self._replace(table, replace(current, **values))

    def _latest(self, table: str, **equals: Any) -> Optional[Any]:
        records = self._select(table, **equals)
        return records[-1] if records else None

    def _newest_first(self, table: str, **equals: Any) -> list:
        return list(reversed(self._select(table, **equals)))

    # Users

    def get_user(self, user_id: str) -> Optional[User]:
        return self._get("users", user_id)

    def upsert_user(self, data: Values) -> User:
        with self._atomic():
            existing = self._get("users", data["id"])
            if existing is None:
                return self._create("users", data)
            changes = {key: value for key, value in data.items() if value is not None}
            return self._update("users", existing.id, changes)

    def update_user(self, user_id: str, changes: Values) -> Optional[User]:
        return self._update("users", user_id, changes)

    def get_users_by_role(self, role: str) -> list[User]:
        return self._select("users", role=role)

    # Manufacturers

    def get_manufacturer(self, manufacturer_id: str) -> Optional[Manufacturer]:
        return self._get("manufacturers", manufacturer_id)

    def get_manufacturer_by_user_id(self, user_id: str) -> Optional[Manufacturer]:
        return self._latest("manufacturers", user_id=user_id)

    def create_manufacturer(self, data: Values) -> Manufacturer:
        return self._create("manufacturers", data)

    def update_manufacturer(
        self, manufacturer_id: str, changes: Values
    ) -> Optional[Manufacturer]:
        return self._update("manufacturers", manufacturer_id, changes)

    def search_manufacturers(
        self,
        *,
        search: Optional[str] = None,
        location: Optional[str] = None,
        industry: Optional[str] = None,
        capability: Optional[str] = None,
        verified: Optional[bool] = None,
    ) -> list[Manufacturer]:
        results = []
        for manufacturer in self._select("manufacturers"):
            if search:
                haystack = " ".join(
                    filter(None, [manufacturer.business_name, manufacturer.description])
                ).lower()
                if search.lower() not in haystack:
                    continue
            if location and location.lower() not in (manufacturer.location or "").lower():
                continue
            if industry and industry.lower() not in _lowered(manufacturer.industries):
                continue
            if capability and capability.lower() not in _lowered(
                manufacturer.capabilities
            ):
                continue
            if verified is not None:
                is_verified = (
                    manufacturer.verification_status == VerificationStatus.APPROVED.value
                )
                if is_verified != verified:
                    continue
            results.append(manufacturer)
        return results

    # Brands

    def get_brand(self, brand_id: str) -> Optional[Brand]:
        return self._get("brands", brand_id)

    def get_brand_by_user_id(self, user_id: str) -> Optional[Brand]:
        return self._latest("brands", user_id=user_id)

    def create_brand(self, data: Values) -> Brand:
        return self._create("brands", data)

    def update_brand(self, brand_id: str, changes: Values) -> Optional[Brand]:
        return self._update("brands", brand_id, changes)

    # Creators and designers

    def get_creators(self, available_for_hire: Optional[bool] = None) -> list[Creator]:
        if available_for_hire is None:
            return self._select("creators")
        return self._select("creators", available_for_hire=available_for_hire)

    def get_creator(self, creator_id: str) -> Optional[Creator]:
        return self._get("creators", creator_id)

    def get_creator_by_user_id(self, user_id: str) -> Optional[Creator]:
        return self._latest("creators", user_id=user_id)

    def create_creator(self, data: Values) -> Creator:
        return self._create("creators", data)

    def update_creator(self, creator_id: str, changes: Values) -> Optional[Creator]:
        return self._update("creators", creator_id, changes)

    def get_designers(
        self, available_for_hire: Optional[bool] = None
    ) -> list[Designer]:
        if available_for_hire is None:
            return self._select("designers")
        return self._select("designers", available_for_hire=available_for_hire)

    def get_designer(self, designer_id: str) -> Optional[Designer]:
        return self._get("designers", designer_id)

    def get_designer_by_user_id(self, user_id: str) -> Optional[Designer]:
        return self._latest("designers", user_id=user_id)

    def create_designer(self, data: Values) -> Designer:
        return self._create("designers", data)

    def update_designer(
        self, designer_id: str, changes: Values
    ) -> Optional[Designer]:
        return self._update("designers", designer_id, changes)

    # Financial institutions and loans

    def get_financial_institutions(self) -> list[FinancialInstitution]:
        return self._select("financial_institutions")

    def get_financial_institution(
        self, institution_id: str
    ) -> Optional[FinancialInstitution]:
        return self._get("financial_institutions", institution_id)

    def get_financial_institution_by_user_id(
        self, user_id: str
    ) -> Optional[FinancialInstitution]:
        return self._latest("financial_institutions", user_id=user_id)

    def create_financial_institution(self, data: Values) -> FinancialInstitution:
        return self._create("financial_institutions", data)

    def update_financial_institution(
        self, institution_id: str, changes: Values
    ) -> Optional[FinancialInstitution]:
        return self._update("financial_institutions", institution_id, changes)

    def get_loan_products_by_lender(self, lender_id: str) -> list[LoanProduct]:
        return self._select("loan_products", lender_id=lender_id)

    def get_loan_product(self, product_id: str) -> Optional[LoanProduct]:
        return self._get("loan_products", product_id)

    def create_loan_product(self, data: Values) -> LoanProduct:
        return self._create("loan_products", data)

    def update_loan_product(
        self, product_id: str, changes: Values
    ) -> Optional[LoanProduct]:
        return self._update("loan_products", product_id, changes)

    def get_loan_application(self, application_id: str) -> Optional[LoanApplication]:
        return self._get("loan_applications", application_id)

    def get_loan_applications_by_applicant(
        self, applicant_id: str
    ) -> list[LoanApplication]:
        return self._newest_first("loan_applications", applicant_id=applicant_id)

    def get_loan_applications_by_institution(
        self, institution_id: str
    ) -> list[LoanApplication]:
        applications: list[LoanApplication] = []
        for product in self._select("loan_products", lender_id=institution_id):
            applications.extend(
                self._select("loan_applications", loan_product_id=product.id)
            )
        return sorted(applications, key=_created_key, reverse=True)

    def create_loan_application(self, data: Values) -> LoanApplication:
        values = dict(data)
        if values.get("status") == LoanApplicationStatus.SUBMITTED.value:
            values.setdefault("submitted_at", utcnow())
        return self._create("loan_applications", values)

    def update_loan_application(
        self, application_id: str, changes: Values
    ) -> Optional[LoanApplication]:
        values = dict(changes)
        status = values.get("status")
        if status == LoanApplicationStatus.SUBMITTED.value:
            values.setdefault("submitted_at", utcnow())
        elif status in (
            LoanApplicationStatus.APPROVED.value,
            LoanApplicationStatus.REJECTED.value,
        ):
            values.setdefault("reviewed_at", utcnow())
        return self._update("loan_applications", application_id, values)

    # Projects

    def get_project(self, project_id: str) -> Optional[Project]:
        return self._get("projects", project_id)

    def get_projects_by_brand(self, brand_id: str) -> list[Project]:
        return self._newest_first("projects", brand_id=brand_id)

    def get_projects_by_manufacturer(self, manufacturer_id: str) -> list[Project]:
        return self._newest_first("projects", manufacturer_id=manufacturer_id)

    def create_project(self, data: Values) -> Project:
        return self._create("projects", data)

    def update_project(self, project_id: str, changes: Values) -> Optional[Project]:
        return self._update("projects", project_id, changes)

    # RFQs

    def get_rfq(self, rfq_id: str) -> Optional[Rfq]:
        return self._get("rfqs", rfq_id)

    def get_rfqs_by_brand(self, brand_id: str) -> list[Rfq]:
        return self._newest_first("rfqs", brand_id=brand_id)

    def get_active_rfqs(self) -> list[Rfq]:
        now = utcnow()
        return [
            rfq
            for rfq in self._newest_first("rfqs")
            if rfq.status in OPEN_RFQ_STATUSES
            and (rfq.expires_at is None or rfq.expires_at > now)
        ]

    def create_rfq(self, data: Values) -> Rfq:
        return self._create("rfqs", data)

    def update_rfq(self, rfq_id: str, changes: Values) -> Optional[Rfq]:
        return self._update("rfqs", rfq_id, changes)

    def delete_rfq(self, rfq_id: str) -> bool:
        with self._atomic():
            for response in self._select("rfq_responses", rfq_id=rfq_id):
                self._delete("rfq_responses", response.id)
            return self._delete("rfqs", rfq_id)

    def get_rfq_response(self, response_id: str) -> Optional[RfqResponse]:
        return self._get("rfq_responses", response_id)

    def get_rfq_responses_by_rfq(self, rfq_id: str) -> list[RfqResponse]:
        return self._select("rfq_responses", rfq_id=rfq_id)

    def get_rfq_responses_by_manufacturer(
        self, manufacturer_id: str
    ) -> list[RfqResponse]:
        return self._newest_first("rfq_responses", manufacturer_id=manufacturer_id)

    def create_rfq_response(self, data: Values) -> RfqResponse:
        with self._atomic():
            response = self._create("rfq_responses", data)
            rfq = self._get("rfqs", response.rfq_id)
            if rfq is not None:
                self._update(
                    "rfqs", rfq.id, {"response_count": rfq.response_count + 1}
                )
            return response

    def award_rfq_response(self, response_id: str) -> Optional[RfqResponse]:
        with self._atomic():
            awarded = self._update("rfq_responses", response_id, {"is_awarded": True})
            if awarded is None:
                return None
            self._update("rfqs", awarded.rfq_id, {"status": RfqStatus.AWARDED.value})
            return awarded

    # Messages

    def get_message(self, message_id: str) -> Optional[Message]:
        return self._get("messages", message_id)

    def get_messages_between_users(self, user_id: str, other_id: str) -> list[Message]:
        messages = self._select("messages", sender_id=user_id, recipient_id=other_id)
        if other_id != user_id:
            messages += self._select(
                "messages", sender_id=other_id, recipient_id=user_id
            )
        return sorted(messages, key=_created_key)

    def get_message_threads(self, user_id: str) -> list[MessageThread]:
        threads: Dict[str, MessageThread] = {}
        sent = self._select("messages", sender_id=user_id)
        received = self._select("messages", recipient_id=user_id)
        for message in sorted(sent + received, key=_created_key):
            counterpart = (
                message.recipient_id
                if message.sender_id == user_id
                else message.sender_id
            )
            thread = threads.get(counterpart)
            if thread is None:
                thread = threads[counterpart] = MessageThread(
                    counterpart_id=counterpart, last_message=message
                )
            thread.last_message = message
            if (
                message.recipient_id == user_id
                and message.status != MessageStatus.READ.value
            ):
                thread.unread_count += 1
        return sorted(
            threads.values(),
            key=lambda thread: _created_key(thread.last_message),
            reverse=True,
        )

    def create_message(self, data: Values) -> Message:
        return self._create("messages", data)

    def mark_message_as_read(self, message_id: str) -> bool:
        updated = self._update(
            "messages",
            message_id,
            {"status": MessageStatus.READ.value, "read_at": utcnow()},
        )
        return updated is not None

    # Reviews

    def get_review(self, review_id: str) -> Optional[Review]:
        return self._get("reviews", review_id)

    def get_reviews_by_manufacturer(self, manufacturer_id: str) -> list[Review]:
        return self._newest_first("reviews", manufacturer_id=manufacturer_id)

    def create_review(self, data: Values) -> Review:
        with self._atomic():
            review = self._create("reviews", data)
            reviews = self._select("reviews", manufacturer_id=review.manufacturer_id)
            average = round(sum(r.rating for r in reviews) / len(reviews), 2)
            self._update(
                "manufacturers",
                review.manufacturer_id,
                {"average_rating": average, "total_reviews": len(reviews)},
            )
            return review

    def update_review_response(
        self, review_id: str, response: str
    ) -> Optional[Review]:
        return self._update(
            "reviews", review_id, {"response": response, "responded_at": utcnow()}
        )

    # Certifications and portfolio

    def get_certifications_by_manufacturer(
        self, manufacturer_id: str
    ) -> list[Certification]:
        return self._select("certifications", manufacturer_id=manufacturer_id)

    def create_certification(self, data: Values) -> Certification:
        return self._create("certifications", data)

    def verify_certification(self, certification_id: str) -> Optional[Certification]:
        return self._update(
            "certifications",
            certification_id,
            {
                "verification_status": VerificationStatus.APPROVED.value,
                "verified_at": utcnow(),
            },
        )

    def get_portfolio_items_by_manufacturer(
        self, manufacturer_id: str
    ) -> list[PortfolioItem]:
        return self._newest_first("portfolio_items", manufacturer_id=manufacturer_id)

    def create_portfolio_item(self, data: Values) -> PortfolioItem:
        return self._create("portfolio_items", data)

    # Verification

    def get_verification_request(
        self, request_id: str
    ) -> Optional[VerificationRequest]:
        return self._get("verification_requests", request_id)

    def get_pending_verifications(self) -> list[VerificationRequest]:
        return self._select(
            "verification_requests", status=VerificationStatus.PENDING.value
        )

    def create_verification_request(self, data: Values) -> VerificationRequest:
        return self._create("verification_requests", data)

    def update_verification_status(
        self,
        request_id: str,
        status: str,
        reviewed_by: str,
        notes: Optional[str] = None,
    ) -> Optional[VerificationRequest]:
        now = utcnow()
        with self._atomic():
            request = self._update(
                "verification_requests",
                request_id,
                {
                    "status": status,
                    "reviewed_by": reviewed_by,
                    "reviewed_at": now,
                    "review_notes": notes,
                },
            )
            if request is None:
                return None
            changes: Dict[str, Any] = {"verification_status": status}
            if status == VerificationStatus.APPROVED.value:
                changes["verified_at"] = now
            self._update("manufacturers", request.manufacturer_id, changes)
            return request

    # Financing leads

    def get_financing_lead(self, lead_id: str) -> Optional[FinancingLead]:
        return self._get("financing_leads", lead_id)

    def get_financing_leads_by_institution(
        self, institution_id: str
    ) -> list[FinancingLead]:
        return self._newest_first("financing_leads", institution_id=institution_id)

    def create_financing_lead(self, data: Values) -> FinancingLead:
        return self._create("financing_leads", data)

    def update_financing_lead(
        self, lead_id: str, changes: Values
    ) -> Optional[FinancingLead]:
        values = dict(changes)
        if values.get("status") == LeadStatus.CONTACTED.value:
            values.setdefault("contacted_at", utcnow())
        return self._update("financing_leads", lead_id, values)

    # Resources

    def get_resources(self, category: Optional[str] = None) -> list[Resource]:
        if category:
            return self._select("resources", category=category)
        return self._select("resources")

    def get_resource(self, resource_id: str) -> Optional[Resource]:
        return self._get("resources", resource_id)

    def create_resource(self, data: Values) -> Resource:
        return self._create("resources", data)

    def increment_resource_view(self, resource_id: str) -> bool:
        with self._atomic():
            resource = self._get("resources", resource_id)
            if resource is None:
                return False
            self._update(
                "resources", resource_id, {"view_count": resource.view_count + 1}
            )
            return True

    def increment_resource_download(self, resource_id: str) -> bool:
        with self._atomic():
            resource = self._get("resources", resource_id)
            if resource is None:
                return False
            self._update(
                "resources",
                resource_id,
                {"download_count": resource.download_count + 1},
            )
            return True

    # Notifications

    def get_notification(self, notification_id: str) -> Optional[Notification]:
        return self._get("notifications", notification_id)

    def get_notifications_by_user(self, user_id: str) -> list[Notification]:
        return self._newest_first("notifications", user_id=user_id)

    def create_notification(self, data: Values) -> Notification:
        return self._create("notifications", data)

    def mark_notification_as_read(self, notification_id: str) -> bool:
        updated = self._update(
            "notifications", notification_id, {"is_read": True, "read_at": utcnow()}
        )
        return updated is not None

    def mark_all_notifications_as_read(self, user_id: str) -> int:
        now = utcnow()
        with self._atomic():
            unread = self._select("notifications", user_id=user_id, is_read=False)
            for notification in unread:
                self._update(
                    "notifications", notification.id, {"is_read": True, "read_at": now}
                )
            return len(unread)

    # Learning management

    def get_courses(self, category: Optional[str] = None) -> list[Course]:
        if category:
            return self._select("courses", is_published=True, category=category)
        return self._select("courses", is_published=True)

    def get_course(self, course_id: str) -> Optional[Course]:
        return self._get("courses", course_id)

    def create_course(self, data: Values) -> Course:
        return self._create("courses", data)

    def create_course_module(self, data: Values) -> CourseModule:
        return self._create("course_modules", data)

    def create_course_lesson(self, data: Values) -> CourseLesson:
        return self._create("course_lessons", data)

    def get_course_with_modules_and_lessons(
        self, course_id: str
    ) -> Optional[CourseDetail]:
        course = self._get("courses", course_id)
        if course is None:
            return None
        modules = sorted(
            self._select("course_modules", course_id=course_id),
            key=lambda module: module.order_index,
        )
        return CourseDetail(
            course=course,
            modules=[
                ModuleWithLessons(
                    module=module,
                    lessons=sorted(
                        self._select("course_lessons", module_id=module.id),
                        key=lambda lesson: lesson.order_index,
                    ),
                )
                for module in modules
            ],
        )

    def enroll_in_course(self, user_id: str, course_id: str) -> UserCourseEnrollment:
        with self._atomic():
            existing = self._latest(
                "user_course_enrollments", user_id=user_id, course_id=course_id
            )
            if existing is not None:
                return existing
            now = utcnow()
            enrollment = self._create(
                "user_course_enrollments",
                {
                    "user_id": user_id,
                    "course_id": course_id,
                    "enrolled_at": now,
                    "last_accessed_at": now,
                },
            )
            course = self._get("courses", course_id)
            if course is not None:
                self._update(
                    "courses",
                    course_id,
                    {"enrollment_count": course.enrollment_count + 1},
                )
            return enrollment

    def get_course_progress(self, user_id: str, course_id: str) -> CourseProgress:
        lesson_ids = self._course_lesson_ids(course_id)
        completed = self._completed_lessons(user_id, lesson_ids)
        enrollment = self._latest(
            "user_course_enrollments", user_id=user_id, course_id=course_id
        )
        return CourseProgress(
            course_id=course_id,
            progress_percentage=_percentage(completed, len(lesson_ids)),
            completed_lessons=completed,
            total_lessons=len(lesson_ids),
            enrolled=enrollment is not None,
        )

    def mark_lesson_complete(self, user_id: str, lesson_id: str) -> UserLessonProgress:
        now = utcnow()
        with self._atomic():
            progress = self._latest(
                "user_lesson_progress", user_id=user_id, lesson_id=lesson_id
            )
            if progress is None:
                progress = self._create(
                    "user_lesson_progress",
                    {
                        "user_id": user_id,
                        "lesson_id": lesson_id,
                        "is_completed": True,
                        "completed_at": now,
                    },
                )
            elif not progress.is_completed:
                progress = self._update(
                    "user_lesson_progress",
                    progress.id,
                    {"is_completed": True, "completed_at": now},
                )
            self._refresh_enrollment(user_id, lesson_id, now)
            return progress

    def get_user_enrollments(self, user_id: str) -> list[UserCourseEnrollment]:
        return self._newest_first("user_course_enrollments", user_id=user_id)

    def _course_lesson_ids(self, course_id: str) -> set[str]:
        lesson_ids: set[str] = set()
        for module in self._select("course_modules", course_id=course_id):
            lesson_ids.update(
                lesson.id
                for lesson in self._select("course_lessons", module_id=module.id)
            )
        return lesson_ids

    def _completed_lessons(self, user_id: str, lesson_ids: set[str]) -> int:
        return sum(
            1
            for progress in self._select(
                "user_lesson_progress", user_id=user_id, is_completed=True
            )
            if progress.lesson_id in lesson_ids
        )

    def _refresh_enrollment(self, user_id: str, lesson_id: str, now: datetime) -> None:
        lesson = self._get("course_lessons", lesson_id)
        if lesson is None:
            return
        module = self._get("course_modules", lesson.module_id)
        if module is None:
            return
        enrollment = self._latest(
            "user_course_enrollments", user_id=user_id, course_id=module.course_id
        )
        if enrollment is None:
            return
        lesson_ids = self._course_lesson_ids(module.course_id)
        percentage = _percentage(
            self._completed_lessons(user_id, lesson_ids), len(lesson_ids)
        )
        changes: Dict[str, Any] = {
            "progress_percentage": percentage,
            "last_accessed_at": now,
        }
        if percentage >= 100 and enrollment.completed_at is None:
            changes["completed_at"] = now
        self._update("user_course_enrollments", enrollment.id, changes)

    # Raw materials and project bills of materials

    def get_raw_materials(self, category: Optional[str] = None) -> list[RawMaterial]:
        if category:
            return self._select("raw_materials", category=category)
        return self._select("raw_materials")

    def get_raw_material(self, material_id: str) -> Optional[RawMaterial]:
        return self._get("raw_materials", material_id)

    def create_raw_material(self, data: Values) -> RawMaterial:
        return self._create("raw_materials", data)

    def get_raw_material_suppliers(
        self, material_id: str
    ) -> list[RawMaterialSupplier]:
        return sorted(
            self._select("raw_material_suppliers", raw_material_id=material_id),
            key=lambda supplier: supplier.price_per_unit,
        )

    def create_raw_material_supplier(self, data: Values) -> RawMaterialSupplier:
        with self._atomic():
            supplier = self._create("raw_material_suppliers", data)
            material = self._get("raw_materials", supplier.raw_material_id)
            if material is not None:
                self._update(
                    "raw_materials",
                    material.id,
                    {"supplier_count": material.supplier_count + 1},
                )
            return supplier

    def get_project_materials(self, project_id: str) -> list[ProjectMaterial]:
        return self._select("project_materials", project_id=project_id)

    def get_project_material(self, material_id: str) -> Optional[ProjectMaterial]:
        return self._get("project_materials", material_id)

    def add_material_to_project(self, data: Values) -> ProjectMaterial:
        values = dict(data)
        with self._atomic():
            if values.get("unit_price") is None:
                values["unit_price"] = self._default_unit_price(
                    values["raw_material_id"], values.get("supplier_id")
                )
            values["total_cost"] = values["quantity"] * values["unit_price"]
            return self._create("project_materials", values)

    def update_project_material_quantity(
        self, material_id: str, quantity: int
    ) -> Optional[ProjectMaterial]:
        with self._atomic():
            current = self._get("project_materials", material_id)
            if current is None:
                return None
            return self._update(
                "project_materials",
                material_id,
                {"quantity": quantity, "total_cost": quantity * current.unit_price},
            )

    def remove_material_from_project(self, material_id: str) -> bool:
        return self._delete("project_materials", material_id)

    def get_project_materials_cost(self, project_id: str) -> ProjectCost:
        materials = self._select("project_materials", project_id=project_id)
        currency = materials[0].currency if materials else "JMD"
        return ProjectCost(
            total_cost=sum(material.total_cost for material in materials),
            currency=currency,
        )

    def _default_unit_price(
        self, raw_material_id: str, supplier_id: Optional[str]
    ) -> int:
        if supplier_id:
            supplier = self._get("raw_material_suppliers", supplier_id)
            if supplier is not None:
                return supplier.price_per_unit
        material = self._get("raw_materials", raw_material_id)
        if material is not None and material.average_price is not None:
            return material.average_price
        return 0


class InMemoryDbClient(BaseDbClient):
    """
    Process-local store for development and tests.

    Not suitable for multi-instance deployments: every process holds its own
    copy of the data.
    """

    backend_name = "memory"

    def __init__(self, seed: bool = True):
        self.tables: Dict[str, Dict[str, Any]] = {name: {} for name in TABLES}
        self._lock = threading.RLock()
        if seed:
            from jamakers.seed import seed_demo_data

            seed_demo_data(self)

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            for rows in self.tables.values():
                rows.clear()

    @contextmanager
    def _atomic(self) -> Iterator[None]:
        with self._lock:
            yield

    def _get(self, table: str, record_id: str) -> Optional[Any]:
        return self.tables[table].get(record_id)

    def _select(self, table: str, **equals: Any) -> list:
        with self._lock:
            return [
                record
                for record in self.tables[table].values()
                if all(getattr(record, key) == value for key, value in equals.items())
            ]

    def _insert(self, table: str, record: Any) -> Any:
        with self._lock:
            self.tables[table][record.id] = record
        return record

    def _replace(self, table: str, record: Any) -> Any:
        with self._lock:
            self.tables[table][record.id] = record
        return record

    def _delete(self, table: str, record_id: str) -> bool:
        with self._lock:
            return self.tables[table].pop(record_id, None) is not None


def _lowered(values: Optional[list[str]]) -> list[str]:
    return [value.lower() for value in values or []]


def _created_key(record: Any) -> datetime:
    return record.created_at or datetime.min.replace(tzinfo=timezone.utc)


def _percentage(done: int, total: int) -> int:
    if not total:
        return 0
    return round(100 * done / total)
