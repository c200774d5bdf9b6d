from enum import Enum


class UserRole(str, Enum):
    BRAND = "brand"
    MANUFACTURER = "manufacturer"
    SERVICE_PROVIDER = "service_provider"
    FINANCIAL_INSTITUTION = "financial_institution"
    CREATOR = "creator"
    DESIGNER = "designer"
    ADMIN = "admin"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ProjectStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RfqStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    REVIEWING = "reviewing"
    AWARDED = "awarded"
    CLOSED = "closed"
    EXPIRED = "expired"


class MessageStatus(str, Enum):
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"


class LeadStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class CertificationType(str, Enum):
    HACCP = "haccp"
    GMP = "gmp"
    ORGANIC = "organic"
    ISO = "iso"
    FDA = "fda"
    OTHER = "other"


class LoanApplicationStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    DISBURSED = "disbursed"


# RFQs in these states still accept responses from manufacturers.
OPEN_RFQ_STATUSES = (RfqStatus.ACTIVE.value, RfqStatus.REVIEWING.value)
