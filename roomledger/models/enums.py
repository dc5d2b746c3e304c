from enum import Enum


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    RENTER = "RENTER"


class RoomStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    RESERVED = "RESERVED"
    MAINTENANCE = "MAINTENANCE"


class ContractStatus(str, Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    TERMINATED = "TERMINATED"


class ContractType(str, Enum):
    LONG_TERM = "LONG_TERM"
    SHORT_TERM = "SHORT_TERM"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"
    CREDIT_CARD = "CREDIT_CARD"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    PARTIAL = "PARTIAL"


class ExpenseCategory(str, Enum):
    MAINTENANCE = "MAINTENANCE"
    UTILITIES = "UTILITIES"
    TAXES = "TAXES"
    INSURANCE = "INSURANCE"
    SALARY = "SALARY"
    SUPPLIES = "SUPPLIES"
    MARKETING = "MARKETING"
    OTHER = "OTHER"
    # capital spending, counted as investment by ROI figures
    PROPERTY_PURCHASE = "PROPERTY_PURCHASE"
    RENOVATION = "RENOVATION"
    IMPROVEMENT = "IMPROVEMENT"


class RecurringFrequency(str, Enum):
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


class MaintenanceCategory(str, Enum):
    PLUMBING = "PLUMBING"
    ELECTRICAL = "ELECTRICAL"
    HVAC = "HVAC"
    APPLIANCES = "APPLIANCES"
    CLEANING = "CLEANING"
    REPAIRS = "REPAIRS"
    OTHER = "OTHER"


class MaintenancePriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class MaintenanceStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class NotificationType(str, Enum):
    PAYMENT_DUE = "PAYMENT_DUE"
    PAYMENT_OVERDUE = "PAYMENT_OVERDUE"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    MAINTENANCE_REQUEST = "MAINTENANCE_REQUEST"
    MAINTENANCE_UPDATE = "MAINTENANCE_UPDATE"
    MAINTENANCE_COMPLETED = "MAINTENANCE_COMPLETED"
    MAINTENANCE_ASSIGNED = "MAINTENANCE_ASSIGNED"
    MAINTENANCE_EMERGENCY = "MAINTENANCE_EMERGENCY"
    MAINTENANCE_REMINDER = "MAINTENANCE_REMINDER"
    CONTRACT_EXPIRING = "CONTRACT_EXPIRING"
    CONTRACT_EXPIRED = "CONTRACT_EXPIRED"
    SYSTEM_ALERT = "SYSTEM_ALERT"
    GENERAL = "GENERAL"


class NotificationStatus(str, Enum):
    UNREAD = "UNREAD"
    READ = "READ"
    ARCHIVED = "ARCHIVED"


class NotificationPriority(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class DocumentType(str, Enum):
    ID_CARD = "ID_CARD"
    PASSPORT = "PASSPORT"
    CONTRACT = "CONTRACT"
    OTHER = "OTHER"


class DocumentEntityType(str, Enum):
    PROPERTY = "PROPERTY"
    ROOM = "ROOM"
    RENTER = "RENTER"
    CONTRACT = "CONTRACT"


def values(enum_cls):
    return [member.value for member in enum_cls]
