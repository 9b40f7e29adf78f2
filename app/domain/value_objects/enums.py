"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class RequestStatus(str, Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Outcome(str, Enum):
    """Result of a professional's response to an urgent request."""

    ACCEPTED = "accepted"
    REJECTED = "rejected"
    ALREADY_ASSIGNED = "AlreadyAssigned"
    ALREADY_RESOLVED = "AlreadyResolved"


class NotificationKind(str, Enum):
    REQUEST_NEARBY = "urgent_request_nearby"
    REQUEST_ACCEPTED = "urgent_request_accepted"
    ASSIGNED_TO_OTHER = "urgent_request_assigned_to_other"
    NO_MATCH = "urgent_request_no_match"
    COMPLETED = "urgent_request_completed"


class UserRole(str, Enum):
    CLIENT = "client"
    PROFESSIONAL = "professional"
    ADMIN = "admin"
