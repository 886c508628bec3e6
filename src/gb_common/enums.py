"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class BetStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    AWAITING_RESOLUTION = "awaiting_resolution"
    RESOLVED = "resolved"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DISPUTED = "disputed"


class ResolutionType(str, Enum):
    NEUTRAL_PARTY = "neutral_party"
    EVERYONE_AGREES = "everyone_agrees"


class EvidenceType(str, Enum):
    PHOTO = "photo"
    VIDEO = "video"
    TEXT = "text"
    LINK = "link"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class NotificationEventType(str, Enum):
    BET_CREATED = "bet_created"
    BET_JOINED = "bet_joined"
    BET_READY_FOR_RESOLUTION = "bet_ready_for_resolution"
    BET_RESOLVED = "bet_resolved"
    PAYMENT_REQUIRED = "payment_required"
    PAYMENT_RECEIVED = "payment_received"
    NEUTRAL_PARTY_ASSIGNED = "neutral_party_assigned"


# resolved_by marker for bets settled by unanimous agreement
CONSENSUS_RESOLVER = "consensus"
