"""Tests for gb_common.enums."""

from src.gb_common.enums import (
    CONSENSUS_RESOLVER,
    BetStatus,
    EvidenceType,
    NotificationEventType,
    ResolutionType,
)


def test_bet_status_values_are_lowercase_wire_names() -> None:
    assert [s.value for s in BetStatus] == [
        "pending", "active", "awaiting_resolution",
        "resolved", "completed", "cancelled", "disputed",
    ]


def test_resolution_types() -> None:
    assert {t.value for t in ResolutionType} == {"neutral_party", "everyone_agrees"}


def test_evidence_types() -> None:
    assert {t.value for t in EvidenceType} == {"photo", "video", "text", "link"}


def test_enum_compares_to_str() -> None:
    assert BetStatus.RESOLVED == "resolved"
    assert NotificationEventType.PAYMENT_REQUIRED == "payment_required"


def test_consensus_resolver_marker() -> None:
    assert CONSENSUS_RESOLVER == "consensus"
