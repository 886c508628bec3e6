"""Domain events: notification intents emitted by bet transitions.

The state machine only returns these; the application layer hands them to the
notification gateway after the write has committed.
"""

from dataclasses import dataclass, field
from typing import Any

from src.gb_common.enums import NotificationEventType


@dataclass
class BetEvent:
    event_type: NotificationEventType
    target_user_ids: list[str]
    payload: dict[str, Any] = field(default_factory=dict)


def bet_event(
    event_type: NotificationEventType,
    targets: list[str],
    bet_id: str,
    bet_title: str,
    **extra: Any,
) -> BetEvent:
    payload: dict[str, Any] = {"bet_id": bet_id, "bet_title": bet_title}
    payload.update(extra)
    return BetEvent(event_type=event_type, target_user_ids=list(targets), payload=payload)
