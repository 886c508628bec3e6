"""Notification copy: title and body text per event type.

Payload keys used here are the ones the engine puts on each event:
  all events:          bet_id, bet_title
  bet_created:         creator_name
  bet_joined:          joiner_name
  bet_resolved:        winner
  payment_required:    amount_cents, obligation_id
  payment_received:    amount_cents, from_user_id
"""

from typing import Any

from src.gb_common.cents import cents_to_display
from src.gb_common.enums import NotificationEventType


def render(event_type: str, payload: dict[str, Any]) -> tuple[str, str]:
    """Return (title, message) for a notification."""
    bet_title = payload.get("bet_title", "")
    kind = NotificationEventType(event_type)

    if kind is NotificationEventType.NEUTRAL_PARTY_ASSIGNED:
        return (
            "You've been chosen as a neutral party!",
            f'You\'ve been selected to decide the winner of "{bet_title}". '
            "You'll be notified when the bet is ready for resolution.",
        )
    if kind is NotificationEventType.BET_READY_FOR_RESOLUTION:
        return (
            "Bet ready for your decision",
            f'The bet "{bet_title}" is ready for resolution. '
            "Review the evidence and declare a winner.",
        )
    if kind is NotificationEventType.BET_RESOLVED:
        return (
            "Bet resolved!",
            f'"{bet_title}" has been resolved. Winner: {payload.get("winner")}',
        )
    if kind is NotificationEventType.PAYMENT_REQUIRED:
        amount = cents_to_display(int(payload.get("amount_cents", 0)))
        return "Payment required", f'You need to pay {amount} for "{bet_title}".'
    if kind is NotificationEventType.PAYMENT_RECEIVED:
        amount = cents_to_display(int(payload.get("amount_cents", 0)))
        return (
            "Payment received!",
            f'You received {amount} from {payload.get("from_user_id")} for "{bet_title}".',
        )
    if kind is NotificationEventType.BET_JOINED:
        return "Someone joined your bet!", f'{payload.get("joiner_name")} joined "{bet_title}".'
    # BET_CREATED
    return (
        "You've been invited to a bet!",
        f'{payload.get("creator_name")} invited you to "{bet_title}". Tap to join!',
    )
