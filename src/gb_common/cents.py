"""Integer arithmetic utilities for cents-based stakes.

All stakes, fees and obligations use int (cents). No float, no Decimal.
"""


def validate_amount(amount_cents: int) -> None:
    """Validate that a stake is a positive number of cents."""
    if amount_cents <= 0:
        raise ValueError(f"Amount must be positive, got {amount_cents} cents")


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"


def ceil_to_dollar(cents_times_bps: int) -> int:
    """Round (cents x bps / 10000) up to a whole dollar, returned in cents.

    fee_dollars = ceil(cents * bps / 1_000_000)
    Using integer ceiling: (a + b - 1) // b
    """
    if cents_times_bps <= 0:
        return 0
    return ((cents_times_bps + 999_999) // 1_000_000) * 100
