"""Facilitation fee: tiered platform charge, fixed when the bet is created.

Tiers (stake per participant → fee, rounded up to a whole dollar):
  < $20            → $0
  $20  – $99.99    → flat $1
  $100 – $499.99   → 2%
  $500 – $999.99   → 1.5%
  ≥ $1000          → 1%
"""

from src.gb_common.cents import ceil_to_dollar

_FLAT_FEE_CENTS = 100

# (lower bound in cents, rate in bps); checked from the highest bracket down
FEE_TIERS: tuple[tuple[int, int], ...] = (
    (100_000, 100),
    (50_000, 150),
    (10_000, 200),
)
FREE_BELOW_CENTS = 2_000


def calc_facilitation_fee(amount_cents: int) -> int:
    """Return the facilitation fee in cents for a stake of amount_cents."""
    if amount_cents < FREE_BELOW_CENTS:
        return 0
    for lower_bound, rate_bps in FEE_TIERS:
        if amount_cents >= lower_bound:
            return ceil_to_dollar(amount_cents * rate_bps)
    return _FLAT_FEE_CENTS
