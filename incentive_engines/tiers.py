"""
TieredPayoutCalculator -- marginal (bracket) payout over a tier table.

Each tier pays its rate on the slice of the credited amount that falls
inside ``[from, to)``; slices never overlap and never count twice. Tiers
are re-sorted ascending by ``from`` (stable, so equal starts keep their
authored order) before the walk.

For each tier in order:

* stop if the amount does not exceed the tier start or what has already
  been processed;
* the slice runs from ``max(from, processed)`` to ``min(to, amount)``, with
  a missing ``to`` meaning unbounded;
* a positive slice pays ``slice * rate / 100`` for percentage tiers, else
  ``slice * rate``; processed advances to the slice end;
* stop once the whole amount is processed.

A gap between tiers pays nothing for the amount inside the gap.

Example, tiers 0-25000 @3%, 25000-125000 @7%, 125000+ @10%, amount 200000:
750 + 7000 + 7500 = 15250.
"""

from __future__ import annotations

from decimal import Decimal, localcontext
from typing import Sequence

from incentive_config.schema import PayoutTier
from incentive_engines.tracer import traced_engine
from incentive_kernel.domain.values import DEFAULT_POLICY, HUNDRED, ZERO, DecimalPolicy


@traced_engine("tiers", "1.0", fingerprint_fields=("amount", "tiers"))
def compute_marginal_payout(
    amount: Decimal,
    tiers: Sequence[PayoutTier],
    policy: DecimalPolicy = DEFAULT_POLICY,
) -> Decimal:
    """
    Payout for ``amount`` under the marginal tier table.

    Returns the exact (unrounded) payout; zero for an empty table or a
    non-positive amount.
    """
    if not tiers or amount <= ZERO:
        return ZERO

    with localcontext(policy.context()):
        total = ZERO
        processed = ZERO
        for tier in sorted(tiers, key=lambda t: t.from_amount):
            if amount <= tier.from_amount or amount <= processed:
                break

            start = max(tier.from_amount, processed)
            end = amount if tier.to_amount is None else min(tier.to_amount, amount)
            in_tier = end - start

            if in_tier > ZERO:
                if tier.is_percentage:
                    total += in_tier * tier.rate / HUNDRED
                else:
                    total += in_tier * tier.rate
                processed = end

            if processed >= amount:
                break

        return total
