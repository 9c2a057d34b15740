"""Aggregate calculations for canteen ratings and attributes.

Everything here is pure: helpers take the current structure and return a new
one whose derived value (average, consensus, median) has been recomputed
from the full underlying counts.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Optional, Sequence

from canteen_registry.schemas.canteen import CanteenInfo, PriceSamples, VoteTally
from canteen_registry.schemas.review import PaymentType, ReviewAttributes

STAR_VALUES = (1, 2, 3, 4, 5)


def empty_distribution() -> dict[str, int]:
    return {str(star): 0 for star in STAR_VALUES}


def recompute_average(distribution: Mapping[str, int]) -> float:
    """Weighted mean of the star distribution, rounded half-up to one decimal."""
    weighted = 0
    count = 0
    for star in STAR_VALUES:
        n = distribution.get(str(star), 0) or 0
        weighted += star * n
        count += n
    if count == 0:
        return 0.0
    mean = Decimal(weighted) / Decimal(count)
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def recompute_consensus(votes: Mapping[str, int]) -> Optional[str]:
    """Most voted key; on a tie the earliest inserted key wins."""
    best = None
    best_count = 0
    for key, count in votes.items():
        if count > best_count:
            best = key
            best_count = count
    return best


def recompute_median(values: Sequence[int]) -> Optional[int]:
    if not values:
        return None
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[mid]
    # half-up rounding of the mean of the two middle values
    return (ordered[mid - 1] + ordered[mid] + 1) // 2


def adjust_distribution(
    distribution: Mapping[str, int],
    add: Optional[int] = None,
    remove: Optional[int] = None,
) -> dict[str, int]:
    """Copy of ``distribution`` with one count moved in and/or out."""
    result = empty_distribution()
    result.update({k: v for k, v in distribution.items()})
    if remove is not None:
        result[str(remove)] = max(result.get(str(remove), 0) - 1, 0)
    if add is not None:
        result[str(add)] = result.get(str(add), 0) + 1
    return result


def add_vote(tally: VoteTally, value: str) -> VoteTally:
    votes = dict(tally.votes)
    votes[value] = votes.get(value, 0) + 1
    return VoteTally(votes=votes, consensus=recompute_consensus(votes))


def remove_vote(tally: VoteTally, value: str) -> VoteTally:
    # Keys stay at zero rather than being dropped so tie-break order is stable
    votes = dict(tally.votes)
    if value in votes:
        votes[value] = max(votes[value] - 1, 0)
    return VoteTally(votes=votes, consensus=recompute_consensus(votes))


def add_price(samples: PriceSamples, price: int) -> PriceSamples:
    values = [*samples.values, price]
    return PriceSamples(values=values, median=recompute_median(values))


def remove_price(samples: PriceSamples, price: int) -> PriceSamples:
    values = list(samples.values)
    if price in values:
        values.remove(price)
    return PriceSamples(values=values, median=recompute_median(values))


def _discount_key(value: bool) -> str:
    return "true" if value else "false"


def _price_bucket(payment_type: PaymentType) -> str:
    if payment_type == PaymentType.SUBSCRIPTION:
        return "price_subscription"
    return "price_per_visit"


def apply_attributes(info: CanteenInfo, attrs: ReviewAttributes) -> CanteenInfo:
    """Add one review's attribute contribution to ``info``."""
    updated = info.model_copy(deep=True)
    if attrs.payment_type is not None:
        updated.payment_type = add_vote(updated.payment_type, attrs.payment_type.value)
        if attrs.price is not None:
            bucket = _price_bucket(attrs.payment_type)
            setattr(updated, bucket, add_price(getattr(updated, bucket), attrs.price))
    if attrs.serving_type is not None:
        updated.serving_type = add_vote(updated.serving_type, attrs.serving_type.value)
    if attrs.employee_discount is not None:
        updated.employee_discount = add_vote(
            updated.employee_discount, _discount_key(attrs.employee_discount)
        )
    return updated


def retract_attributes(info: CanteenInfo, attrs: ReviewAttributes) -> CanteenInfo:
    """Remove one review's earlier attribute contribution from ``info``."""
    updated = info.model_copy(deep=True)
    if attrs.payment_type is not None:
        updated.payment_type = remove_vote(updated.payment_type, attrs.payment_type.value)
        if attrs.price is not None:
            bucket = _price_bucket(attrs.payment_type)
            setattr(updated, bucket, remove_price(getattr(updated, bucket), attrs.price))
    if attrs.serving_type is not None:
        updated.serving_type = remove_vote(updated.serving_type, attrs.serving_type.value)
    if attrs.employee_discount is not None:
        updated.employee_discount = remove_vote(
            updated.employee_discount, _discount_key(attrs.employee_discount)
        )
    return updated
