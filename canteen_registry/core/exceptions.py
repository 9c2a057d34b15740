"""Error kinds raised by the canteen registry core."""

from __future__ import annotations


class CanteenRegistryError(Exception):
    """Base class for every error the core raises on purpose."""

    kind = "canteen_registry_error"


class InvalidAddress(CanteenRegistryError, ValueError):
    kind = "invalid_address"


class InvalidReview(CanteenRegistryError, ValueError):
    kind = "invalid_review"


class InvalidFeedback(CanteenRegistryError, ValueError):
    kind = "invalid_feedback"


class CompanyMissingAddress(CanteenRegistryError):
    """Directory record has no usable address, so no canteen can be derived."""

    kind = "company_missing_address"

    def __init__(self, org_id: str) -> None:
        super().__init__(f"Company {org_id} has no address")
        self.org_id = org_id


class CanteenNotFound(CanteenRegistryError):
    kind = "canteen_not_found"

    def __init__(self, canteen_key: str) -> None:
        super().__init__(f"Canteen not found: {canteen_key}")
        self.canteen_key = canteen_key


class ReviewNotFound(CanteenRegistryError):
    kind = "review_not_found"

    def __init__(self, review_id: str) -> None:
        super().__init__(f"Review not found: {review_id}")
        self.review_id = review_id


class NotOwner(CanteenRegistryError):
    """Edit attempted by a client that did not submit the review."""

    kind = "not_owner"

    def __init__(self, review_id: str) -> None:
        super().__init__(f"Review {review_id} belongs to another client")
        self.review_id = review_id


class TransactionConflict(CanteenRegistryError):
    """Transient: the transaction kept losing to concurrent writers."""

    kind = "transaction_conflict"

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Transaction did not commit after {attempts} attempts")
        self.attempts = attempts


class UpstreamLookupFailure(CanteenRegistryError):
    """Company directory or geocoder unavailable."""

    kind = "upstream_lookup_failure"
