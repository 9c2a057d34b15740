"""Expose schemas for easier import."""

from canteen_registry.schemas.canteen import (  # noqa: F401
    CanteenChoice,
    CanteenDetail,
    CanteenInfo,
    CanteenOut,
    CanteenSelectRequest,
    CanteenSummary,
    Coordinates,
    PriceSamples,
    Resolution,
    ResolutionAction,
    VoteTally,
)
from canteen_registry.schemas.company import Company, CompanyAddress, CompanySearchHit  # noqa: F401
from canteen_registry.schemas.feedback import FeedbackRequest  # noqa: F401
from canteen_registry.schemas.review import (  # noqa: F401
    PaymentType,
    RecentReviewOut,
    ReviewAttributes,
    ReviewEdit,
    ReviewEditRequest,
    ReviewOut,
    ReviewSubmission,
    ReviewSubmitRequest,
    ServingType,
    SubmitResult,
)
