"""Schemas for review submission and display."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

COMMENT_MAX_LENGTH = 500


class PaymentType(str, Enum):
    SUBSCRIPTION = "subscription"
    PER_VISIT = "per_visit"


class ServingType(str, Enum):
    BUFFET = "buffet"
    SPECIFIC_DISH = "specific_dish"
    BY_WEIGHT = "by_weight"


class ReviewAttributes(BaseModel):
    """Optional facts a reviewer can report about the canteen."""

    payment_type: Optional[PaymentType] = None
    price: Optional[int] = Field(None, gt=0, description="Only aggregated together with payment_type")
    serving_type: Optional[ServingType] = None
    employee_discount: Optional[bool] = None


class ReviewEdit(ReviewAttributes):
    rating: int = Field(..., ge=1, le=5)
    comment: str = ""

    @field_validator("comment", mode="before")
    @classmethod
    def _clip_comment(cls, value: Optional[str]) -> str:
        return (value or "").strip()[:COMMENT_MAX_LENGTH]

    def attributes(self) -> ReviewAttributes:
        return ReviewAttributes(
            payment_type=self.payment_type,
            price=self.price,
            serving_type=self.serving_type,
            employee_discount=self.employee_discount,
        )


class ReviewSubmission(ReviewEdit):
    company_name: str = ""


class ReviewSubmitRequest(ReviewSubmission):
    client_id: str = Field(..., min_length=1)


class ReviewEditRequest(ReviewEdit):
    client_id: str = Field(..., min_length=1)


class SubmitResult(BaseModel):
    created: bool
    duplicate: bool = False
    review_id: Optional[str] = None


class ReviewOut(BaseModel):
    id: str
    rating: int
    comment: str
    company_name: str
    payment_type: Optional[PaymentType] = None
    price: Optional[int] = None
    serving_type: Optional[ServingType] = None
    employee_discount: Optional[bool] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RecentReviewOut(ReviewOut):
    """Review annotated with its canteen's address for cross-canteen lists."""

    address_key: str
    street: str
    city: str
