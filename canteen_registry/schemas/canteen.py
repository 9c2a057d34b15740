"""Schemas for canteens, their aggregates and identity resolution."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from canteen_registry.schemas.review import ReviewOut


class VoteTally(BaseModel):
    """Vote counts for one categorical attribute plus the current winner."""

    votes: dict[str, int] = Field(default_factory=dict)
    consensus: Optional[str] = None


class PriceSamples(BaseModel):
    values: list[int] = Field(default_factory=list)
    median: Optional[int] = None


class CanteenInfo(BaseModel):
    """Aggregated attribute block of a canteen.

    The set of tracked attributes is fixed: one tally per categorical
    attribute, one sample list per payment model for prices.
    """

    payment_type: VoteTally = Field(default_factory=VoteTally)
    serving_type: VoteTally = Field(default_factory=VoteTally)
    employee_discount: VoteTally = Field(default_factory=VoteTally)
    price_subscription: PriceSamples = Field(default_factory=PriceSamples)
    price_per_visit: PriceSamples = Field(default_factory=PriceSamples)


class CompanyMember(BaseModel):
    org_id: str
    name: str
    added_at: datetime


class CanteenSummary(BaseModel):
    """Short form used when offering canteens to choose between."""

    address_key: str
    canteen_name: Optional[str] = None
    companies: list[CompanyMember] = Field(default_factory=list)
    total_reviews: int = 0
    average_rating: float = 0.0

    model_config = {"from_attributes": True}


class CanteenOut(BaseModel):
    address_key: str
    base_address_key: Optional[str] = None
    canteen_name: Optional[str] = None
    street: str
    postal_code: str
    city: str
    municipality: Optional[str] = None
    companies: list[CompanyMember] = Field(default_factory=list)
    average_rating: float
    total_reviews: int
    rating_distribution: dict[str, int]
    info: CanteenInfo
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class Coordinates(BaseModel):
    lat: float
    lon: float


class CanteenDetail(BaseModel):
    canteen: CanteenOut
    reviews: list[ReviewOut]
    coordinates: Optional[Coordinates] = None


class ResolutionAction(str, Enum):
    CREATE_FIRST = "create_first"
    CREATE_ADDITIONAL = "create_additional"
    REUSE_EXISTING = "reuse_existing"
    CHOOSE = "choose"


class Resolution(BaseModel):
    """Outcome of mapping a company onto a canteen.

    ``canteen_key`` is set for every action except ``CHOOSE``, where the
    caller must pick one of ``candidates`` or ask for a new canteen.
    """

    action: ResolutionAction
    base_address_key: str
    canteen_key: Optional[str] = None
    candidates: list[CanteenSummary] = Field(default_factory=list)


class CanteenChoice(str, Enum):
    NEW = "new"
    EXISTING = "existing"


class CanteenSelectRequest(BaseModel):
    org_id: str = Field(..., min_length=1, description="Organisation number")
    choice: Optional[CanteenChoice] = None
    selected_canteen: Optional[str] = None
    canteen_name: Optional[str] = Field(None, max_length=100)
