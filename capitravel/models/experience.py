from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DayOfWeek(str, Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @classmethod
    def of(cls, day: date) -> "DayOfWeek":
        # Members are declared Monday-first, matching date.weekday().
        return list(cls)[day.weekday()]


class ExperienceDTO(BaseModel):
    """Create/update payload. Update replaces every field."""
    title: str
    country: str
    ubication: Optional[str] = None
    description: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    quantity: Optional[int] = None
    time_unit: Optional[str] = Field(default=None, alias="timeUnit")
    category_ids: List[int] = Field(default_factory=list, alias="categoryIds")
    property_ids: List[int] = Field(default_factory=list, alias="propertyIds")
    service_hours: str = Field(..., alias="serviceHours")
    available_days: List[DayOfWeek] = Field(default_factory=list, alias="availableDays")

    model_config = ConfigDict(populate_by_name=True)


class ReservationDates(BaseModel):
    check_in: datetime = Field(..., alias="checkIn")
    check_out: datetime = Field(..., alias="checkOut")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class NamedReference(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class ExperienceResponse(BaseModel):
    id: int
    title: str
    country: Optional[str] = None
    ubication: Optional[str] = None
    description: Optional[str] = None
    images: List[str] = []
    quantity: Optional[int] = None
    time_unit: Optional[str] = Field(default=None, alias="timeUnit")
    categories: List[NamedReference] = []
    properties: List[NamedReference] = []
    service_hours: Optional[str] = Field(default=None, alias="serviceHours")
    available_days: List[DayOfWeek] = Field(default_factory=list, alias="availableDays")
    reputation: float = 0.0
    rating_count: int = Field(default=0, alias="ratingCount")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class ReviewRequest(BaseModel):
    email: str
    rating: float
    review: Optional[str] = None


class ReviewResponse(BaseModel):
    id: Optional[int] = None
    name: str
    lastname: str
    email: str
    experience_id: Optional[int] = Field(default=None, alias="experienceId")
    rating: float
    review_message: Optional[str] = Field(default=None, alias="reviewMessage")
    created_at: datetime = Field(..., alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
