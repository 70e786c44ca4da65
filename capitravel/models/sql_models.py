from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel


# ---------------------------------------------------------------------------
# Link tables for the experience many-to-many relations
# ---------------------------------------------------------------------------
class ExperienceCategoryLink(SQLModel, table=True):
    __tablename__ = "experience_category"
    experience_id: Optional[int] = Field(default=None, foreign_key="experience.id", primary_key=True)
    category_id: Optional[int] = Field(default=None, foreign_key="category.id", primary_key=True)


class ExperiencePropertyLink(SQLModel, table=True):
    __tablename__ = "experience_property"
    experience_id: Optional[int] = Field(default=None, foreign_key="experience.id", primary_key=True)
    property_id: Optional[int] = Field(default=None, foreign_key="property.id", primary_key=True)


class Category(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)


class Property(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)               # e.g. "Wifi", "Guided tour"


class Experience(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(unique=True, index=True)
    country: Optional[str] = Field(default=None, index=True)
    ubication: Optional[str] = None             # free-text location, e.g. "Old town, Cartagena"
    description: Optional[str] = None
    images: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    quantity: Optional[int] = None
    time_unit: Optional[str] = None             # e.g. "hours", "days"
    service_hours: Optional[str] = None         # "HH:mm-HH:mm"
    available_days: List[str] = Field(default_factory=list, sa_column=Column(JSON))  # DayOfWeek names
    reputation: float = 0.0
    rating_count: int = 0

    categories: List[Category] = Relationship(link_model=ExperienceCategoryLink)
    properties: List[Property] = Relationship(link_model=ExperiencePropertyLink)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    lastname: str
    email: str = Field(unique=True, index=True)


# ---------------------------------------------------------------------------
# Reviews: one per (email, experience)
# ---------------------------------------------------------------------------
class UserExperienceReview(SQLModel, table=True):
    __tablename__ = "user_experience_review"
    __table_args__ = (UniqueConstraint("email", "experience_id", name="uq_review_email_experience"),)
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    lastname: str
    email: str = Field(index=True)
    experience_id: Optional[int] = Field(default=None, foreign_key="experience.id", index=True)
    rating: float
    review_message: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    experience: Optional[Experience] = Relationship()


# ---------------------------------------------------------------------------
# Reservations are written by the booking flow; this service only reads them.
# ---------------------------------------------------------------------------
class Reservation(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    experience_id: int = Field(foreign_key="experience.id", index=True)
    email: str
    check_in: datetime                      # timezone-aware, UTC
    check_out: datetime
