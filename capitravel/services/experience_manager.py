"""
Experience manager: catalogue queries, availability search, CRUD and
reviews for bookable experiences. Persistence goes through the stores
passed in at construction.
"""
import logging
import math
import re
from datetime import datetime, time, timedelta, timezone
from typing import Dict, List, Optional, Set

from capitravel.core.exceptions import (
    BadRequestError,
    DuplicatedResourceError,
    InvalidArgumentError,
    ResourceNotFoundError,
)
from capitravel.models.experience import DayOfWeek, ExperienceDTO
from capitravel.models.sql_models import Category, Experience, Property, UserExperienceReview
from capitravel.repositories.base import (
    CategoryStore,
    ExperienceStore,
    PropertyStore,
    ReservationReader,
    ReviewStore,
    UserStore,
)

logger = logging.getLogger("capitravel.experiences")

CATEGORIES_FIELD_NAME = "Categories"
PROPERTIES_FIELD_NAME = "Properties"

MIN_RATING = 1.0
MAX_RATING = 5.0

_CLOCK_TIME = re.compile(r"(\d{2}):(\d{2})")


def round_one_decimal(value: float) -> float:
    """Round half up at the first decimal place (2.25 -> 2.3, 2.24 -> 2.2)."""
    return math.floor(value * 10 + 0.5) / 10.0


def capitalize_each_word(text: str) -> str:
    return " ".join(word[0].upper() + word[1:] for word in text.split(" ") if word)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC; aware ones are converted to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_of_week_in_range(start: datetime, end: datetime) -> Set[DayOfWeek]:
    days = set()
    if start > end:
        return days
    one_day = timedelta(days=1)
    current = start
    while True:
        days.add(DayOfWeek.of(current))
        # Stepping past `end` could overflow near datetime.max.
        if len(days) == len(DayOfWeek) or end - current < one_day:
            return days
        current += one_day


def _parse_clock_time(value: str) -> time:
    match = _CLOCK_TIME.fullmatch(value)
    if match is None:
        raise InvalidArgumentError(f"Invalid time '{value}' in service hours. Expected format: HH:mm")
    try:
        return time(int(match.group(1)), int(match.group(2)))
    except ValueError:
        raise InvalidArgumentError(f"Invalid time '{value}' in service hours. Expected format: HH:mm")


def validate_service_hours(service_hours: str) -> None:
    times = service_hours.split("-")
    if len(times) != 2:
        raise InvalidArgumentError("Invalid service hours format. Expected format: HH:mm-HH:mm")

    start_time = _parse_clock_time(times[0])
    end_time = _parse_clock_time(times[1])

    if not start_time < end_time:
        raise BadRequestError("Start time must be earlier than end time in service hours.")


def validate_no_duplicates(ids: List[int], field_name: str) -> None:
    if len(set(ids)) < len(ids):
        raise DuplicatedResourceError(f"Duplicated {field_name} are not allowed.")


def validate_rating(rating: float) -> None:
    if rating < MIN_RATING or rating > MAX_RATING or (rating * 2) % 1 != 0:
        raise InvalidArgumentError("Rating must be between 1.0 and 5.0 in increments of 0.5")


class ExperienceManager:
    def __init__(
        self,
        experiences: ExperienceStore,
        categories: CategoryStore,
        properties: PropertyStore,
        reviews: ReviewStore,
        users: UserStore,
        reservations: ReservationReader,
    ):
        self.experiences = experiences
        self.categories = categories
        self.properties = properties
        self.reviews = reviews
        self.users = users
        self.reservations = reservations

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_all(self) -> List[Experience]:
        return self.experiences.list_all()

    def get_by_id(self, experience_id: int) -> Experience:
        experience = self.experiences.get(experience_id)
        if experience is None:
            raise ResourceNotFoundError(f"Experience with id: {experience_id} not found")
        return experience

    def get_by_categories(self, category_ids: List[int]) -> List[Experience]:
        """
        Experiences tagged with every one of `category_ids`.
        Unknown ids are reported together in a single error.
        """
        found = self.categories.get_many(category_ids)
        not_found = [cid for cid in category_ids if cid not in found]
        if not_found:
            raise ResourceNotFoundError(f"Categories not found: {not_found}")

        valid_ids = [cid for cid in category_ids if cid in found]
        return self.experiences.find_by_category_ids(valid_ids, len(valid_ids))

    def get_countries(self) -> List[str]:
        seen: Dict[str, None] = {}
        for experience in self.experiences.list_all():
            if experience.country is None:
                continue
            seen.setdefault(experience.country.strip().lower(), None)
        return [capitalize_each_word(country) for country in seen]

    def get_favorites(self, experience_ids: List[int]) -> List[Experience]:
        return self.experiences.get_many(experience_ids)

    def search(
        self,
        keywords: Optional[str] = None,
        country: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[Experience]:
        experiences = self.experiences.list_all()

        if keywords:
            tokens = keywords.lower().split()
            if tokens:
                experiences = [exp for exp in experiences if self._matches_keywords(exp, tokens)]

        if country:
            needle = country.lower()
            experiences = [
                exp for exp in experiences
                if exp.country is not None and needle in exp.country.lower()
            ]

        if start_date is not None and end_date is not None:
            start_date, end_date = as_utc(start_date), as_utc(end_date)
            experiences = [exp for exp in experiences if self._is_available(exp.id, start_date, end_date)]
            selected_days = days_of_week_in_range(start_date, end_date)
            experiences = [exp for exp in experiences if self._offers_any_day(exp, selected_days)]

        return experiences

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def create(self, dto: ExperienceDTO) -> Experience:
        if self.experiences.exists_by_title(dto.title):
            raise DuplicatedResourceError(f"An experience with title {dto.title} already exists")

        validate_no_duplicates(dto.category_ids, CATEGORIES_FIELD_NAME)
        validate_no_duplicates(dto.property_ids, PROPERTIES_FIELD_NAME)
        validate_service_hours(dto.service_hours)

        experience = Experience()
        self._apply(experience, dto)
        saved = self.experiences.save(experience)
        logger.info("Experience created: id=%s title=%s", saved.id, saved.title)
        return saved

    def update(self, experience_id: int, dto: ExperienceDTO) -> Experience:
        existing = self.experiences.get(experience_id)
        if existing is None:
            raise ResourceNotFoundError(f"Experience not found with id: {experience_id}")

        if existing.title != dto.title and self.experiences.exists_by_title(dto.title):
            raise DuplicatedResourceError(f"An experience with title {dto.title} already exists")

        validate_no_duplicates(dto.category_ids, CATEGORIES_FIELD_NAME)
        validate_no_duplicates(dto.property_ids, PROPERTIES_FIELD_NAME)
        # Service hours are not re-validated on update.

        self._apply(existing, dto)
        saved = self.experiences.save(existing)
        logger.info("Experience updated: id=%s", saved.id)
        return saved

    def delete(self, experience_id: int) -> None:
        if self.experiences.get(experience_id) is None:
            raise ResourceNotFoundError(f"The Experience for id: {experience_id} was not found.")
        self.experiences.delete(experience_id)
        logger.info("Experience deleted: id=%s", experience_id)

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------
    def review_experience(
        self, experience_id: int, email: str, rating: float, review: Optional[str] = None
    ) -> UserExperienceReview:
        validate_rating(rating)

        experience = self.experiences.get(experience_id)
        if experience is None:
            raise ResourceNotFoundError("Experience not found")

        user = self.users.get_by_email(email)
        if user is None:
            raise ResourceNotFoundError("User not found")

        if self.reviews.exists(email, experience_id):
            raise DuplicatedResourceError("User has already rated this experience")

        current_count = experience.rating_count
        current_reputation = experience.reputation
        updated = ((current_reputation * current_count) + rating) / (current_count + 1)
        experience.reputation = round_one_decimal(updated)
        experience.rating_count = current_count + 1

        stored = self.reviews.add(
            UserExperienceReview(
                name=user.name,
                lastname=user.lastname,
                email=email,
                experience_id=experience.id,
                experience=experience,
                rating=round_one_decimal(rating),
                review_message=review,
            )
        )
        logger.info(
            "Experience %s reviewed by %s: rating=%s reputation=%s count=%s",
            experience_id, email, stored.rating, experience.reputation, experience.rating_count,
        )
        return stored

    def already_rated(self, experience_id: int, email: str) -> float:
        """Rating `email` gave the experience, or 0 when not rated yet."""
        if self.users.get_by_email(email) is None:
            raise ResourceNotFoundError(f"User not found with username: {email}")

        if self.experiences.get(experience_id) is None:
            raise ResourceNotFoundError("Experience not found")

        if not self.reviews.exists(email, experience_id):
            return 0

        review = self.reviews.get(email, experience_id)
        if review is None:
            raise ResourceNotFoundError(f"Review not found for user: {email}")
        return review.rating

    def get_all_reviews(self, experience_id: int) -> List[UserExperienceReview]:
        if self.experiences.get(experience_id) is None:
            raise ResourceNotFoundError("Experience not found")
        return self.reviews.list_by_experience(experience_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _apply(self, experience: Experience, dto: ExperienceDTO) -> None:
        # Resolve references before touching the entity so a missing id
        # leaves it unchanged.
        categories = self._resolve_categories(dto.category_ids)
        properties = self._resolve_properties(dto.property_ids)

        experience.title = dto.title
        experience.country = dto.country
        experience.ubication = dto.ubication
        experience.description = dto.description
        experience.images = list(dto.images)
        experience.quantity = dto.quantity
        experience.time_unit = dto.time_unit
        experience.categories = categories
        experience.properties = properties
        experience.service_hours = dto.service_hours
        experience.available_days = [day.value for day in dto.available_days]

    def _resolve_categories(self, category_ids: List[int]) -> List[Category]:
        found = self.categories.get_many(category_ids)
        for category_id in category_ids:
            if category_id not in found:
                raise ResourceNotFoundError(f"Category not found with id: {category_id}")
        return [found[cid] for cid in category_ids]

    def _resolve_properties(self, property_ids: List[int]) -> List[Property]:
        found = self.properties.get_many(property_ids)
        for property_id in property_ids:
            if property_id not in found:
                raise ResourceNotFoundError(f"Property not found with id: {property_id}")
        return [found[pid] for pid in property_ids]

    @staticmethod
    def _matches_keywords(experience: Experience, tokens: List[str]) -> bool:
        title = experience.title.lower()
        if any(token in title for token in tokens):
            return True
        return any(
            token in prop.name.lower()
            for prop in experience.properties
            for token in tokens
        )

    def _is_available(self, experience_id: int, start_date: datetime, end_date: datetime) -> bool:
        for reservation in self.reservations.get_reservation_dates(experience_id):
            check_in, check_out = as_utc(reservation.check_in), as_utc(reservation.check_out)
            if not (end_date < check_in or start_date > check_out):
                return False
        return True

    @staticmethod
    def _offers_any_day(experience: Experience, selected_days: Set[DayOfWeek]) -> bool:
        return any(DayOfWeek(day) in selected_days for day in experience.available_days)
