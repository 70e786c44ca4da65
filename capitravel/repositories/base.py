from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from capitravel.models.experience import ReservationDates
from capitravel.models.sql_models import Category, Experience, Property, User, UserExperienceReview


class CategoryStore(ABC):
    @abstractmethod
    def get(self, category_id: int) -> Optional[Category]:
        ...

    @abstractmethod
    def get_many(self, category_ids: Iterable[int]) -> Dict[int, Category]:
        """Return the categories that exist, keyed by id. Missing ids are absent."""
        ...


class PropertyStore(ABC):
    @abstractmethod
    def get(self, property_id: int) -> Optional[Property]:
        ...

    @abstractmethod
    def get_many(self, property_ids: Iterable[int]) -> Dict[int, Property]:
        ...


class ExperienceStore(ABC):
    @abstractmethod
    def list_all(self) -> List[Experience]:
        ...

    @abstractmethod
    def get(self, experience_id: int) -> Optional[Experience]:
        ...

    @abstractmethod
    def get_many(self, experience_ids: Iterable[int]) -> List[Experience]:
        ...

    @abstractmethod
    def exists_by_title(self, title: str) -> bool:
        ...

    @abstractmethod
    def find_by_category_ids(self, category_ids: List[int], category_count: int) -> List[Experience]:
        """Experiences linked to exactly `category_count` of the given categories."""
        ...

    @abstractmethod
    def save(self, experience: Experience) -> Experience:
        ...

    @abstractmethod
    def delete(self, experience_id: int) -> None:
        ...


class ReviewStore(ABC):
    @abstractmethod
    def exists(self, email: str, experience_id: int) -> bool:
        ...

    @abstractmethod
    def get(self, email: str, experience_id: int) -> Optional[UserExperienceReview]:
        ...

    @abstractmethod
    def list_by_experience(self, experience_id: int) -> List[UserExperienceReview]:
        ...

    @abstractmethod
    def add(self, review: UserExperienceReview) -> UserExperienceReview:
        """Persist a review together with its (already updated) experience.

        Both writes land in a single commit.
        """
        ...


class UserStore(ABC):
    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        ...


class ReservationReader(ABC):
    """Read-only view of the reservation subsystem."""

    @abstractmethod
    def get_reservation_dates(self, experience_id: int) -> List[ReservationDates]:
        ...
