"""
In-memory stores. Entities are held by reference, so mutating an object
returned by a store mutates the stored record.
"""
from datetime import datetime, timezone
from itertools import count
from typing import Dict, Iterable, List, Optional

from capitravel.core.exceptions import DuplicatedResourceError
from capitravel.models.experience import ReservationDates
from capitravel.models.sql_models import Category, Experience, Property, User, UserExperienceReview
from capitravel.repositories.base import (
    CategoryStore,
    ExperienceStore,
    PropertyStore,
    ReservationReader,
    ReviewStore,
    UserStore,
)


class _IdSequence:
    def __init__(self):
        self._counter = count(1)

    def next(self) -> int:
        return next(self._counter)


class InMemoryCategoryStore(CategoryStore):
    def __init__(self):
        self.rows: Dict[int, Category] = {}
        self._ids = _IdSequence()

    def add(self, name: str) -> Category:
        category = Category(id=self._ids.next(), name=name)
        self.rows[category.id] = category
        return category

    def get(self, category_id: int) -> Optional[Category]:
        return self.rows.get(category_id)

    def get_many(self, category_ids: Iterable[int]) -> Dict[int, Category]:
        return {cid: self.rows[cid] for cid in category_ids if cid in self.rows}


class InMemoryPropertyStore(PropertyStore):
    def __init__(self):
        self.rows: Dict[int, Property] = {}
        self._ids = _IdSequence()

    def add(self, name: str) -> Property:
        prop = Property(id=self._ids.next(), name=name)
        self.rows[prop.id] = prop
        return prop

    def get(self, property_id: int) -> Optional[Property]:
        return self.rows.get(property_id)

    def get_many(self, property_ids: Iterable[int]) -> Dict[int, Property]:
        return {pid: self.rows[pid] for pid in property_ids if pid in self.rows}


class InMemoryExperienceStore(ExperienceStore):
    def __init__(self):
        self.rows: Dict[int, Experience] = {}
        self._ids = _IdSequence()

    def list_all(self) -> List[Experience]:
        return list(self.rows.values())

    def get(self, experience_id: int) -> Optional[Experience]:
        return self.rows.get(experience_id)

    def get_many(self, experience_ids: Iterable[int]) -> List[Experience]:
        wanted = set(experience_ids)
        return [exp for exp_id, exp in self.rows.items() if exp_id in wanted]

    def exists_by_title(self, title: str) -> bool:
        return any(exp.title == title for exp in self.rows.values())

    def find_by_category_ids(self, category_ids: List[int], category_count: int) -> List[Experience]:
        wanted = set(category_ids)
        result = []
        for exp in self.rows.values():
            matched = {c.id for c in exp.categories if c.id in wanted}
            if len(matched) == category_count:
                result.append(exp)
        return result

    def save(self, experience: Experience) -> Experience:
        if experience.id is None:
            experience.id = self._ids.next()
        self.rows[experience.id] = experience
        return experience

    def delete(self, experience_id: int) -> None:
        self.rows.pop(experience_id, None)


class InMemoryReviewStore(ReviewStore):
    def __init__(self):
        self.rows: List[UserExperienceReview] = []
        self._ids = _IdSequence()

    def exists(self, email: str, experience_id: int) -> bool:
        return self.get(email, experience_id) is not None

    def get(self, email: str, experience_id: int) -> Optional[UserExperienceReview]:
        for review in self.rows:
            if review.email == email and review.experience_id == experience_id:
                return review
        return None

    def list_by_experience(self, experience_id: int) -> List[UserExperienceReview]:
        return [r for r in self.rows if r.experience_id == experience_id]

    def add(self, review: UserExperienceReview) -> UserExperienceReview:
        if self.exists(review.email, review.experience_id):
            raise DuplicatedResourceError("User has already rated this experience")
        review.id = self._ids.next()
        if review.created_at is None:
            review.created_at = datetime.now(timezone.utc)
        self.rows.append(review)
        return review


class InMemoryUserStore(UserStore):
    def __init__(self):
        self.rows: Dict[str, User] = {}
        self._ids = _IdSequence()

    def add(self, name: str, lastname: str, email: str) -> User:
        user = User(id=self._ids.next(), name=name, lastname=lastname, email=email)
        self.rows[email] = user
        return user

    def get_by_email(self, email: str) -> Optional[User]:
        return self.rows.get(email)


class InMemoryReservationReader(ReservationReader):
    def __init__(self):
        self.rows: Dict[int, List[ReservationDates]] = {}

    def add(self, experience_id: int, check_in: datetime, check_out: datetime) -> ReservationDates:
        dates = ReservationDates(check_in=check_in, check_out=check_out)
        self.rows.setdefault(experience_id, []).append(dates)
        return dates

    def get_reservation_dates(self, experience_id: int) -> List[ReservationDates]:
        return list(self.rows.get(experience_id, []))
