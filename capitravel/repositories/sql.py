"""
SQLModel-backed stores. All stores built for one request share that
request's Session, so a commit covers every object staged in it.
"""
import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from capitravel.core.exceptions import DuplicatedResourceError
from capitravel.models.experience import ReservationDates
from capitravel.models.sql_models import (
    Category,
    Experience,
    ExperienceCategoryLink,
    Property,
    Reservation,
    User,
    UserExperienceReview,
)
from capitravel.repositories.base import (
    CategoryStore,
    ExperienceStore,
    PropertyStore,
    ReservationReader,
    ReviewStore,
    UserStore,
)

logger = logging.getLogger("capitravel.repositories")


class SqlCategoryStore(CategoryStore):
    def __init__(self, session: Session):
        self.session = session

    def get(self, category_id: int) -> Optional[Category]:
        return self.session.get(Category, category_id)

    def get_many(self, category_ids: Iterable[int]) -> Dict[int, Category]:
        ids = list(category_ids)
        if not ids:
            return {}
        rows = self.session.exec(select(Category).where(Category.id.in_(ids))).all()
        return {row.id: row for row in rows}


class SqlPropertyStore(PropertyStore):
    def __init__(self, session: Session):
        self.session = session

    def get(self, property_id: int) -> Optional[Property]:
        return self.session.get(Property, property_id)

    def get_many(self, property_ids: Iterable[int]) -> Dict[int, Property]:
        ids = list(property_ids)
        if not ids:
            return {}
        rows = self.session.exec(select(Property).where(Property.id.in_(ids))).all()
        return {row.id: row for row in rows}


class SqlExperienceStore(ExperienceStore):
    def __init__(self, session: Session):
        self.session = session

    def list_all(self) -> List[Experience]:
        return list(self.session.exec(select(Experience).order_by(Experience.id)).all())

    def get(self, experience_id: int) -> Optional[Experience]:
        return self.session.get(Experience, experience_id)

    def get_many(self, experience_ids: Iterable[int]) -> List[Experience]:
        ids = list(experience_ids)
        if not ids:
            return []
        statement = select(Experience).where(Experience.id.in_(ids)).order_by(Experience.id)
        return list(self.session.exec(statement).all())

    def exists_by_title(self, title: str) -> bool:
        statement = select(Experience.id).where(Experience.title == title)
        return self.session.exec(statement).first() is not None

    def find_by_category_ids(self, category_ids: List[int], category_count: int) -> List[Experience]:
        if not category_ids:
            return []
        matching = (
            select(ExperienceCategoryLink.experience_id)
            .where(ExperienceCategoryLink.category_id.in_(category_ids))
            .group_by(ExperienceCategoryLink.experience_id)
            .having(func.count(func.distinct(ExperienceCategoryLink.category_id)) == category_count)
        )
        statement = select(Experience).where(Experience.id.in_(matching)).order_by(Experience.id)
        return list(self.session.exec(statement).all())

    def save(self, experience: Experience) -> Experience:
        self.session.add(experience)
        self.session.commit()
        self.session.refresh(experience)
        return experience

    def delete(self, experience_id: int) -> None:
        experience = self.session.get(Experience, experience_id)
        if experience is None:
            return
        self.session.delete(experience)
        self.session.commit()


class SqlReviewStore(ReviewStore):
    def __init__(self, session: Session):
        self.session = session

    def _by_email_and_experience(self, email: str, experience_id: int):
        return select(UserExperienceReview).where(
            UserExperienceReview.email == email,
            UserExperienceReview.experience_id == experience_id,
        )

    def exists(self, email: str, experience_id: int) -> bool:
        return self.session.exec(self._by_email_and_experience(email, experience_id)).first() is not None

    def get(self, email: str, experience_id: int) -> Optional[UserExperienceReview]:
        return self.session.exec(self._by_email_and_experience(email, experience_id)).first()

    def list_by_experience(self, experience_id: int) -> List[UserExperienceReview]:
        statement = (
            select(UserExperienceReview)
            .where(UserExperienceReview.experience_id == experience_id)
            .order_by(UserExperienceReview.id)
        )
        return list(self.session.exec(statement).all())

    def add(self, review: UserExperienceReview) -> UserExperienceReview:
        # The experience is reachable from the review, so its new reputation
        # is flushed in the same transaction as the insert.
        if review.experience is not None:
            self.session.add(review.experience)
        self.session.add(review)
        try:
            self.session.commit()
        except IntegrityError:
            # Lost a race with another review for the same (email, experience).
            self.session.rollback()
            logger.warning("Duplicate review rejected for experience=%s email=%s", review.experience_id, review.email)
            raise DuplicatedResourceError("User has already rated this experience")
        except Exception:
            self.session.rollback()
            logger.error("Review insert rolled back for experience=%s email=%s", review.experience_id, review.email)
            raise
        self.session.refresh(review)
        return review


class SqlUserStore(UserStore):
    def __init__(self, session: Session):
        self.session = session

    def get_by_email(self, email: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.email == email)).first()


class SqlReservationReader(ReservationReader):
    def __init__(self, session: Session):
        self.session = session

    def get_reservation_dates(self, experience_id: int) -> List[ReservationDates]:
        statement = select(Reservation).where(Reservation.experience_id == experience_id)
        return [
            ReservationDates(check_in=r.check_in, check_out=r.check_out)
            for r in self.session.exec(statement).all()
        ]
