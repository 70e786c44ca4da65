import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv
from sqlmodel import Session

from .base import CategoryStore, ExperienceStore, PropertyStore, ReservationReader, ReviewStore, UserStore
from .memory import (
    InMemoryCategoryStore,
    InMemoryExperienceStore,
    InMemoryPropertyStore,
    InMemoryReservationReader,
    InMemoryReviewStore,
    InMemoryUserStore,
)
from .sql import (
    SqlCategoryStore,
    SqlExperienceStore,
    SqlPropertyStore,
    SqlReservationReader,
    SqlReviewStore,
    SqlUserStore,
)

load_dotenv()

logger = logging.getLogger("capitravel.repositories")


@dataclass
class Stores:
    experiences: ExperienceStore
    categories: CategoryStore
    properties: PropertyStore
    reviews: ReviewStore
    users: UserStore
    reservations: ReservationReader


def in_memory_stores() -> Stores:
    return Stores(
        experiences=InMemoryExperienceStore(),
        categories=InMemoryCategoryStore(),
        properties=InMemoryPropertyStore(),
        reviews=InMemoryReviewStore(),
        users=InMemoryUserStore(),
        reservations=InMemoryReservationReader(),
    )


class StoreFactory:
    """Factory class to build the store bundle for the configured backend."""

    # The memory backend lives for the whole process, not per request.
    _memory: Optional[Stores] = None

    @staticmethod
    def configured_backend() -> str:
        return os.getenv("STORE_BACKEND", "sql").lower()

    @classmethod
    def create(cls, session: Optional[Session] = None, backend: Optional[str] = None) -> Stores:
        backend = (backend or cls.configured_backend()).lower()

        if backend == "sql":
            if session is None:
                logger.error("SQL store backend requested without a session")
                raise ValueError("A database session is required for the sql store backend")
            return Stores(
                experiences=SqlExperienceStore(session),
                categories=SqlCategoryStore(session),
                properties=SqlPropertyStore(session),
                reviews=SqlReviewStore(session),
                users=SqlUserStore(session),
                reservations=SqlReservationReader(session),
            )

        elif backend == "memory":
            # Starts empty and is never written to the database; the session is unused.
            if cls._memory is None:
                logger.info("Using in-memory store backend")
                cls._memory = in_memory_stores()
            return cls._memory

        else:
            logger.error("Unsupported store backend requested: %s", backend)
            raise ValueError(
                f"Unsupported store backend: {backend}. "
                "Supported backends: sql, memory"
            )

    @classmethod
    def reset(cls):
        cls._memory = None
