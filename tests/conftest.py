import os

# Point the application engine at a throwaway database before it is imported.
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from capitravel.models import sql_models  # noqa: F401
from capitravel.models.experience import DayOfWeek, ExperienceDTO
from capitravel.repositories.factory import StoreFactory, in_memory_stores
from capitravel.services.experience_manager import ExperienceManager

ALL_DAYS = list(DayOfWeek)


def make_dto(**overrides) -> ExperienceDTO:
    data = {
        "title": "Coffee Farm Tour",
        "country": "Colombia",
        "ubication": "Salento, Quindio",
        "description": "Walk the plantation and taste the harvest.",
        "images": ["https://cdn.capitravel.com/coffee.jpg"],
        "quantity": 3,
        "time_unit": "hours",
        "category_ids": [],
        "property_ids": [],
        "service_hours": "09:00-17:00",
        "available_days": ALL_DAYS,
    }
    data.update(overrides)
    return ExperienceDTO(**data)


@pytest.fixture
def stores():
    return in_memory_stores()


@pytest.fixture
def manager(stores):
    return ExperienceManager(
        experiences=stores.experiences,
        categories=stores.categories,
        properties=stores.properties,
        reviews=stores.reviews,
        users=stores.users,
        reservations=stores.reservations,
    )


@pytest.fixture
def catalogue(stores):
    """Categories 1-3, properties 1-2 and one reviewer."""
    return {
        "adventure": stores.categories.add("Adventure"),
        "culture": stores.categories.add("Culture"),
        "food": stores.categories.add("Food"),
        "wifi": stores.properties.add("Wifi"),
        "guide": stores.properties.add("Guided tour"),
        "user": stores.users.add("Ana", "Gomez", "ana@example.com"),
    }


@pytest.fixture
def sql_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def sql_session(sql_engine):
    with Session(sql_engine) as session:
        yield session


@pytest.fixture
def sql_manager(sql_session):
    stores = StoreFactory.create(sql_session, backend="sql")
    return ExperienceManager(
        experiences=stores.experiences,
        categories=stores.categories,
        properties=stores.properties,
        reviews=stores.reviews,
        users=stores.users,
        reservations=stores.reservations,
    )
