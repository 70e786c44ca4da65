from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from capitravel.core.database import get_session
from capitravel.main import app
from capitravel.models.sql_models import Category, Property, Reservation, User
from capitravel.repositories.factory import StoreFactory


@pytest.fixture
def client(sql_engine, monkeypatch):
    monkeypatch.delenv("STORE_BACKEND", raising=False)

    with Session(sql_engine) as session:
        session.add(Category(name="Adventure"))
        session.add(Category(name="Culture"))
        session.add(Property(name="Guided tour"))
        session.add(User(name="Ana", lastname="Gomez", email="ana@example.com"))
        session.commit()

    def override_get_session():
        with Session(sql_engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _payload(**overrides):
    data = {
        "title": "Rafting on the Pacuare",
        "country": "costa rica",
        "ubication": "Turrialba",
        "description": "Class III-IV rapids through the rainforest.",
        "images": [],
        "quantity": 1,
        "timeUnit": "days",
        "categoryIds": [1],
        "propertyIds": [1],
        "serviceHours": "07:00-15:00",
        "availableDays": ["MONDAY", "SATURDAY"],
    }
    data.update(overrides)
    return data


def test_experience_crud_flow(client):
    response = client.post("/experiences/", json=_payload())
    assert response.status_code == 201
    body = response.json()
    experience_id = body["id"]
    assert body["timeUnit"] == "days"
    assert body["categories"] == [{"id": 1, "name": "Adventure"}]
    assert body["availableDays"] == ["MONDAY", "SATURDAY"]
    assert body["reputation"] == 0.0
    assert body["ratingCount"] == 0

    response = client.get(f"/experiences/{experience_id}")
    assert response.status_code == 200
    assert response.json()["title"] == "Rafting on the Pacuare"

    response = client.put(f"/experiences/{experience_id}", json=_payload(categoryIds=[1, 2]))
    assert response.status_code == 200
    assert sorted(c["name"] for c in response.json()["categories"]) == ["Adventure", "Culture"]

    response = client.get("/experiences/")
    assert [e["id"] for e in response.json()] == [experience_id]

    response = client.delete(f"/experiences/{experience_id}")
    assert response.status_code == 200

    response = client.get(f"/experiences/{experience_id}")
    assert response.status_code == 404
    assert response.json()["detail"] == f"Experience with id: {experience_id} not found"


def test_error_kinds_map_to_status_codes(client):
    assert client.post("/experiences/", json=_payload()).status_code == 201

    assert client.post("/experiences/", json=_payload()).status_code == 409
    assert client.post("/experiences/", json=_payload(title="B", categoryIds=[1, 1])).status_code == 409
    assert client.post("/experiences/", json=_payload(title="C", serviceHours="0700-1500")).status_code == 400
    assert client.post("/experiences/", json=_payload(title="D", serviceHours="15:00-07:00")).status_code == 400
    assert client.post("/experiences/", json=_payload(title="E", propertyIds=[9])).status_code == 404
    assert client.delete("/experiences/77").status_code == 404


def test_catalogue_queries(client):
    client.post("/experiences/", json=_payload())
    client.post("/experiences/", json=_payload(title="Museum night", country="COSTA RICA ", categoryIds=[2]))

    assert client.get("/experiences/countries").json() == ["Costa Rica"]

    response = client.get("/experiences/categories", params={"ids": [1]})
    assert [e["title"] for e in response.json()] == ["Rafting on the Pacuare"]

    response = client.get("/experiences/categories", params={"ids": [1, 5, 6]})
    assert response.status_code == 404
    assert "[5, 6]" in response.json()["detail"]

    response = client.get("/experiences/favorites", params={"ids": [2, 40]})
    assert [e["title"] for e in response.json()] == ["Museum night"]


def test_search_endpoint(client):
    client.post("/experiences/", json=_payload())

    response = client.get("/experiences/search", params={"keywords": "guided"})
    assert len(response.json()) == 1

    # 2024-01-20 is a Saturday, 2024-01-17 a Wednesday.
    params = {"startDate": "2024-01-20T00:00:00", "endDate": "2024-01-20T23:00:00"}
    assert len(client.get("/experiences/search", params=params).json()) == 1
    params = {"startDate": "2024-01-17T00:00:00", "endDate": "2024-01-17T23:00:00"}
    assert client.get("/experiences/search", params=params).json() == []


def test_review_flow(client):
    experience_id = client.post("/experiences/", json=_payload()).json()["id"]

    response = client.get(f"/experiences/{experience_id}/rating", params={"email": "ana@example.com"})
    assert response.json() == {"rating": 0}

    response = client.post(
        f"/experiences/{experience_id}/reviews",
        json={"email": "ana@example.com", "rating": 4.5, "review": "Wild ride"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["experienceId"] == experience_id
    assert body["reviewMessage"] == "Wild ride"
    assert body["name"] == "Ana"

    response = client.post(
        f"/experiences/{experience_id}/reviews",
        json={"email": "ana@example.com", "rating": 2.0},
    )
    assert response.status_code == 409

    response = client.post(
        f"/experiences/{experience_id}/reviews",
        json={"email": "ana@example.com", "rating": 4.2},
    )
    assert response.status_code == 400

    assert client.get(f"/experiences/{experience_id}/rating", params={"email": "ana@example.com"}).json() == {
        "rating": 4.5
    }
    assert len(client.get(f"/experiences/{experience_id}/reviews").json()) == 1
    assert client.get(f"/experiences/{experience_id}").json()["reputation"] == 4.5


def test_search_accepts_utc_suffixed_dates(client, sql_engine):
    experience_id = client.post("/experiences/", json=_payload()).json()["id"]
    with Session(sql_engine) as session:
        session.add(
            Reservation(
                experience_id=experience_id,
                email="ana@example.com",
                check_in=datetime(2024, 1, 20, 8, tzinfo=timezone.utc),
                check_out=datetime(2024, 1, 20, 12, tzinfo=timezone.utc),
            )
        )
        session.commit()

    params = {"startDate": "2024-01-20T10:00:00Z", "endDate": "2024-01-20T11:00:00Z"}
    response = client.get("/experiences/search", params=params)
    assert response.status_code == 200
    assert response.json() == []

    params = {"startDate": "2024-01-20T13:00:00", "endDate": "2024-01-20T14:00:00"}
    assert len(client.get("/experiences/search", params=params).json()) == 1


def test_memory_backend_serves_requests(monkeypatch):
    monkeypatch.setenv("STORE_BACKEND", "memory")
    StoreFactory.reset()
    try:
        with TestClient(app) as client:
            response = client.post("/experiences/", json=_payload(categoryIds=[], propertyIds=[]))
            assert response.status_code == 201
            experience_id = response.json()["id"]

            assert client.get(f"/experiences/{experience_id}").json()["title"] == "Rafting on the Pacuare"
            assert client.get("/experiences/countries").json() == ["Costa Rica"]
    finally:
        StoreFactory.reset()
