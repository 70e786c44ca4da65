from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from capitravel.core.database import get_session
from capitravel.models.experience import (
    ExperienceDTO,
    ExperienceResponse,
    ReviewRequest,
    ReviewResponse,
)
from capitravel.repositories.factory import StoreFactory
from capitravel.services.experience_manager import ExperienceManager

router = APIRouter(prefix="/experiences", tags=["Experiences"])


def get_experience_manager(session: Session = Depends(get_session)) -> ExperienceManager:
    # Sessions connect lazily, so the memory backend never touches the database.
    stores = StoreFactory.create(session)
    return ExperienceManager(
        experiences=stores.experiences,
        categories=stores.categories,
        properties=stores.properties,
        reviews=stores.reviews,
        users=stores.users,
        reservations=stores.reservations,
    )


def _to_response(experiences) -> List[ExperienceResponse]:
    return [ExperienceResponse.model_validate(exp) for exp in experiences]


@router.get("/", response_model=List[ExperienceResponse])
def list_experiences(manager: ExperienceManager = Depends(get_experience_manager)):
    return _to_response(manager.get_all())


@router.get("/categories", response_model=List[ExperienceResponse])
def experiences_by_categories(
    ids: List[int] = Query(...),
    manager: ExperienceManager = Depends(get_experience_manager),
):
    return _to_response(manager.get_by_categories(ids))


@router.get("/countries", response_model=List[str])
def list_countries(manager: ExperienceManager = Depends(get_experience_manager)):
    return manager.get_countries()


@router.get("/favorites", response_model=List[ExperienceResponse])
def favorite_experiences(
    ids: List[int] = Query(default=[]),
    manager: ExperienceManager = Depends(get_experience_manager),
):
    return _to_response(manager.get_favorites(ids))


@router.get("/search", response_model=List[ExperienceResponse])
def search_experiences(
    keywords: Optional[str] = None,
    country: Optional[str] = None,
    start_date: Optional[datetime] = Query(default=None, alias="startDate"),
    end_date: Optional[datetime] = Query(default=None, alias="endDate"),
    manager: ExperienceManager = Depends(get_experience_manager),
):
    return _to_response(manager.search(keywords, country, start_date, end_date))


@router.get("/{experience_id}", response_model=ExperienceResponse)
def get_experience(experience_id: int, manager: ExperienceManager = Depends(get_experience_manager)):
    return ExperienceResponse.model_validate(manager.get_by_id(experience_id))


@router.post("/", response_model=ExperienceResponse, status_code=status.HTTP_201_CREATED)
def create_experience(payload: ExperienceDTO, manager: ExperienceManager = Depends(get_experience_manager)):
    return ExperienceResponse.model_validate(manager.create(payload))


@router.put("/{experience_id}", response_model=ExperienceResponse)
def update_experience(
    experience_id: int,
    payload: ExperienceDTO,
    manager: ExperienceManager = Depends(get_experience_manager),
):
    return ExperienceResponse.model_validate(manager.update(experience_id, payload))


@router.delete("/{experience_id}")
def delete_experience(experience_id: int, manager: ExperienceManager = Depends(get_experience_manager)):
    manager.delete(experience_id)
    return {"message": f"Experience {experience_id} deleted successfully"}


# --- Reviews ---

@router.post(
    "/{experience_id}/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
)
def review_experience(
    experience_id: int,
    payload: ReviewRequest,
    manager: ExperienceManager = Depends(get_experience_manager),
):
    review = manager.review_experience(experience_id, payload.email, payload.rating, payload.review)
    return ReviewResponse.model_validate(review)


@router.get("/{experience_id}/reviews", response_model=List[ReviewResponse])
def list_reviews(experience_id: int, manager: ExperienceManager = Depends(get_experience_manager)):
    return [ReviewResponse.model_validate(r) for r in manager.get_all_reviews(experience_id)]


@router.get("/{experience_id}/rating")
def user_rating(
    experience_id: int,
    email: str,
    manager: ExperienceManager = Depends(get_experience_manager),
):
    return {"rating": manager.already_rated(experience_id, email)}
