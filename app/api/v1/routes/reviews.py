from typing import Literal
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.api.deps import get_db
from app.schemas.review import ReviewRead, ReviewCreate, ReviewUpdate, ReviewDeleted
from app.services import reviews as review_service

router = APIRouter(prefix="/reviews", tags=["Reviews"])

@router.get("/", response_model=list[ReviewRead])
def list_reviews(
    item_id: int | None = None,
    limit: int | None = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    order: Literal["asc", "desc"] = "desc",
    db: Session=Depends(get_db),
):
    return review_service.list_reviews(db, item_id=item_id, limit=limit, offset=offset, order=order)

@router.get("/by-id/{id}", response_model=ReviewRead)
def get_review(id: int, db: Session=Depends(get_db)):
    return review_service.get_review(db, id)

@router.post("/", response_model=ReviewRead, status_code=201)
def create_review(payload: ReviewCreate, db: Session=Depends(get_db)):
    return review_service.create_review(db, **payload.model_dump())

@router.put("/by-id/{id}", response_model=ReviewRead)
def update_review(id: int, payload: ReviewUpdate, db: Session=Depends(get_db)):
    return review_service.update_review(db, id, payload.model_dump(exclude_unset=True))

@router.delete("/by-id/{id}", response_model=ReviewDeleted)
def delete_review(id: int, db: Session=Depends(get_db)):
    deleted_id = review_service.delete_review(db, id)
    return ReviewDeleted(message="Review deleted successfully", id=deleted_id)
