from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.api.deps import get_db
from app.schemas.item import ItemRead, ItemCreate, ItemUpdate, ItemDeleted
from app.services import items as item_service

router = APIRouter(prefix="/items", tags=["Items"])

@router.get("/", response_model=list[ItemRead])
def list_items(
    limit: int | None = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    search: str | None = None,
    category: str | None = None,
    db: Session=Depends(get_db),
):
    return item_service.list_items(db, limit=limit, offset=offset, search=search, category=category)

@router.get("/categories", response_model=list[str])
def list_categories(db: Session=Depends(get_db)):
    return item_service.list_categories(db)

@router.get("/by-id/{id}", response_model=ItemRead)
def get_item(id: int, db: Session=Depends(get_db)):
    return item_service.get_item(db, id)

@router.post("/", response_model=ItemRead, status_code=201)
def create_item(payload: ItemCreate, db: Session=Depends(get_db)):
    return item_service.create_item(db, **payload.model_dump())

@router.put("/by-id/{id}", response_model=ItemRead)
def update_item(id: int, payload: ItemUpdate, db: Session=Depends(get_db)):
    return item_service.update_item(db, id, payload.model_dump(exclude_unset=True))

@router.delete("/by-id/{id}", response_model=ItemDeleted)
def delete_item(id: int, db: Session=Depends(get_db)):
    deleted_id = item_service.delete_item(db, id)
    return ItemDeleted(message="Item deleted successfully", id=deleted_id)

@router.post("/by-id/{id}/recompute", response_model=ItemRead)
def recompute_item(id: int, db: Session=Depends(get_db)):
    return item_service.recompute_item(db, id)
