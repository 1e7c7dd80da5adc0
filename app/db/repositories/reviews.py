from app.db.models.review import Review
from sqlalchemy import select, func


def get_review(db, review_id: int, for_update: bool = False):
    stmt = select(Review).where(Review.id == review_id)
    if for_update:
        stmt = stmt.with_for_update()

    return db.execute(stmt).scalar_one_or_none()

def list_reviews(
    db,
    limit: int,
    offset: int = 0,
    item_id: int | None = None,
    order: str = "desc",
):
    stmt = select(Review)
    if item_id is not None:
        stmt = stmt.where(Review.item_id == item_id)

    if order == "asc":
        stmt = stmt.order_by(Review.created_at.asc(), Review.id.asc())
    else:
        stmt = stmt.order_by(Review.created_at.desc(), Review.id.desc())

    return db.execute(stmt.limit(limit).offset(offset)).scalars().all()

def count_reviews(db, item_id: int) -> int:
    return db.execute(
        select(func.count(Review.id)).where(Review.item_id == item_id)
    ).scalar_one()

def get_ratings(db, item_id: int) -> list[int]:
    return db.execute(
        select(Review.rating).where(Review.item_id == item_id)
    ).scalars().all()
