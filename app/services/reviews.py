"""
Review mutations.

Each mutation is one transaction: lock the item row, write the review, flush,
recompute the item aggregate, commit. The row lock serialises writers per item,
so two concurrent creates for the same item cannot both compute from a review set
that misses the other's row. Writers for different items never wait on each other.

Update and delete lock the review row before the item row, so a request that
loses a race on the same review re-reads it as gone and answers not-found.
"""
from app.config.settings import get_settings
from app.core.errors import NotFoundError
from app.core.logger import get_logger
from app.db.models.item import utcnow
from app.db.models.review import Review
from app.db.repositories import items as items_repo
from app.db.repositories import reviews as reviews_repo
from app.services.aggregation import recompute_item_aggregate
from app.services.transactions import run_in_transaction
from app.validators.reviews import (
    clean_comment,
    validate_id,
    validate_item_id,
    validate_rating,
    validate_title,
    validate_user_id,
)

logger = get_logger(__name__)


def get_review(db, review_id) -> Review:
    review = reviews_repo.get_review(db, validate_id(review_id))
    if review is None:
        raise NotFoundError("Review not found", "REVIEW_NOT_FOUND")
    return review

def list_reviews(db, item_id=None, limit: int | None = None, offset: int = 0, order: str = "desc") -> list[Review]:
    settings = get_settings()
    if item_id is not None:
        item_id = validate_item_id(item_id)
    limit = min(max(limit or settings.default_page_size, 1), settings.max_page_size)
    return reviews_repo.list_reviews(db, limit=limit, offset=max(offset, 0), item_id=item_id, order=order)

def create_review(db, item_id, user_id, rating, title, comment=None) -> Review:
    item_id = validate_item_id(item_id)
    user_id = validate_user_id(user_id)
    rating = validate_rating(rating)
    title = validate_title(title)
    comment = clean_comment(comment)

    def work() -> Review:
        if items_repo.get_item(db, item_id, for_update=True) is None:
            raise NotFoundError("Item not found", "ITEM_NOT_FOUND")

        review = Review(item_id=item_id, user_id=user_id, rating=rating, title=title, comment=comment)
        db.add(review)
        db.flush()
        recompute_item_aggregate(db, item_id)
        return review

    review = run_in_transaction(db, work)
    db.refresh(review)

    logger.info(
        f"Created review {review.id} for item {item_id}",
        extra={"event": "review_created", "review_id": review.id, "item_id": item_id, "rating": rating},
    )
    return review

def update_review(db, review_id, changes: dict) -> Review:
    """
    Apply a partial update. Only keys present in ``changes`` are touched; the item
    aggregate is recomputed only when ``rating`` is one of them.
    """
    review_id = validate_id(review_id)

    def work() -> Review:
        review = reviews_repo.get_review(db, review_id, for_update=True)
        if review is None:
            raise NotFoundError("Review not found", "REVIEW_NOT_FOUND")

        updates = {}
        if "rating" in changes:
            updates["rating"] = validate_rating(changes["rating"])
        if "title" in changes:
            updates["title"] = validate_title(changes["title"], "INVALID_TITLE")
        if "comment" in changes:
            updates["comment"] = clean_comment(changes["comment"])

        rating_changed = "rating" in updates
        if rating_changed:
            items_repo.get_item(db, review.item_id, for_update=True)

        for key, value in updates.items():
            setattr(review, key, value)
        review.updated_at = utcnow()
        db.flush()

        if rating_changed:
            recompute_item_aggregate(db, review.item_id)
        return review

    review = run_in_transaction(db, work)
    db.refresh(review)

    logger.info(
        f"Updated review {review_id}",
        extra={"event": "review_updated", "review_id": review_id, "fields": sorted(changes)},
    )
    return review

def delete_review(db, review_id) -> int:
    review_id = validate_id(review_id)

    def work() -> int:
        review = reviews_repo.get_review(db, review_id, for_update=True)
        if review is None:
            raise NotFoundError("Review not found", "REVIEW_NOT_FOUND")

        item_id = review.item_id
        items_repo.get_item(db, item_id, for_update=True)
        db.delete(review)
        db.flush()
        recompute_item_aggregate(db, item_id)
        return item_id

    item_id = run_in_transaction(db, work)

    logger.info(
        f"Deleted review {review_id} from item {item_id}",
        extra={"event": "review_deleted", "review_id": review_id, "item_id": item_id},
    )
    return review_id
