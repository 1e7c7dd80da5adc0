"""
Item rating aggregates.

``items.average_rating`` and ``items.total_reviews`` are a materialised view of the
``reviews`` rows for that item. They are only ever written here, always as a full
recompute expressed as one UPDATE statement, so the result cannot drift from the
review table no matter how mutations interleave.

Callers are expected to hold the item row lock (see ``app.services.reviews``) and to
have flushed their review write in the same transaction before calling
``recompute_item_aggregate``.
"""
from sqlalchemy import Float, cast, func, select, update

from app.core.errors import ConsistencyError
from app.core.logger import get_logger
from app.db.models.item import Item, utcnow
from app.db.models.review import Review

logger = get_logger(__name__)


def aggregate_ratings(ratings: list[int]) -> tuple[float, int]:
    """Reference full-rescan aggregate: ``(mean, count)``, or ``(0.0, 0)`` for no ratings."""
    if not ratings:
        return 0.0, 0
    return sum(ratings) / len(ratings), len(ratings)


def recompute_item_aggregate(db, item_id: int) -> None:
    """
    Rewrite the aggregate of ``item_id`` from its current review rows.

    Raises ConsistencyError when no item row matched the write, which means reviews
    exist (or existed) for an item that does not.
    """
    for_item = Review.item_id == item_id
    average_rating = (
        select(func.coalesce(func.avg(cast(Review.rating, Float)), 0.0))
        .where(for_item)
        .scalar_subquery()
    )
    total_reviews = (
        select(func.count(Review.id))
        .where(for_item)
        .scalar_subquery()
    )

    result = db.execute(
        update(Item)
        .where(Item.id == item_id)
        .values(
            average_rating=average_rating,
            total_reviews=total_reviews,
            updated_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 0:
        logger.error(
            f"Aggregate target item {item_id} does not exist",
            extra={"event": "aggregate_target_missing", "item_id": item_id},
        )
        raise ConsistencyError(f"Cannot recompute aggregate: item {item_id} does not exist")

    logger.debug(
        f"Recomputed aggregate for item {item_id}",
        extra={"event": "aggregate_recomputed", "item_id": item_id},
    )
