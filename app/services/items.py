from app.config.settings import get_settings
from app.core.errors import ConflictError, NotFoundError
from app.core.logger import get_logger
from app.db.models.item import Item, utcnow
from app.db.repositories import items as items_repo
from app.db.repositories import reviews as reviews_repo
from app.services.aggregation import recompute_item_aggregate
from app.services.transactions import run_in_transaction
from app.validators.items import clean_optional_text, validate_category, validate_name
from app.validators.reviews import validate_id

logger = get_logger(__name__)


def get_item(db, item_id) -> Item:
    item = items_repo.get_item(db, validate_id(item_id))
    if item is None:
        raise NotFoundError("Item not found", "ITEM_NOT_FOUND")
    return item

def list_items(db, limit: int | None = None, offset: int = 0, search: str | None = None, category: str | None = None) -> list[Item]:
    settings = get_settings()
    limit = min(max(limit or settings.default_page_size, 1), settings.max_page_size)
    return items_repo.list_items(
        db,
        limit=limit,
        offset=max(offset, 0),
        search=search.strip() if search else None,
        category=category,
    )

def list_categories(db) -> list[str]:
    return items_repo.list_categories(db)

def create_item(db, name, category, description=None, image_url=None) -> Item:
    item = Item(
        name=validate_name(name),
        category=validate_category(category),
        description=clean_optional_text(description),
        image_url=clean_optional_text(image_url),
        average_rating=0.0,
        total_reviews=0,
    )

    def work() -> Item:
        db.add(item)
        db.flush()
        return item

    run_in_transaction(db, work)
    db.refresh(item)

    logger.info(f"Created item {item.id}", extra={"event": "item_created", "item_id": item.id})
    return item

def update_item(db, item_id, changes: dict) -> Item:
    item_id = validate_id(item_id)

    def work() -> Item:
        item = items_repo.get_item(db, item_id)
        # average_rating and total_reviews are owned by app.services.aggregation
        if item is None:
            raise NotFoundError("Item not found", "ITEM_NOT_FOUND")

        if "name" in changes:
            item.name = validate_name(changes["name"], creating=False)
        if "category" in changes:
            item.category = validate_category(changes["category"], creating=False)
        if "description" in changes:
            item.description = clean_optional_text(changes["description"])
        if "image_url" in changes:
            item.image_url = clean_optional_text(changes["image_url"])
        item.updated_at = utcnow()
        db.flush()
        return item

    item = run_in_transaction(db, work)
    db.refresh(item)

    logger.info(
        f"Updated item {item_id}",
        extra={"event": "item_updated", "item_id": item_id, "fields": sorted(changes)},
    )
    return item

def delete_item(db, item_id) -> int:
    item_id = validate_id(item_id)

    def work() -> None:
        item = items_repo.get_item(db, item_id, for_update=True)
        if item is None:
            raise NotFoundError("Item not found", "ITEM_NOT_FOUND")

        review_count = reviews_repo.count_reviews(db, item_id)
        if review_count:
            raise ConflictError(
                f"Item still has {review_count} review(s); delete them first", "ITEM_HAS_REVIEWS"
            )
        db.delete(item)

    run_in_transaction(db, work)

    logger.info(f"Deleted item {item_id}", extra={"event": "item_deleted", "item_id": item_id})
    return item_id

def recompute_item(db, item_id) -> Item:
    item_id = validate_id(item_id)

    def work() -> None:
        if items_repo.get_item(db, item_id, for_update=True) is None:
            raise NotFoundError("Item not found", "ITEM_NOT_FOUND")
        recompute_item_aggregate(db, item_id)

    run_in_transaction(db, work)
    return get_item(db, item_id)
