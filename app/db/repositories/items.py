from app.db.models.item import Item
from sqlalchemy import select, or_


def get_item(db, item_id: int, for_update: bool = False):
    stmt = select(Item).where(Item.id == item_id)
    if for_update:
        stmt = stmt.with_for_update()

    return db.execute(stmt).scalar_one_or_none()

def list_items(
    db,
    limit: int,
    offset: int = 0,
    search: str | None = None,
    category: str | None = None,
):
    stmt = select(Item)

    if search:
        stmt = stmt.where(
            or_(
                Item.name.icontains(search, autoescape=True),
                Item.description.icontains(search, autoescape=True),
            )
        )
    if category:
        stmt = stmt.where(Item.category == category)

    return db.execute(
        stmt.order_by(Item.id).limit(limit).offset(offset)
    ).scalars().all()

def list_categories(db) -> list[str]:
    return db.execute(
        select(Item.category).distinct().order_by(Item.category)
    ).scalars().all()

def get_item_ids(db, after_id: int = 0, batch_size: int = 500) -> list[int]:
    return db.execute(
        select(Item.id)
        .where(Item.id > after_id)
        .order_by(Item.id)
        .limit(batch_size)
    ).scalars().all()
