from datetime import datetime, timezone
from app.db.base import Base
from sqlalchemy import Integer, String, Text, Float, DateTime, CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Item(Base):
    __tablename__ = "items"

    __table_args__ = (
        CheckConstraint("average_rating >= 0 AND average_rating <= 5", name="ck_items_average_rating_range"),
        CheckConstraint("total_reviews >= 0", name="ck_items_total_reviews_non_negative"),
        Index("ix_items_category", "category"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String, nullable=False)
    image_url: Mapped[str | None] = mapped_column(String, nullable=True)
    # derived from reviews; written only by app.services.aggregation
    average_rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_reviews: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
