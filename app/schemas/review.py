from datetime import datetime
from pydantic import BaseModel, ConfigDict, field_validator


def _reject_bool(value):
    # lax int mode would otherwise read JSON true/false as 1/0
    if isinstance(value, bool):
        raise ValueError("Input should be a valid integer")
    return value


class ReviewRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item_id: int
    user_id: str
    rating: int
    title: str
    comment: str | None = None
    created_at: datetime
    updated_at: datetime

class ReviewCreate(BaseModel):
    item_id: int
    user_id: str
    rating: int
    title: str
    comment: str | None = None

    @field_validator("item_id", "rating", mode="before")
    @classmethod
    def integers_not_booleans(cls, v):
        return _reject_bool(v)

class ReviewUpdate(BaseModel):
    rating: int | None = None
    title: str | None = None
    comment: str | None = None

    @field_validator("rating", mode="before")
    @classmethod
    def rating_not_boolean(cls, v):
        return _reject_bool(v)

class ReviewDeleted(BaseModel):
    message: str
    id: int
