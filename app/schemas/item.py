from datetime import datetime
from pydantic import BaseModel, ConfigDict


class ItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    category: str
    image_url: str | None = None
    average_rating: float
    total_reviews: int
    created_at: datetime
    updated_at: datetime

class ItemCreate(BaseModel):
    name: str
    category: str
    description: str | None = None
    image_url: str | None = None

class ItemUpdate(BaseModel):
    name: str | None = None
    category: str | None = None
    description: str | None = None
    image_url: str | None = None

class ItemDeleted(BaseModel):
    message: str
    id: int
