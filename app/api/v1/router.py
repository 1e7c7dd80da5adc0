from fastapi import APIRouter

from app.api.v1.routes.items import router as items_router
from app.api.v1.routes.reviews import router as reviews_router

api_router = APIRouter()
api_router.include_router(items_router)
api_router.include_router(reviews_router)
