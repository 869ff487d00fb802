"""
Category Routes
"""

from typing import List

from fastapi import APIRouter, status

from app.api.deps import CurrentUser, DbSession
from app.schemas.course import CategoryCreate, CategoryResponse
from app.services.catalog_service import CatalogService


router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get(
    "",
    response_model=List[CategoryResponse],
    summary="List categories",
)
async def list_categories(db: DbSession) -> List[CategoryResponse]:
    categories = await CatalogService(db).list_categories()
    return [CategoryResponse.model_validate(category) for category in categories]


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a category",
)
async def create_category(
    data: CategoryCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> CategoryResponse:
    """
    Create a category. The slug is derived from the name.

    Raises:
        Conflict: If the name or slug is taken.
    """
    category = await CatalogService(db).create_category(data)
    return CategoryResponse.model_validate(category)
