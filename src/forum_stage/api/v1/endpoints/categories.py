"""Category endpoints for the forum API."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Query, Response, status
from fastapi.responses import JSONResponse

from forum_stage.api.v1.dependencies import ModeratorDep, OptionalUserDep, SessionDep
from forum_stage.core.settings import settings
from forum_stage.models import Category
from forum_stage.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from forum_stage.schemas.common import ValidationFailureResponse
from forum_stage.services.categories import CategoryStore
from forum_stage.services.errors import ForbiddenError, ValidationFailure
from forum_stage.services.trust import TrustPolicy

router = APIRouter(prefix="/categories", tags=["categories"])

CATEGORY_NOTICE = "Could not save the category! Please check the highlighted fields."


def serialize_category(category: Category) -> CategoryResponse:
    """Serialize a Category with its URL parameter."""
    return CategoryResponse(
        id=category.id,
        name=category.name,
        description=category.description,
        position=category.position,
        trusted=category.trusted,
        param=category.to_param(work_safe=settings.work_safe_urls),
    )


def validation_response(failure: ValidationFailure, notice: str) -> JSONResponse:
    """Render a validation failure with the submitted values echoed back."""
    payload = ValidationFailureResponse(notice=notice, errors=failure.errors, values=failure.values)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=payload.model_dump(mode="json"),
    )


@router.get("/", response_model=list[CategoryResponse])
async def list_categories(db: SessionDep, current_user: OptionalUserDep) -> list[CategoryResponse]:
    """List the categories visible to the current user, in rank order."""
    return [serialize_category(c) for c in CategoryStore(db).list(current_user)]


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: str, db: SessionDep, current_user: OptionalUserDep) -> CategoryResponse:
    """Get a specific category by id or param."""
    category = CategoryStore(db).get(category_id)
    if not TrustPolicy.can_view(current_user, category):
        raise ForbiddenError("You do not have access to this category")
    return serialize_category(category)


@router.post("/", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(data: CategoryCreate, _moderator: ModeratorDep, db: SessionDep) -> Any:
    """Create a category at the end of the order."""
    result = CategoryStore(db).create(data.name, data.description, data.trusted)
    if isinstance(result, ValidationFailure):
        return validation_response(result, CATEGORY_NOTICE)
    return serialize_category(result)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    data: CategoryUpdate,
    _moderator: ModeratorDep,
    db: SessionDep,
) -> Any:
    """Update a category; changing ``trusted`` cascades to its discussions."""
    store = CategoryStore(db)
    result = store.update(store.get(category_id), data.model_dump(exclude_unset=True))
    if isinstance(result, ValidationFailure):
        return validation_response(result, CATEGORY_NOTICE)
    return serialize_category(result)


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_category(category_id: str, _moderator: ModeratorDep, db: SessionDep) -> Response:
    """Delete an unused category."""
    store = CategoryStore(db)
    failure = store.delete(store.get(category_id))
    if failure is not None:
        return validation_response(failure, "Could not delete the category.")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{category_id}/move_up", response_model=list[CategoryResponse])
async def move_category_up(category_id: str, moderator: ModeratorDep, db: SessionDep) -> list[CategoryResponse]:
    store = CategoryStore(db)
    store.move_up(store.get(category_id))
    return [serialize_category(c) for c in store.list(moderator)]


@router.post("/{category_id}/move_down", response_model=list[CategoryResponse])
async def move_category_down(category_id: str, moderator: ModeratorDep, db: SessionDep) -> list[CategoryResponse]:
    store = CategoryStore(db)
    store.move_down(store.get(category_id))
    return [serialize_category(c) for c in store.list(moderator)]


@router.post("/{category_id}/insert_at", response_model=list[CategoryResponse])
async def insert_category_at(
    category_id: str,
    moderator: ModeratorDep,
    db: SessionDep,
    position: Annotated[int, Query(ge=1)],
) -> list[CategoryResponse]:
    """Move a category to an explicit 1-based position."""
    store = CategoryStore(db)
    store.insert_at(store.get(category_id), position)
    return [serialize_category(c) for c in store.list(moderator)]
