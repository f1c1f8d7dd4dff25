"""Discussion and conversation endpoints for the forum API."""

from __future__ import annotations

from typing import Annotated, Any, Literal

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from forum_stage.api.v1.dependencies import CurrentUserDep, OptionalUserDep, SessionDep
from forum_stage.core.settings import settings
from forum_stage.models import DiscussionRelationship, Exchange, User
from forum_stage.schemas.common import PageMeta
from forum_stage.schemas.exchange import (
    ExchangeAttributes,
    ExchangeFormResponse,
    ExchangePage,
    ExchangeResponse,
    ExchangeShowResponse,
    InviteRequest,
    InviteResponse,
    ParticipantResponse,
    RelationshipResponse,
)
from forum_stage.schemas.post import PostCreate, PostPage, PostResponse
from forum_stage.services.errors import ValidationFailure
from forum_stage.services.exchange_service import ExchangeForm, ExchangeService
from forum_stage.services.pagination import Page

from .categories import serialize_category, validation_response

router = APIRouter(prefix="/discussions", tags=["discussions"])

ExchangeKind = Literal["discussion", "conversation"]
PageParam = Annotated[str | None, Query(description="Page number, or 'last'")]

SAVE_NOTICE = "Could not save your discussion! Please make sure all required fields are filled in."


def serialize_exchange(exchange: Exchange, unread: int | None = None) -> ExchangeResponse:
    """Serialize an Exchange with its URL parameter."""
    return ExchangeResponse(
        id=exchange.id,
        kind=exchange.kind,
        title=exchange.title,
        param=exchange.to_param(work_safe=settings.work_safe_urls),
        category_id=exchange.category_id,
        trusted=exchange.trusted,
        sticky=exchange.sticky,
        closed=exchange.closed,
        nsfw=exchange.nsfw,
        poster_id=exchange.poster_id,
        last_poster_id=exchange.last_poster_id,
        posts_count=exchange.posts_count,
        created_at=exchange.created_at,
        last_post_at=exchange.last_post_at,
        unread=unread,
    )


def _exchange_page(page: Page[Exchange]) -> ExchangePage:
    unread: dict[int, int] = page.extra.get("unread", {})
    return ExchangePage(
        discussions=[serialize_exchange(e, unread.get(e.id)) for e in page.items],
        meta=PageMeta.from_page(page),
        days=page.extra.get("days"),
    )


def _participants(users: list[User]) -> list[ParticipantResponse]:
    return [ParticipantResponse.model_validate(u) for u in users]


def _relationship(relationship: DiscussionRelationship | None) -> RelationshipResponse | None:
    if relationship is None:
        return None
    return RelationshipResponse.model_validate(relationship)


def _form(form: ExchangeForm) -> ExchangeFormResponse:
    return ExchangeFormResponse(
        kind=form.kind,
        exchange=serialize_exchange(form.exchange) if form.exchange is not None else None,
        body=form.body,
        category=serialize_category(form.category) if form.category is not None else None,
        recipient=ParticipantResponse.model_validate(form.recipient) if form.recipient else None,
        categories=[serialize_category(c) for c in form.categories],
    )


# Listings


@router.get("/", response_model=ExchangePage)
async def list_discussions(
    db: SessionDep,
    current_user: OptionalUserDep,
    page: PageParam = None,
) -> ExchangePage:
    """Recent discussions, sticky ones first."""
    return _exchange_page(ExchangeService(db).list_viewable(current_user, page))


@router.get("/popular", response_model=ExchangePage)
async def popular_discussions(
    db: SessionDep,
    current_user: OptionalUserDep,
    days: int = settings.popular_default_days,
    page: PageParam = None,
) -> ExchangePage:
    """Discussions with the most posts in the last ``days`` days."""
    return _exchange_page(ExchangeService(db).list_popular(current_user, days, page))


@router.get("/search", response_model=ExchangePage)
async def search_discussions(
    db: SessionDep,
    current_user: OptionalUserDep,
    q: str | None = None,
    query: str | None = None,
    page: PageParam = None,
) -> ExchangePage:
    """Search discussion titles."""
    return _exchange_page(ExchangeService(db).search_exchanges(query or q, current_user, page))


@router.get("/favorites", response_model=ExchangePage)
async def favorite_discussions(db: SessionDep, current_user: CurrentUserDep, page: PageParam = None) -> ExchangePage:
    return _exchange_page(ExchangeService(db).list_favorites(current_user, page))


@router.get("/following", response_model=ExchangePage)
async def followed_discussions(db: SessionDep, current_user: CurrentUserDep, page: PageParam = None) -> ExchangePage:
    return _exchange_page(ExchangeService(db).list_following(current_user, page))


@router.get("/conversations", response_model=ExchangePage)
async def conversations(db: SessionDep, current_user: CurrentUserDep, page: PageParam = None) -> ExchangePage:
    return _exchange_page(ExchangeService(db).list_conversations(current_user, page))


# Create


@router.get("/new", response_model=ExchangeFormResponse)
async def new_discussion(
    db: SessionDep,
    current_user: CurrentUserDep,
    type: ExchangeKind = "discussion",
    category_id: str | None = None,
    username: str | None = None,
) -> ExchangeFormResponse:
    """Prefilled values for a new discussion or conversation."""
    form = ExchangeService(db).new_exchange(type, current_user, category_id=category_id, username=username)
    return _form(form)


@router.post("/", response_model=ExchangeResponse, status_code=status.HTTP_201_CREATED)
async def create_discussion(
    attributes: ExchangeAttributes,
    db: SessionDep,
    current_user: CurrentUserDep,
    type: ExchangeKind = "discussion",
    recipient_id: int | None = None,
) -> Any:
    """Create a discussion or conversation with its first post."""
    result = ExchangeService(db).create_exchange(
        type,
        attributes.model_dump(exclude_none=True),
        current_user,
        recipient_id=recipient_id,
    )
    if isinstance(result, ValidationFailure):
        return validation_response(result, SAVE_NOTICE)
    return serialize_exchange(result)


# Single exchange


@router.get("/{exchange_id}", response_model=ExchangeShowResponse)
async def show_discussion(
    exchange_id: str,
    db: SessionDep,
    current_user: OptionalUserDep,
    page: PageParam = None,
    mobile: bool = False,
) -> ExchangeShowResponse:
    """One page of posts; records the reader's position."""
    result = ExchangeService(db).get_exchange(
        exchange_id,
        current_user,
        page=page,
        context=0 if mobile else None,
    )
    return ExchangeShowResponse(
        exchange=serialize_exchange(result.exchange),
        posts=[PostResponse.model_validate(p) for p in result.posts.items],
        meta=PageMeta.from_page(result.posts),
        context=result.posts.context,
        relationship=_relationship(result.relationship),
        participants=_participants(result.participants),
    )


@router.get("/{exchange_id}/edit", response_model=ExchangeFormResponse)
async def edit_discussion(exchange_id: str, db: SessionDep, current_user: CurrentUserDep) -> ExchangeFormResponse:
    """Current values of an exchange, with the first post as body."""
    return _form(ExchangeService(db).edit_exchange(exchange_id, current_user))


@router.put("/{exchange_id}", response_model=ExchangeResponse)
async def update_discussion(
    exchange_id: str,
    attributes: ExchangeAttributes,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> Any:
    """Update an exchange the current user may edit."""
    result = ExchangeService(db).update_exchange(
        exchange_id,
        attributes.model_dump(exclude_none=True),
        current_user,
    )
    if isinstance(result, ValidationFailure):
        return validation_response(result, SAVE_NOTICE)
    return serialize_exchange(result)


@router.post("/{exchange_id}/posts", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def reply(exchange_id: str, data: PostCreate, db: SessionDep, current_user: CurrentUserDep) -> Any:
    """Append a post to an exchange."""
    result = ExchangeService(db).post_reply(exchange_id, current_user, data.body)
    if isinstance(result, ValidationFailure):
        return validation_response(result, "Could not save your post!")
    return PostResponse.model_validate(result)


@router.get("/{exchange_id}/search_posts", response_model=PostPage)
async def search_posts(
    exchange_id: str,
    db: SessionDep,
    current_user: OptionalUserDep,
    q: str | None = None,
    query: str | None = None,
    page: PageParam = None,
) -> PostPage:
    """Search posts within one exchange."""
    _, posts = ExchangeService(db).search_posts(exchange_id, query or q, current_user, page)
    return PostPage(posts=[PostResponse.model_validate(p) for p in posts.items], meta=PageMeta.from_page(posts))


# Relationships


def _define(db: Session, exchange_id: str, user: User, kind: str, value: bool) -> RelationshipResponse:
    relationship = ExchangeService(db).define_relationship(exchange_id, user, kind, value)
    return RelationshipResponse.model_validate(relationship)


@router.post("/{exchange_id}/follow", response_model=RelationshipResponse)
async def follow(exchange_id: str, db: SessionDep, current_user: CurrentUserDep) -> RelationshipResponse:
    return _define(db, exchange_id, current_user, "following", True)


@router.post("/{exchange_id}/unfollow", response_model=RelationshipResponse)
async def unfollow(exchange_id: str, db: SessionDep, current_user: CurrentUserDep) -> RelationshipResponse:
    return _define(db, exchange_id, current_user, "following", False)


@router.post("/{exchange_id}/favorite", response_model=RelationshipResponse)
async def favorite(exchange_id: str, db: SessionDep, current_user: CurrentUserDep) -> RelationshipResponse:
    return _define(db, exchange_id, current_user, "favorite", True)


@router.post("/{exchange_id}/unfavorite", response_model=RelationshipResponse)
async def unfavorite(exchange_id: str, db: SessionDep, current_user: CurrentUserDep) -> RelationshipResponse:
    return _define(db, exchange_id, current_user, "favorite", False)


@router.post("/{exchange_id}/invite_participant", response_model=InviteResponse)
async def invite_participant(
    exchange_id: str,
    data: InviteRequest,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> InviteResponse:
    """Invite users to a conversation by username."""
    service = ExchangeService(db)
    exchange, result = service.invite_participants(exchange_id, current_user, data.username)
    return InviteResponse(
        invited=_participants(result.invited),
        skipped=result.skipped,
        participants=_participants(service.participants(exchange)),
    )


@router.post("/{exchange_id}/remove_participant")
async def remove_participant(exchange_id: str, db: SessionDep, current_user: CurrentUserDep) -> JSONResponse:
    """Leave a conversation."""
    removed = ExchangeService(db).remove_participant(exchange_id, current_user)
    notice = "You have been removed from the conversation" if removed else None
    return JSONResponse({"removed": removed, "notice": notice})


@router.post("/{exchange_id}/mark_as_read")
async def mark_as_read(exchange_id: str, db: SessionDep, current_user: CurrentUserDep) -> dict[str, str]:
    """Mark every post of the exchange as read."""
    ExchangeService(db).mark_as_read(exchange_id, current_user)
    return {"status": "OK"}
