"""Mention matching and review API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import Field

from ..config import get_settings
from ..resolution import (
    InvalidMentionLinkError,
    InvalidTransitionError,
    Mention,
    MentionInput,
    MentionMatchingService,
    MentionMatchResult,
    MentionNotFoundError,
    MentionStatus,
    MentionStore,
    ReviewAction,
)
from ..resolution.models import CamelModel, NonEmptyStr
from . import ConflictError, ErrorDetail, NotFoundError, PaginatedResponse, ValidationError
from .auth import CurrentOwner

router = APIRouter()


# =========================
# Request/Response Models
# =========================


class MatchMentionsRequest(CamelModel):
    """Mentions extracted from a source contact's transcript."""

    mentions: list[MentionInput]
    source_contact_id: NonEmptyStr


class MatchMentionsResponse(CamelModel):
    """One result per input mention, same order."""

    matches: list[MentionMatchResult]


class ReviewMentionRequest(CamelModel):
    """Reviewer decision on a pending mention."""

    action: ReviewAction
    mentioned_contact_id: str | None = Field(
        default=None, description="Link to this contact instead of the resolver's pick"
    )


# =========================
# Dependencies
# =========================


def get_matching_service() -> MentionMatchingService:
    return MentionMatchingService()


def get_mention_store() -> MentionStore:
    return MentionStore()


MatchingService = Annotated[MentionMatchingService, Depends(get_matching_service)]
Store = Annotated[MentionStore, Depends(get_mention_store)]


# =========================
# Match Mentions
# =========================


@router.post("/contacts/match-mentions", response_model=MatchMentionsResponse)
async def match_mentions(
    body: MatchMentionsRequest,
    owner: CurrentOwner,
    service: MatchingService,
) -> MatchMentionsResponse:
    """Resolve mentions to the caller's contacts and record them for review."""
    max_mentions = get_settings().match_max_mentions
    if len(body.mentions) > max_mentions:
        raise ValidationError(
            "Too many mentions",
            details=[
                ErrorDetail(
                    code="too_long",
                    message=f"At most {max_mentions} mentions per request",
                    field="mentions",
                )
            ],
        )

    if not body.mentions:
        return MatchMentionsResponse(matches=[])

    matches = await service.match_mentions(
        body.mentions,
        source_contact_id=body.source_contact_id,
        owner_id=owner.id,
    )
    return MatchMentionsResponse(matches=matches)


# =========================
# List Mentions
# =========================


@router.get(
    "/contacts/{source_contact_id}/mentions",
    response_model=PaginatedResponse[Mention],
)
async def list_mentions(
    source_contact_id: str,
    owner: CurrentOwner,
    store: Store,
    status: MentionStatus | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    """List mentions recorded while enriching a contact."""
    mentions, total = await store.list_for_source(
        owner_id=owner.id,
        source_contact_id=source_contact_id,
        status=status,
        limit=limit,
        offset=offset,
    )
    return PaginatedResponse[Mention](
        results=mentions,
        total=total,
        limit=limit,
        offset=offset,
    )


# =========================
# Review Mention
# =========================


@router.patch("/mentions/{mention_id}", response_model=Mention)
async def review_mention(
    mention_id: str,
    body: ReviewMentionRequest,
    owner: CurrentOwner,
    store: Store,
) -> Mention:
    """Confirm or reject a pending mention."""
    try:
        return await store.review(
            mention_id,
            owner_id=owner.id,
            action=body.action,
            mentioned_contact_id=body.mentioned_contact_id,
        )
    except MentionNotFoundError:
        raise NotFoundError("Mention", mention_id)
    except InvalidTransitionError as e:
        raise ConflictError(str(e))
    except InvalidMentionLinkError as e:
        raise ValidationError(str(e))
