from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import UUID4

from app.dependencies import get_engagement_service, get_post_service
from app.exceptions import InvariantViolation, NotFoundError, ValidationError
from app.models.interaction import InteractionResult
from app.models.post import Post, PostCreate
from app.schemas.responses import InteractionRequestSchema
from app.services.engagement import EngagementService
from app.services.post import PostService

router = APIRouter(prefix="/post", tags=["post"])


@router.post("", response_model=Post, status_code=status.HTTP_201_CREATED)
async def create_post(
    post: PostCreate,
    post_service: Annotated[PostService, Depends(get_post_service)],
) -> Post:
    """Create a new video post.

    Args:
        post: The post metadata
        post_service: Injected post service

    Returns:
        The created post with its server-assigned ID

    Raises:
        HTTPException: If the data is invalid or the user does not exist
    """
    try:
        return await post_service.create_post(post)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )


@router.get("/user/{user_id}", response_model=list[Post])
async def get_user_posts(
    user_id: str,
    post_service: Annotated[PostService, Depends(get_post_service)],
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[Post]:
    """Get a user's posts, newest first.

    Args:
        user_id: ID of the user whose posts to get
        post_service: Injected post service
        limit: Maximum number of posts to return
        offset: Number of posts to skip

    Returns:
        List of the user's posts
    """
    return await post_service.get_user_posts(user_id, limit=limit, offset=offset)


@router.get("/{post_id}", response_model=Post)
async def get_post(
    post_id: UUID4,
    post_service: Annotated[PostService, Depends(get_post_service)],
) -> Post:
    """Get a post by ID.

    Raises:
        HTTPException: If post not found
    """
    try:
        return await post_service.get_post(post_id)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )


@router.post("/{post_id}/interactions", response_model=InteractionResult)
async def record_interaction(
    post_id: UUID4,
    interaction: InteractionRequestSchema,
    engagement_service: Annotated[EngagementService, Depends(get_engagement_service)],
) -> InteractionResult:
    """Apply a like, comment or share delta to a post.

    Args:
        post_id: ID of the post
        interaction: Interaction kind and signed delta
        engagement_service: Injected engagement service

    Returns:
        The updated counter value

    Raises:
        HTTPException: If the post does not exist or the counter would go
            below zero
    """
    try:
        return await engagement_service.record_interaction(
            post_id, interaction.kind, interaction.delta
        )
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
    except InvariantViolation as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )
