"""Pure operations on Post values.

Nothing in this module touches storage; every function returns a new Post
(or a plain value) and leaves its arguments unchanged.
"""

from collections import defaultdict
from collections.abc import Iterable
from datetime import UTC, datetime
from uuid import uuid4

import pydantic
import structlog
from pydantic import UUID4

from app.exceptions import InvariantViolation, ValidationError
from app.models.interaction import InteractionEvent, InteractionType
from app.models.post import Post, PostBase, PostDraft

logger = structlog.get_logger(__name__)


def create(
    user_id: str,
    description: str,
    poster_url: str,
    video_url: str,
    created_at: datetime | str | None = None,
) -> Post:
    """Create a new post with a fresh ID and zeroed counters.

    Args:
        user_id: ID of the owning user, must be non-empty
        description: Caption, may be empty
        poster_url: URI of the thumbnail image
        video_url: URI of the video
        created_at: Creation time; defaults to now. Must be timezone-aware
            and not in the future.

    Returns:
        The new post

    Raises:
        ValidationError: If any field is missing or malformed
    """
    try:
        data = PostDraft(
            user_id=user_id,
            description=description,
            poster_url=poster_url,
            video_url=video_url,
            created_at=created_at,
        )
    except pydantic.ValidationError as e:
        raise ValidationError(str(e)) from e
    return from_create(data, data.created_at)


def from_create(data: PostBase, created_at: datetime | None = None) -> Post:
    """Build a Post from already validated data.

    The creation time defaults to now; fields outside PostBase are not read.
    """
    return Post(
        id=uuid4(),
        user_id=data.user_id,
        description=data.description,
        poster_url=data.poster_url,
        video_url=data.video_url,
        created_at=created_at or datetime.now(UTC),
        likes=0,
        comments=0,
        shares=0,
    )


def counter_value(post: Post, kind: InteractionType) -> int:
    return getattr(post, kind.counter)


def apply_delta(post: Post, kind: InteractionType, delta: int) -> Post:
    """Return a copy of post with one counter changed by delta.

    Raises:
        InvariantViolation: If the counter would drop below zero
    """
    current = counter_value(post, kind)
    updated = current + delta
    if updated < 0:
        logger.warning(
            "counter_underflow_rejected",
            post_id=str(post.id),
            counter=kind.counter,
            value=current,
            delta=delta,
        )
        raise InvariantViolation(
            f"{kind.counter} cannot go below 0 (current {current}, delta {delta})"
        )
    return post.model_copy(update={kind.counter: updated})


def increment_likes(post: Post) -> Post:
    return apply_delta(post, InteractionType.LIKE, 1)


def decrement_likes(post: Post) -> Post:
    return apply_delta(post, InteractionType.LIKE, -1)


def increment_comments(post: Post) -> Post:
    return apply_delta(post, InteractionType.COMMENT, 1)


def decrement_comments(post: Post) -> Post:
    return apply_delta(post, InteractionType.COMMENT, -1)


def increment_shares(post: Post) -> Post:
    return apply_delta(post, InteractionType.SHARE, 1)


def decrement_shares(post: Post) -> Post:
    return apply_delta(post, InteractionType.SHARE, -1)


def equals(a: Post, b: Post) -> bool:
    """Full equality: every field, counters included."""
    return a.model_dump() == b.model_dump()


def same_identity(a: Post, b: Post) -> bool:
    """Identity equality: both values describe the same post."""
    return a.id == b.id


def combine_deltas(
    events: Iterable[InteractionEvent],
) -> dict[tuple[UUID4, InteractionType], int]:
    """Sum interaction deltas per (post, counter).

    Summation is commutative and associative, so events from concurrent
    writers can be merged in any order without losing updates.
    """
    totals: dict[tuple[UUID4, InteractionType], int] = defaultdict(int)
    for event in events:
        totals[(event.post_id, event.kind)] += event.delta
    return dict(totals)


def apply_deltas(post: Post, deltas: dict[InteractionType, int]) -> Post:
    """Apply several counter deltas to one post, all or nothing."""
    for kind, delta in deltas.items():
        post = apply_delta(post, kind, delta)
    return post
