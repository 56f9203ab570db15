from collections import defaultdict
from collections.abc import Iterable

import structlog
from pydantic import UUID4

from app.models.interaction import InteractionEvent, InteractionResult, InteractionType
from app.models.post import Post
from app.services import counters
from app.services.store import PostStore

logger = structlog.get_logger(__name__)


class EngagementService:
    """Service for applying interaction events to post counters.

    This service is the boundary used by the like, comment and share
    handlers. Each interaction is a signed delta; deltas for the same post
    are summed before being written so concurrent events merge without
    lost updates. Failures are surfaced and never retried here.
    """

    def __init__(self, store: PostStore) -> None:
        self.store = store

    async def record_interaction(
        self, post_id: UUID4, kind: InteractionType, delta: int = 1
    ) -> InteractionResult:
        """Apply one interaction to a post.

        Args:
            post_id: ID of the post
            kind: Which counter to change
            delta: Signed change, e.g. -1 for an unlike

        Returns:
            The updated counter value

        Raises:
            NotFoundError: If the post does not exist
            InvariantViolation: If the counter would drop below zero
        """
        updated = self.store.apply_deltas(post_id, {kind: delta})
        value = counters.counter_value(updated, kind)
        logger.info(
            "interaction_recorded",
            post_id=str(post_id),
            kind=kind.value,
            delta=delta,
            value=value,
        )
        return InteractionResult(post_id=post_id, kind=kind, value=value)

    async def record_interactions(
        self, events: Iterable[InteractionEvent]
    ) -> dict[UUID4, Post]:
        """Apply a batch of interaction events.

        Deltas are combined per post and counter, then the whole batch is
        applied in one atomic store call: if any post is missing or any
        counter would drop below zero, no post changes. Every post named by
        the batch must exist, even when its deltas sum to zero.

        Args:
            events: Interaction events in any order

        Returns:
            The updated post for each post touched by the batch

        Raises:
            NotFoundError: If any post does not exist
            InvariantViolation: If any counter would drop below zero
        """
        per_post: dict[UUID4, dict[InteractionType, int]] = defaultdict(dict)
        for (post_id, kind), delta in counters.combine_deltas(events).items():
            post_deltas = per_post[post_id]
            if delta:
                post_deltas[kind] = delta

        updated = self.store.apply_batch(dict(per_post))
        logger.info("interaction_batch_recorded", posts=len(updated))
        return updated

    async def like(self, post_id: UUID4) -> InteractionResult:
        return await self.record_interaction(post_id, InteractionType.LIKE, 1)

    async def unlike(self, post_id: UUID4) -> InteractionResult:
        return await self.record_interaction(post_id, InteractionType.LIKE, -1)

    async def comment(self, post_id: UUID4) -> InteractionResult:
        return await self.record_interaction(post_id, InteractionType.COMMENT, 1)

    async def uncomment(self, post_id: UUID4) -> InteractionResult:
        return await self.record_interaction(post_id, InteractionType.COMMENT, -1)

    async def share(self, post_id: UUID4) -> InteractionResult:
        return await self.record_interaction(post_id, InteractionType.SHARE, 1)
