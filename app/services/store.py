from datetime import datetime
from threading import Lock
from typing import Protocol

import structlog
from pydantic import UUID4

from app.exceptions import NotFoundError, ValidationError
from app.models.interaction import InteractionType
from app.models.post import Post
from app.schemas.database_records import PostRecord, from_record, to_record
from app.services import counters

logger = structlog.get_logger(__name__)


class PostStore(Protocol):
    """Persistence contract for posts.

    Implementations hand out independent copies, raise NotFoundError for
    unknown IDs and apply counter deltas atomically, for one post or a batch.
    """

    def add(self, post: Post) -> Post: ...

    def get(self, post_id: UUID4) -> Post: ...

    def list_by_user(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> list[Post]: ...

    def apply_deltas(
        self, post_id: UUID4, deltas: dict[InteractionType, int]
    ) -> Post: ...

    def apply_batch(
        self, deltas: dict[UUID4, dict[InteractionType, int]]
    ) -> dict[UUID4, Post]: ...


class InMemoryPostStore:
    """Process-local post store.

    Posts are kept as encoded PostRecords so nothing handed to a caller
    aliases stored state. A single lock serializes writers.
    """

    def __init__(self) -> None:
        self._records: dict[UUID4, PostRecord] = {}
        self._lock = Lock()
        self._latest_created_at: datetime | None = None

    def add(self, post: Post) -> Post:
        """Store a new post.

        Raises:
            ValidationError: If a post with the same ID already exists
        """
        with self._lock:
            if post.id in self._records:
                raise ValidationError(f"Post {post.id} already exists")
            if (
                self._latest_created_at is not None
                and post.created_at < self._latest_created_at
            ):
                logger.warning(
                    "post_backdated",
                    post_id=str(post.id),
                    created_at=post.created_at.isoformat(),
                    latest_created_at=self._latest_created_at.isoformat(),
                )
            else:
                self._latest_created_at = post.created_at
            self._records[post.id] = to_record(post)
        return from_record(self._records[post.id])

    def get(self, post_id: UUID4) -> Post:
        with self._lock:
            record = self._records.get(post_id)
        if record is None:
            raise NotFoundError("Post not found")
        return from_record(record)

    def list_by_user(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> list[Post]:
        with self._lock:
            posts = [
                from_record(record)
                for record in self._records.values()
                if record.user_id == user_id
            ]
        posts.sort(key=lambda post: post.created_at, reverse=True)
        return posts[offset : offset + limit]

    def apply_deltas(
        self, post_id: UUID4, deltas: dict[InteractionType, int]
    ) -> Post:
        """Apply counter deltas to a post, all or nothing.

        Raises:
            NotFoundError: If the post does not exist
            InvariantViolation: If any counter would drop below zero
        """
        with self._lock:
            record = self._records.get(post_id)
            if record is None:
                raise NotFoundError("Post not found")
            updated = counters.apply_deltas(from_record(record), deltas)
            self._records[post_id] = to_record(updated)
        return updated

    def apply_batch(
        self, deltas: dict[UUID4, dict[InteractionType, int]]
    ) -> dict[UUID4, Post]:
        """Apply counter deltas to several posts, all or nothing.

        Every post is checked before any is written. A post with an empty
        delta map is only checked for existence.

        Raises:
            NotFoundError: If any post does not exist
            InvariantViolation: If any counter would drop below zero
        """
        with self._lock:
            updated: dict[UUID4, Post] = {}
            for post_id, post_deltas in deltas.items():
                record = self._records.get(post_id)
                if record is None:
                    raise NotFoundError(f"Post {post_id} not found")
                updated[post_id] = counters.apply_deltas(
                    from_record(record), post_deltas
                )
            for post_id, post in updated.items():
                self._records[post_id] = to_record(post)
        return updated
