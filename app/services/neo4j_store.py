from typing import Any

import structlog
from neo4j import ManagedTransaction
from neo4j.exceptions import ConstraintError
from pydantic import UUID4

from app.db import DatabaseManager
from app.exceptions import NotFoundError, ValidationError
from app.models.interaction import InteractionType
from app.models.post import Post
from app.schemas.database_records import PostRecord, from_record, to_record
from app.services import counters

logger = structlog.get_logger(__name__)


def _to_post(node: Any) -> Post:
    """Decode a Post node, ignoring properties outside the record shape."""
    properties = dict(node)
    return from_record({name: properties.get(name) for name in PostRecord.model_fields})


class Neo4jPostStore:
    """Post store backed by Neo4j.

    Posts are stored as (:Post) nodes linked to their owner by
    (:User)-[:POSTED]->(:Post). Node properties follow PostRecord exactly.
    """

    def __init__(self, db_manager: DatabaseManager | None = None) -> None:
        self._db_manager = db_manager

    @property
    def db_manager(self) -> DatabaseManager:
        if self._db_manager is None:
            self._db_manager = DatabaseManager()
        return self._db_manager

    def ensure_schema(self) -> None:
        """Create the uniqueness constraint on post IDs if it is missing."""
        db_manager = self.db_manager
        with db_manager.driver.session(database=db_manager.database) as session:
            session.run(
                "CREATE CONSTRAINT post_id_unique IF NOT EXISTS "
                "FOR (post:Post) REQUIRE post.id IS UNIQUE"
            )

    def close(self) -> None:
        """Close the database connection if this store ever opened one."""
        if self._db_manager is not None:
            self._db_manager.close()

    def add(self, post: Post) -> Post:
        """Create a post node for an existing user.

        Raises:
            ValidationError: If a post with the same ID already exists
            NotFoundError: If the owning user does not exist
        """
        db_manager = self.db_manager
        try:
            with db_manager.driver.session(database=db_manager.database) as session:
                return session.execute_write(self._create_post_record, post)
        except ConstraintError as e:
            raise ValidationError(f"Post {post.id} already exists") from e

    def _create_post_record(self, tx: ManagedTransaction, post: Post) -> Post:
        exists_query = """
        MATCH (post:Post {id: $post_id})
        RETURN count(post) AS existing
        """
        existing = tx.run(exists_query, post_id=str(post.id)).single()
        if existing and existing["existing"]:
            raise ValidationError(f"Post {post.id} already exists")

        properties = to_record(post).model_dump()
        query = """
        MATCH (user:User {user_id: $user_id})
        CREATE (post:Post $properties)
        CREATE (user)-[:POSTED {created_at: $created_at}]->(post)
        RETURN post
        """
        result = tx.run(
            query,
            user_id=post.user_id,
            properties=properties,
            created_at=properties["created_at"],
        )
        if record := result.single():
            return _to_post(record["post"])
        raise NotFoundError("User not found")

    def get(self, post_id: UUID4) -> Post:
        db_manager = self.db_manager
        with db_manager.driver.session(database=db_manager.database) as session:
            return session.execute_read(self._get_post, post_id)

    def _get_post(self, tx: ManagedTransaction, post_id: UUID4) -> Post:
        query = """
        MATCH (post:Post {id: $post_id})
        RETURN post
        """
        result = tx.run(query, post_id=str(post_id))
        if record := result.single():
            return _to_post(record["post"])
        raise NotFoundError("Post not found")

    def list_by_user(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> list[Post]:
        db_manager = self.db_manager
        with db_manager.driver.session(database=db_manager.database) as session:
            return session.execute_read(self._get_user_posts, user_id, limit, offset)

    def _get_user_posts(
        self, tx: ManagedTransaction, user_id: str, limit: int, offset: int
    ) -> list[Post]:
        query = """
        MATCH (post:Post {user_id: $user_id})
        RETURN post
        ORDER BY datetime(post.created_at) DESC
        SKIP $offset
        LIMIT $limit
        """
        result = tx.run(query, user_id=user_id, offset=offset, limit=limit)
        return [_to_post(record["post"]) for record in result]

    def apply_deltas(
        self, post_id: UUID4, deltas: dict[InteractionType, int]
    ) -> Post:
        """Apply counter deltas to a post inside one write transaction.

        Raises:
            NotFoundError: If the post does not exist
            InvariantViolation: If any counter would drop below zero; the
                transaction is rolled back
        """
        db_manager = self.db_manager
        with db_manager.driver.session(database=db_manager.database) as session:
            return session.execute_write(self._apply_deltas, post_id, deltas)

    def _apply_deltas(
        self,
        tx: ManagedTransaction,
        post_id: UUID4,
        deltas: dict[InteractionType, int],
    ) -> Post:
        updated = self._lock_and_apply(tx, post_id, deltas)
        self._write_counters(tx, updated)
        return updated

    def apply_batch(
        self, deltas: dict[UUID4, dict[InteractionType, int]]
    ) -> dict[UUID4, Post]:
        """Apply counter deltas to several posts inside one write transaction.

        Every post is locked and checked before any counter is written.

        Raises:
            NotFoundError: If any post does not exist
            InvariantViolation: If any counter would drop below zero; the
                transaction is rolled back
        """
        db_manager = self.db_manager
        with db_manager.driver.session(database=db_manager.database) as session:
            return session.execute_write(self._apply_batch, deltas)

    def _apply_batch(
        self,
        tx: ManagedTransaction,
        deltas: dict[UUID4, dict[InteractionType, int]],
    ) -> dict[UUID4, Post]:
        updated = {
            post_id: self._lock_and_apply(tx, post_id, post_deltas)
            for post_id, post_deltas in deltas.items()
        }
        for post in updated.values():
            self._write_counters(tx, post)
        return updated

    def _lock_and_apply(
        self,
        tx: ManagedTransaction,
        post_id: UUID4,
        deltas: dict[InteractionType, int],
    ) -> Post:
        # The no-op SET takes the node's write lock before the counters are read.
        lock_query = """
        MATCH (post:Post {id: $post_id})
        SET post.likes = post.likes
        RETURN post
        """
        record = tx.run(lock_query, post_id=str(post_id)).single()
        if not record:
            raise NotFoundError(f"Post {post_id} not found")
        return counters.apply_deltas(_to_post(record["post"]), deltas)

    def _write_counters(self, tx: ManagedTransaction, post: Post) -> None:
        update_query = """
        MATCH (post:Post {id: $post_id})
        SET post.likes = $likes,
            post.comments = $comments,
            post.shares = $shares
        """
        tx.run(
            update_query,
            post_id=str(post.id),
            likes=post.likes,
            comments=post.comments,
            shares=post.shares,
        )
        logger.debug("post_counters_written", post_id=str(post.id))
