import structlog
from pydantic import UUID4

from app.models.post import Post, PostCreate
from app.services import counters
from app.services.store import PostStore

logger = structlog.get_logger(__name__)


class PostService:
    """Service for creating and reading video posts.

    This service is the boundary used by the ingestion collaborator (which
    creates posts) and the feed collaborator (which reads them). Storage is
    delegated to a PostStore.
    """

    def __init__(self, store: PostStore) -> None:
        """Initialize the post service.

        Args:
            store: Where posts are persisted
        """
        self.store = store

    async def create_post(self, post: PostCreate) -> Post:
        """Create a new video post.

        The server assigns the post ID and the creation time. Counters
        start at zero.

        Args:
            post: The post metadata

        Returns:
            The created post

        Raises:
            NotFoundError: If the store cannot find the owning user
        """
        created = self.store.add(counters.from_create(post))
        logger.info(
            "post_created",
            post_id=str(created.id),
            user_id=created.user_id,
            created_at=created.created_at.isoformat(),
        )
        return created

    async def get_post(self, post_id: UUID4) -> Post:
        """Get a post by ID.

        Args:
            post_id: ID of the post to get

        Returns:
            The requested post

        Raises:
            NotFoundError: If post not found
        """
        return self.store.get(post_id)

    async def get_user_posts(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> list[Post]:
        """Get a user's posts, newest first.

        Args:
            user_id: ID of the user whose posts to get
            limit: Maximum number of posts to return
            offset: Number of posts to skip

        Returns:
            List of the user's posts
        """
        return self.store.list_by_user(user_id, limit=limit, offset=offset)
