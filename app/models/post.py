from datetime import UTC, datetime
from typing import Annotated

from pydantic import (
    UUID4,
    AfterValidator,
    AnyUrl,
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    TypeAdapter,
)

_uri_adapter = TypeAdapter(AnyUrl)


def _check_uri(value: str) -> str:
    # Keep the caller's spelling so records round-trip verbatim.
    _uri_adapter.validate_python(value)
    return value


def _check_not_future(value: datetime) -> datetime:
    if value > datetime.now(UTC):
        raise ValueError("created_at must not be in the future")
    return value


UserId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
MediaUrl = Annotated[
    str, StringConstraints(strip_whitespace=True), AfterValidator(_check_uri)
]
Counter = Annotated[int, Field(ge=0)]


class PostBase(BaseModel):
    """Base model for post data.

    This model contains the fields supplied by the ingestion collaborator,
    shared between Post, PostCreate and PostDraft.

    Attributes:
        user_id: ID of the user who owns the post
        description: Free-form caption, may be empty
        poster_url: URI of the thumbnail image for the video
        video_url: URI of the playable video
    """

    model_config = ConfigDict(frozen=True)

    user_id: UserId = Field(description="ID of the user who owns the post")
    description: str = Field(default="", description="Free-form caption")
    poster_url: MediaUrl = Field(description="URI of the thumbnail image")
    video_url: MediaUrl = Field(description="URI of the playable video")


class PostCreate(PostBase):
    """Model for creating a new post through the ingestion boundary.

    The server assigns both the post ID and the creation time. Any other
    field sent by the client, such as a timestamp or counter, is ignored.
    """

    pass


class PostDraft(PostBase):
    """Post data with an optional caller-chosen creation time.

    Used by record-level creation, where the timestamp may come from a
    trusted source such as a migration.

    Attributes:
        created_at: When the post was created, defaults to now
    """

    created_at: (
        Annotated[AwareDatetime, AfterValidator(_check_not_future)] | None
    ) = Field(None, description="When the post was created")


class Post(PostBase):
    """Model representing a video post and its engagement state.

    Instances are immutable values. Counter changes produce new instances,
    see app.services.counters.

    Attributes:
        id: Unique identifier for the post
        created_at: When the post was created
        likes: Number of likes
        comments: Number of comments
        shares: Number of shares
    """

    id: UUID4 = Field(description="Unique identifier for the post")
    created_at: AwareDatetime = Field(description="When the post was created")
    # Engagement Metrics
    likes: Counter = Field(default=0, description="Number of likes")
    comments: Counter = Field(default=0, description="Number of comments")
    shares: Counter = Field(default=0, description="Number of shares")
