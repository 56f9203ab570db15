from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from app.exceptions import ValidationError
from app.models.post import Post


class PostRecord(BaseModel):
    """Canonical serialized shape of a post.

    Every field is a plain JSON scalar: identifiers and the timestamp are
    strings, engagement counters are integers.

    Attributes:
        id: Post ID as a string
        user_id: Owning user ID
        description: Caption
        poster_url: Thumbnail URI
        video_url: Video URI
        likes: Number of likes
        comments: Number of comments
        shares: Number of shares
        created_at: ISO 8601 creation time
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    user_id: str
    description: str
    poster_url: str
    video_url: str
    likes: int = Field(ge=0)
    comments: int = Field(ge=0)
    shares: int = Field(ge=0)
    created_at: str


def to_record(post: Post) -> PostRecord:
    return PostRecord(**post.model_dump(mode="json"))


def from_record(record: PostRecord | dict[str, Any]) -> Post:
    """Decode a stored record into a Post.

    Raises:
        ValidationError: If the record is incomplete or malformed
    """
    try:
        if not isinstance(record, PostRecord):
            record = PostRecord.model_validate(record)
        return Post.model_validate(record.model_dump())
    except pydantic.ValidationError as e:
        raise ValidationError(str(e)) from e


def dumps(post: Post) -> str:
    return to_record(post).model_dump_json()


def loads(data: str | bytes) -> Post:
    try:
        record = PostRecord.model_validate_json(data)
    except pydantic.ValidationError as e:
        raise ValidationError(str(e)) from e
    return from_record(record)
