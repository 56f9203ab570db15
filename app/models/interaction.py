from enum import Enum

from pydantic import UUID4, BaseModel, ConfigDict, Field


class InteractionType(str, Enum):
    """Types of interactions that change a post's engagement counters.

    Attributes:
        LIKE: Like (or unlike, with a negative delta) on a post
        COMMENT: Comment on a post
        SHARE: Share a post
    """

    LIKE = "LIKE"
    COMMENT = "COMMENT"
    SHARE = "SHARE"

    @property
    def counter(self) -> str:
        """Name of the Post field this interaction updates."""
        return _COUNTER_FIELDS[self]


_COUNTER_FIELDS = {
    InteractionType.LIKE: "likes",
    InteractionType.COMMENT: "comments",
    InteractionType.SHARE: "shares",
}


class InteractionEvent(BaseModel):
    """A single interaction expressed as a counter delta.

    Attributes:
        post_id: ID of the post interacted with
        kind: Which counter the interaction updates
        delta: Signed change to apply to the counter
    """

    model_config = ConfigDict(frozen=True)

    post_id: UUID4
    kind: InteractionType
    delta: int = Field(default=1, description="Signed change to the counter")


class InteractionResult(BaseModel):
    """Updated counter value returned to the interaction collaborator."""

    model_config = ConfigDict(frozen=True)

    post_id: UUID4
    kind: InteractionType
    value: int = Field(ge=0)
