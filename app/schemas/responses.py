from pydantic import BaseModel, ConfigDict, Field

from app.models.interaction import InteractionType


class HealthCheckResponseSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool


class InteractionRequestSchema(BaseModel):
    """Body of an interaction request.

    Attributes:
        kind: Which counter the interaction updates
        delta: Signed change, defaults to a single increment
    """

    model_config = ConfigDict(frozen=True)

    kind: InteractionType = Field(description="Which counter to update")
    delta: int = Field(default=1, description="Signed change to the counter")
