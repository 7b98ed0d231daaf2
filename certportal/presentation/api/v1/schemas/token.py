from pydantic import BaseModel, ConfigDict, Field


class TokenPayload(BaseModel):
    """Claims the portal reads from an identity provider token"""

    model_config = ConfigDict(extra="ignore")

    sub: str = Field(..., min_length=1, description="User ID")
    email: str | None = None
    exp: int | None = None
