"""Demo chat schemas."""

from pydantic import BaseModel, Field


class DemoTurnIn(BaseModel):
    content: str = Field(..., max_length=2000)
    is_from_user: bool


class DemoChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000)
    history: list[DemoTurnIn] = Field(default_factory=list, max_length=20)


class DemoChatResponse(BaseModel):
    content: str
    fallback: bool = False
