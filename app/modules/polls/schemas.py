from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

MAX_POLL_OPTIONS = 10


class PollCreate(BaseModel):
    question: str = Field(max_length=300)
    options: List[str]

    @field_validator("question")
    @classmethod
    def strip_question(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please enter a question")
        return v

    @field_validator("options")
    @classmethod
    def clean_options(cls, v: List[str]) -> List[str]:
        options = [o.strip() for o in v if o and o.strip()]
        if len(options) < 2:
            raise ValueError("Please provide at least two options")
        if len(options) > MAX_POLL_OPTIONS:
            raise ValueError(f"A poll can have at most {MAX_POLL_OPTIONS} options")
        return options


class PollVote(BaseModel):
    option_index: int


class PollOptionResult(BaseModel):
    index: int
    option: str
    votes: int
    percentage: int


class PollResponse(BaseModel):
    id: str
    room_id: str
    created_by: str
    question: str
    options: List[str]
    is_closed: bool = False
    created_at: datetime
    results: List[PollOptionResult] = Field(default_factory=list)
    total_votes: int = 0
    has_voted: bool = False
    my_vote: Optional[int] = None

    class Config:
        from_attributes = True
