import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.analysis import Analysis

ProviderName = Literal["gemini", "openai", "openrouter"]
StatusFilter = Literal["all", "validated", "pending"]
SortKey = Literal["newest", "oldest", "a-z", "z-a", "highest-market"]

# Base properties
class IdeaBase(BaseModel):
    title: str
    description: str
    tags: List[str] = Field(default_factory=list)

# Properties to receive on creation
class IdeaCreate(IdeaBase):
    provider: Optional[ProviderName] = None

# Properties to receive on update. Only these fields are user-editable.
class IdeaUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None

class IdeaValidateRequest(BaseModel):
    provider: Optional[ProviderName] = None

# Properties stored in DB
class IdeaInDB(IdeaBase):
    id: uuid.UUID
    owner_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    validated: bool
    validation_status: str
    validation_error: Optional[str] = None
    analysis: Optional[Analysis] = None

    model_config = ConfigDict(from_attributes=True)

# Properties to return to client
class Idea(IdeaInDB):
    pass

class DashboardSummary(BaseModel):
    total_ideas: int
    validated_count: int
    pending_count: int
    average_market_demand: Optional[float] = None
    recent_ideas: List[Idea]
