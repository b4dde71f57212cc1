from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# --- Provider-facing payload ---
# These models validate the JSON object a provider sends back. Field aliases
# match the camelCase names the prompt asks for, and strict mode refuses
# coercions such as "8" -> 8 or 3.0 -> 3.

_PAYLOAD_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    strict=True,
    allow_inf_nan=False,
)

class MrrProjectionPayload(BaseModel):
    model_config = _PAYLOAD_CONFIG

    min: float = Field(ge=0)
    max: float = Field(ge=0)

    @model_validator(mode="after")
    def check_range(self):
        if self.min > self.max:
            raise ValueError("mrrProjection.min must not exceed mrrProjection.max")
        return self

class EffortEstimationPayload(BaseModel):
    model_config = _PAYLOAD_CONFIG

    months: int = Field(gt=0)
    team_size: int = Field(gt=0)

class AnalysisPayload(BaseModel):
    model_config = _PAYLOAD_CONFIG

    market_demand: float = Field(ge=1, le=10)
    competitor_analysis: str = Field(min_length=1)
    tech_stack_suggestion: List[str]
    feature_suggestions: List[str]
    mrr_projection: MrrProjectionPayload
    effort_estimation: EffortEstimationPayload

class AnalysisResult(BaseModel):
    """A validated payload together with where and when it was produced."""
    payload: AnalysisPayload
    provider: str
    validated_at: datetime

# --- Client-facing analysis ---

class MrrProjection(BaseModel):
    min: float
    max: float

class EffortEstimation(BaseModel):
    months: int
    team_size: int

class Analysis(BaseModel):
    market_demand: float
    competitor_analysis: str
    tech_stack_suggestion: List[str]
    feature_suggestions: List[str]
    mrr_projection: MrrProjection
    effort_estimation: EffortEstimation
    provider: str
    validated_at: datetime
