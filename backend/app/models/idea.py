import enum
import uuid
from sqlalchemy import Column, String, Text, Integer, Boolean, DateTime, ForeignKey, func, JSON, Float
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.models.base import Base

class ValidationStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

class Idea(Base):
    __tablename__ = 'ideas'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    tags = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # --- Validation state ---
    validated = Column(Boolean, nullable=False, default=False)
    validation_status = Column(String, nullable=False, default=ValidationStatus.PENDING.value, index=True)
    validation_error = Column(String, nullable=True) # kind of the last failed pass

    # --- Current analysis (all null unless validated) ---
    market_demand = Column(Float, nullable=True)
    competitor_analysis = Column(Text, nullable=True)
    tech_stack_suggestion = Column(JSON, nullable=True)
    feature_suggestions = Column(JSON, nullable=True)
    mrr_projection_min = Column(Float, nullable=True)
    mrr_projection_max = Column(Float, nullable=True)
    effort_estimation_months = Column(Integer, nullable=True)
    effort_estimation_team_size = Column(Integer, nullable=True)
    ai_provider = Column(String, nullable=True)
    validated_at = Column(DateTime(timezone=True), nullable=True)

    owner = relationship("User", back_populates="ideas")

    @property
    def analysis(self) -> dict | None:
        """The flattened analysis columns regrouped, or None when unvalidated."""
        if not self.validated:
            return None
        return {
            "market_demand": self.market_demand,
            "competitor_analysis": self.competitor_analysis,
            "tech_stack_suggestion": list(self.tech_stack_suggestion or []),
            "feature_suggestions": list(self.feature_suggestions or []),
            "mrr_projection": {"min": self.mrr_projection_min, "max": self.mrr_projection_max},
            "effort_estimation": {
                "months": self.effort_estimation_months,
                "team_size": self.effort_estimation_team_size,
            },
            "provider": self.ai_provider,
            "validated_at": self.validated_at,
        }
