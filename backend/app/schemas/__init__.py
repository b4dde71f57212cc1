from .user import User, UserCreate
from .analysis import (
    Analysis, AnalysisPayload, AnalysisResult,
    MrrProjection, EffortEstimation,
)
from .idea import (
    Idea, IdeaCreate, IdeaUpdate, IdeaValidateRequest,
    DashboardSummary,
)
