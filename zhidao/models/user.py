import uuid
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import Field

from zhidao.models.common import CamelModel, utc_now


class GoalPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class ActivityType(str, Enum):
    viewed = "viewed"
    completed = "completed"
    saved = "saved"
    shared = "shared"


class LearningGoal(CamelModel):
    """A user-declared learning objective."""

    id: str
    goal: str = Field(description="Goal text, also used as the topic key")
    timeframe: str = Field(description="Free-form timeframe label, e.g. '3月'")
    priority: GoalPriority
    created_at: datetime = Field(default_factory=utc_now)
    progress: int = Field(default=0, ge=0, le=100)
    related_topics: List[str] = Field(default_factory=list)

    def advance(self, increment: int) -> int:
        """Raise progress by increment, clamped to [0, 100]."""
        self.progress = max(0, min(self.progress + increment, 100))
        return self.progress


class LearningActivity(CamelModel):
    """A single append-only record of interaction with content."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    content_id: str
    action: ActivityType
    duration: Optional[float] = Field(
        description="Seconds spent on the content", default=None
    )
    timestamp: datetime = Field(default_factory=utc_now)


class User(CamelModel):
    id: str
    name: str
    email: Optional[str] = None
    learning_goals: List[LearningGoal] = Field(default_factory=list)
    learning_history: List[LearningActivity] = Field(default_factory=list)
    explored_topics: Dict[str, int] = Field(
        default_factory=dict,
        description="Topic name to exploration percentage (0-100)",
    )

    def goal_for_topic(self, topic: str) -> Optional[LearningGoal]:
        """First goal whose text equals the topic."""
        return next((g for g in self.learning_goals if g.goal == topic), None)

    def most_recent_goal(self) -> Optional[LearningGoal]:
        if not self.learning_goals:
            return None
        return max(self.learning_goals, key=lambda g: g.created_at)
