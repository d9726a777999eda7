import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from zhidao.models.common import CamelModel, utc_now
from zhidao.models.learning import LearningPath


class ContentType(str, Enum):
    academic = "academic"
    synthetic = "synthetic"
    user_generated = "userGenerated"
    news = "news"


class Content(CamelModel):
    """Curated content item for a topic."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    summary: str
    authors: List[str] = Field(default_factory=list)
    year: Optional[int] = None
    type: ContentType
    tags: List[str] = Field(default_factory=list)
    relevance_score: float = Field(ge=0.0, le=1.0)


class ContentCollection(CamelModel):
    topic: str
    content: List[Content]
    timestamp: datetime = Field(default_factory=utc_now)


class DeepQuestion(CamelModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    question: str
    category: str
    difficulty: int = Field(description="1 (easy) to 5 (hard)", ge=1, le=5)


class CrossDisciplinaryRecommendation(CamelModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    area: str
    connection: str
    value_proposition: str
    exploration_difficulty: int = Field(ge=1, le=5)


class DeepQuestionsResponse(CamelModel):
    topic: str
    questions: List[DeepQuestion]
    timestamp: str


class CrossDisciplinaryResponse(CamelModel):
    current_topic: str
    recommendations: List[CrossDisciplinaryRecommendation]
    exploration_percentage: int = Field(ge=0, le=100)


class CreatedGoal(CamelModel):
    """Server acknowledgement of a new goal, with its generated path."""

    goal_id: str
    learning_path: LearningPath
