from typing import List, Optional

from pydantic import BaseModel, Field

from zhidao.models.content import (
    ContentCollection,
    CrossDisciplinaryRecommendation,
    DeepQuestion,
)
from zhidao.models.learning import LearningPath


class SessionState(BaseModel):
    """Topic-scoped view of fetched data. Never persisted."""

    current_topic: str = ""
    content_collection: Optional[ContentCollection] = None
    learning_path: Optional[LearningPath] = None
    deep_questions: List[DeepQuestion] = Field(default_factory=list)
    recommendations: List[CrossDisciplinaryRecommendation] = Field(
        default_factory=list
    )
    exploration_percentage: int = 0
    is_loading: bool = False
    error: Optional[str] = None

    def reset_for_topic(self, topic: str) -> None:
        self.current_topic = topic
        self.content_collection = None
        self.learning_path = None
        self.deep_questions = []
        self.recommendations = []
