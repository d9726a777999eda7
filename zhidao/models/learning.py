from typing import List

from pydantic import Field

from zhidao.models.common import CamelModel


class LearningPath(CamelModel):
    """Four-stage path for a topic, replaced wholesale on every fetch."""

    foundational: List[str] = Field(description="Concepts to learn first")
    intermediate: List[str]
    advanced: List[str]
    projects: List[str] = Field(description="Hands-on projects applying the path")
