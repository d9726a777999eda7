"""Deterministic placeholder data for when the remote service is unavailable.

Everything here is a pure function of the topic string so the offline
experience is stable and the output can be asserted exactly.
"""

from datetime import datetime
from typing import List, Tuple

from zhidao.models.content import (
    Content,
    ContentCollection,
    ContentType,
    CrossDisciplinaryRecommendation,
    DeepQuestion,
)
from zhidao.models.learning import LearningPath

DEFAULT_TOPIC = "一般主题"
FALLBACK_EXPLORATION_PERCENTAGE = 40


def default_content(topic: str) -> List[Content]:
    """Three introductory items in descending relevance."""
    return [
        Content(
            id="default-1",
            title=f"基础概念 - {topic}",
            summary=f"这是关于{topic}的基础概念和入门知识",
            authors=["专家 张"],
            year=2024,
            type=ContentType.academic,
            tags=["基础", "入门"],
            relevance_score=0.95,
        ),
        Content(
            id="default-2",
            title=f"应用案例 - {topic}",
            summary=f"实际应用中的{topic}案例分析",
            authors=["教授 李"],
            year=2023,
            type=ContentType.synthetic,
            tags=["应用", "案例"],
            relevance_score=0.88,
        ),
        Content(
            id="default-3",
            title=f"最新进展 - {topic}",
            summary=f"{topic}领域的最新研究成果和趋势",
            authors=["研究员 王"],
            year=2024,
            type=ContentType.news,
            tags=["研究", "趋势"],
            relevance_score=0.78,
        ),
    ]


def fallback_content_collection(topic: str, timestamp: datetime) -> ContentCollection:
    return ContentCollection(
        topic=topic, content=default_content(topic), timestamp=timestamp
    )


def fallback_deep_questions(topic: str) -> List[DeepQuestion]:
    return [
        DeepQuestion(
            id="fallback-question-1",
            question=f"什么是{topic}的核心原理？",
            category="原理",
            difficulty=3,
        ),
        DeepQuestion(
            id="fallback-question-2",
            question=f"{topic}如何应用于实际场景？",
            category="应用",
            difficulty=4,
        ),
    ]


def fallback_recommendations(
    topic: str,
) -> Tuple[List[CrossDisciplinaryRecommendation], int]:
    """Two neighbouring disciplines plus the exploration percentage."""
    recommendations = [
        CrossDisciplinaryRecommendation(
            id="fallback-recommendation-1",
            area="物理学",
            connection=f"{topic}与物理学有许多相似的概念",
            value_proposition=f"学习物理学可以帮助你更好地理解{topic}的基本原理",
            exploration_difficulty=3,
        ),
        CrossDisciplinaryRecommendation(
            id="fallback-recommendation-2",
            area="心理学",
            connection=f"心理学视角可以帮助理解{topic}的应用场景",
            value_proposition=f"心理学提供了理解人类行为的框架，可以应用到{topic}的学习中",
            exploration_difficulty=2,
        ),
    ]
    return recommendations, FALLBACK_EXPLORATION_PERCENTAGE


def fallback_learning_path(topic: str) -> LearningPath:
    topic = topic.strip() or DEFAULT_TOPIC
    return LearningPath(
        foundational=[f"基础概念: {topic}", "历史背景", "核心原理"],
        intermediate=["应用场景", "关键技术", "常见问题"],
        advanced=["前沿研究", "理论深化", "高级应用"],
        projects=["初级项目", "实践案例", "创新应用"],
    )
