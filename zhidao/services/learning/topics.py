from typing import Dict, List, NamedTuple

from zhidao.models.user import GoalPriority

RELATED_TOPICS: Dict[str, List[str]] = {
    "人工智能基础": ["机器学习", "神经网络", "深度学习", "数据科学"],
    "中国古代哲学": ["儒家思想", "道家思想", "墨家", "法家"],
    "量子计算入门": ["量子力学", "量子比特", "量子算法", "量子纠缠"],
    "宏观经济学": ["GDP", "通货膨胀", "经济周期", "财政政策"],
}


class SampleProject(NamedTuple):
    goal: str
    timeframe: str
    priority: GoalPriority
    progress: int


SAMPLE_PROJECTS = [
    SampleProject("人工智能基础", "3月", GoalPriority.medium, 15),
    SampleProject("中国古代哲学", "6月", GoalPriority.low, 30),
]


def get_related_topics(goal: str) -> List[str]:
    """Related topics for a known goal; empty for anything else."""
    return list(RELATED_TOPICS.get(goal, []))
