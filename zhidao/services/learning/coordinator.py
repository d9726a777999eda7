import asyncio
import logging
import random
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Generic, Optional, Set, TypeVar

from zhidao.config import Settings, get_settings
from zhidao.models.common import utc_now
from zhidao.models.session import SessionState
from zhidao.models.user import (
    ActivityType,
    GoalPriority,
    LearningActivity,
    LearningGoal,
    User,
)
from zhidao.services.fallback.synthesizer import (
    fallback_content_collection,
    fallback_deep_questions,
    fallback_learning_path,
    fallback_recommendations,
)
from zhidao.services.learning.topics import SAMPLE_PROJECTS, get_related_topics
from zhidao.services.persistence.user_store import UserStore
from zhidao.services.remote.client import RemoteServiceClient
from zhidao.services.remote.errors import APIError

logger = logging.getLogger(__name__)

T = TypeVar("T")

EMPTY_TOPIC_ERROR = "当前主题为空，无法获取内容"

PROGRESS_INCREMENTS = {
    ActivityType.completed: 10,
    ActivityType.viewed: 3,
}


@dataclass
class Outcome(Generic[T]):
    """Tagged result of one remote call: either a value or the error."""

    value: Optional[T] = None
    error: Optional[APIError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class LearningCoordinator:
    """Owns the active User and the topic-scoped session state.

    All mutations happen on the event loop that awaits these methods. Remote
    calls are awaited in a fixed order (content, then questions); failures
    are recorded in ``session.error`` and, depending on the operation,
    replaced with synthesized data so the session stays populated.
    """

    def __init__(
        self,
        client: RemoteServiceClient,
        store: UserStore,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.client = client
        self.store = store
        self.settings = settings or get_settings()
        self._clock = clock or utc_now
        self._rng = rng or random.Random()

        self.user: Optional[User] = None
        self.session = SessionState()
        self._background: Set[asyncio.Task] = set()
        self._pending_loads = 0

    # Helpers

    def _begin_loading(self) -> None:
        self._pending_loads += 1
        self.session.is_loading = True

    def _end_loading(self) -> None:
        """Called once per finished load, including dropped responses."""
        self._pending_loads = max(0, self._pending_loads - 1)
        self.session.is_loading = self._pending_loads > 0

    async def _settle(self, call: Awaitable[T]) -> Outcome[T]:
        try:
            return Outcome(value=await call)
        except APIError as e:
            return Outcome(error=e)

    def _record_error(self, operation: str, error: APIError) -> None:
        logger.error(f"{operation} failed: {str(error)}")
        self.session.error = str(error)

    def _is_stale(self, issued_topic: str, operation: str) -> bool:
        """True when a response arrives for a topic the session has left."""
        if not self.settings.discard_stale_responses:
            return False
        if issued_topic == self.session.current_topic:
            return False
        logger.warning(
            f"Discarding {operation} response for '{issued_topic}'; "
            f"current topic is '{self.session.current_topic}'"
        )
        return True

    async def _persist(self) -> None:
        if self.user is not None:
            await self.store.save(self.user)

    # User lifecycle

    async def initialize(self) -> Optional[User]:
        """Load the saved user and resume their most recent goal as the topic."""
        user = await self.store.load()
        if user is None:
            logger.info("No saved user found")
            return None

        self.user = user
        recent = user.most_recent_goal()
        if recent is not None:
            self.session.current_topic = recent.goal
        logger.info(
            f"Restored user {user.id} with {len(user.learning_goals)} goals, "
            f"topic '{self.session.current_topic}'"
        )
        return user

    async def create_temporary_user(self) -> User:
        user_id = str(uuid.uuid4()).upper()
        self.user = User(id=user_id, name=f"用户 {user_id[:4]}")
        await self._persist()
        logger.info(f"Created temporary user {user_id}")
        return self.user

    async def set_user(self, user: User) -> None:
        self.user = user
        await self._persist()

    async def create_sample_projects(self) -> None:
        """Seed the user with two example goals and some recent activity."""
        if self.user is None:
            return

        now = self._clock()
        for project in SAMPLE_PROJECTS:
            goal = LearningGoal(
                id=str(uuid.uuid4()),
                goal=project.goal,
                timeframe=project.timeframe,
                priority=project.priority,
                created_at=now - timedelta(seconds=self._rng.uniform(86400, 604800)),
                progress=project.progress,
                related_topics=get_related_topics(project.goal),
            )

            for _ in range(3):
                self.user.learning_history.append(
                    LearningActivity(
                        content_id=f"sample-{str(uuid.uuid4())[:8]}",
                        action=self._rng.choice(
                            [ActivityType.viewed, ActivityType.completed]
                        ),
                        timestamp=now
                        - timedelta(seconds=self._rng.uniform(3600, 259200)),
                    )
                )

            self.user.learning_goals.append(goal)

        await self._persist()

    def get_current_goal(self) -> Optional[LearningGoal]:
        if self.user is None:
            return None
        return self.user.goal_for_topic(self.session.current_topic)

    def clear_error(self) -> None:
        self.session.error = None

    # Goals

    async def create_goal(
        self, goal: str, timeframe: str, priority: GoalPriority
    ) -> Optional[LearningGoal]:
        """Create a goal remotely, then make it the current topic.

        Without an active user this is a silent no-op. On failure the user
        is left untouched and a fallback learning path for the goal is shown.
        """
        if self.user is None:
            return None

        self._begin_loading()
        self.session.error = None

        outcome = await self._settle(
            self.client.create_goal(self.user.id, goal, timeframe, priority)
        )
        self._end_loading()

        if not outcome.ok:
            self._record_error("create_goal", outcome.error)
            self.session.learning_path = fallback_learning_path(goal)
            return None

        new_goal = LearningGoal(
            id=outcome.value.goal_id,
            goal=goal,
            timeframe=timeframe,
            priority=priority,
            created_at=self._clock(),
            progress=0,
            related_topics=get_related_topics(goal),
        )
        self.user.learning_goals.append(new_goal)
        await self._persist()

        self.session.reset_for_topic(goal)
        self.session.learning_path = outcome.value.learning_path
        logger.info(f"Added goal '{goal}' ({new_goal.id})")

        await self.fetch_content_for_topic()
        return new_goal

    # Topic session

    async def switch_topic(self, topic: str) -> None:
        self.session.reset_for_topic(topic)
        logger.info(f"Switched topic to '{topic}'")
        await self.fetch_content_for_topic()

    async def fetch_content_for_topic(self) -> None:
        topic = self.session.current_topic
        if not topic.strip():
            self.session.error = EMPTY_TOPIC_ERROR
            return

        self._begin_loading()
        self.session.error = None

        outcome = await self._settle(self.client.fetch_content(topic))
        self._end_loading()
        if self._is_stale(topic, "content"):
            return

        if outcome.ok:
            self.session.content_collection = outcome.value
        else:
            self._record_error("fetch_content", outcome.error)
            if self.session.content_collection is None:
                logger.warning(f"Using default content for '{topic}'")
                self.session.content_collection = fallback_content_collection(
                    topic, self._clock()
                )

        await self.fetch_deep_questions()

    async def fetch_deep_questions(self) -> None:
        topic = self.session.current_topic
        if not topic.strip():
            return

        outcome = await self._settle(self.client.fetch_deep_questions(topic))
        if self._is_stale(topic, "questions"):
            return

        if outcome.ok:
            self.session.deep_questions = outcome.value
            return

        self._record_error("fetch_deep_questions", outcome.error)
        if self.settings.question_fallback and not self.session.deep_questions:
            logger.warning(f"Using fallback questions for '{topic}'")
            self.session.deep_questions = fallback_deep_questions(topic)

    async def fetch_cross_disciplinary_recommendations(self) -> None:
        topic = self.session.current_topic
        if self.user is None or not topic.strip():
            return

        outcome = await self._settle(
            self.client.fetch_cross_disciplinary_recommendations(self.user.id, topic)
        )
        if self._is_stale(topic, "recommendations"):
            return

        if outcome.ok:
            recommendations, percentage = outcome.value
            self.session.recommendations = recommendations
            self.session.exploration_percentage = percentage
            self.user.explored_topics[topic] = percentage
            if self.settings.persist_explored_topics:
                await self._persist()
            return

        self._record_error("fetch_recommendations", outcome.error)
        if self.settings.recommendation_fallback and not self.session.recommendations:
            logger.warning(f"Using fallback recommendations for '{topic}'")
            recommendations, percentage = fallback_recommendations(topic)
            self.session.recommendations = recommendations
            self.session.exploration_percentage = percentage

    async def fetch_learning_path(self) -> None:
        topic = self.session.current_topic
        if self.user is None or not topic.strip():
            return

        self._begin_loading()
        outcome = await self._settle(
            self.client.fetch_learning_path(self.user.id, topic)
        )
        self._end_loading()
        if self._is_stale(topic, "learning path"):
            return

        if outcome.ok:
            self.session.learning_path = outcome.value
            return

        self._record_error("fetch_learning_path", outcome.error)
        if self.session.learning_path is None:
            logger.warning(f"Using fallback learning path for '{topic}'")
            self.session.learning_path = fallback_learning_path(topic)

    # Progress and activity

    async def update_progress_for_current_goal(self, increment: int = 5) -> None:
        goal = self.get_current_goal()
        if goal is None:
            return
        goal.advance(increment)
        await self._persist()

    async def record_activity(
        self, content_id: str, action: ActivityType
    ) -> Optional[LearningActivity]:
        """Apply an activity locally, persist it, then upload it best-effort.

        The local update is never rolled back; upload failures are only
        logged.
        """
        goal = self.get_current_goal()
        if self.user is None or goal is None:
            return None

        activity = LearningActivity(
            content_id=content_id, action=action, timestamp=self._clock()
        )
        self.user.learning_history.append(activity)

        increment = PROGRESS_INCREMENTS.get(ActivityType(action))
        if increment:
            goal.advance(increment)

        await self._persist()

        task = asyncio.create_task(self._upload_activity(self.user.id, activity))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return activity

    async def _upload_activity(self, user_id: str, activity: LearningActivity) -> None:
        try:
            await self.client.record_activity(user_id, activity)
            logger.info(
                f"Recorded activity: {activity.action.value} "
                f"for content: {activity.content_id}"
            )
        except APIError as e:
            logger.warning(f"Activity upload failed, kept locally: {str(e)}")
        except Exception as e:
            logger.error(
                f"Unexpected error uploading activity {activity.id}: "
                f"{e.__class__.__name__}: {str(e)}"
            )

    async def wait_for_background(self) -> None:
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def record_content_interaction(
        self,
        content_id: str,
        action: ActivityType,
        duration: Optional[float] = None,
    ) -> Optional[LearningActivity]:
        """Record progress remotely; only a confirmed call is kept locally."""
        if self.user is None:
            return None

        outcome = await self._settle(
            self.client.record_progress(self.user.id, content_id, action, duration)
        )
        if not outcome.ok:
            self._record_error("record_progress", outcome.error)
            return None

        activity = LearningActivity(
            content_id=content_id,
            action=action,
            duration=duration,
            timestamp=self._clock(),
        )
        self.user.learning_history.append(activity)
        await self._persist()
        return activity

    def record_learning_path_interaction(self, item: str) -> None:
        logger.info(f"User interacted with learning path item: {item}")
