import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

import aiohttp
from pydantic import BaseModel, ValidationError
from yarl import URL

from zhidao.models.content import (
    ContentCollection,
    CreatedGoal,
    CrossDisciplinaryRecommendation,
    CrossDisciplinaryResponse,
    DeepQuestion,
    DeepQuestionsResponse,
)
from zhidao.models.learning import LearningPath
from zhidao.models.user import ActivityType, GoalPriority, LearningActivity
from zhidao.services.remote.errors import (
    APIError,
    DecodingError,
    EncodingFailedError,
    InvalidRequestError,
    InvalidResponseError,
    NoDataError,
    ServerError,
    TransportError,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class RemoteServiceClient:
    """Client for the learning assistant HTTP API.

    Every call is one-shot: a single failed attempt is raised to the caller as
    an ``APIError`` subclass, with no retry. The client holds no learning
    state of its own.
    """

    def __init__(self, base_url: str, request_timeout: float = 300.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=request_timeout)

    def _endpoint(self, path: str) -> URL:
        try:
            url = URL(f"{self.base_url}{path}")
        except (TypeError, ValueError) as e:
            logger.error(f"Invalid URL {self.base_url}{path}: {str(e)}")
            raise InvalidRequestError(str(e)) from e

        if not url.is_absolute() or url.scheme not in ("http", "https"):
            logger.error(f"Invalid URL {self.base_url}{path}: not an http(s) URL")
            raise InvalidRequestError(f"{self.base_url}{path}")
        return url

    @staticmethod
    def _encode(body: Dict[str, Any]) -> str:
        try:
            return json.dumps(body, ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as e:
            logger.error(f"Error encoding request body: {str(e)}")
            raise EncodingFailedError(str(e)) from e

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> bytes:
        """Perform one HTTP exchange and return the raw body of a 2xx response."""
        url = self._endpoint(path)
        data = self._encode(body) if body is not None else None
        headers = {"Content-Type": "application/json"} if data is not None else None

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(
                    method, str(url), params=params, data=data, headers=headers
                ) as response:
                    if not 200 <= response.status < 300:
                        logger.error(
                            f"{method} {path} failed with status {response.status}"
                        )
                        raise ServerError(response.status)

                    raw = await response.read()
                    logger.debug(f"Raw response for {method} {path}: {raw[:500]!r}")
                    return raw

        except APIError:
            raise
        except aiohttp.InvalidURL as e:
            logger.error(f"Invalid URL for {method} {path}: {str(e)}")
            raise InvalidRequestError(str(e)) from e
        except (aiohttp.ClientResponseError, aiohttp.ClientPayloadError) as e:
            logger.error(f"Malformed response for {method} {path}: {str(e)}")
            raise InvalidResponseError(str(e)) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(
                f"Network error for {method} {path}: {e.__class__.__name__}: {str(e)}"
            )
            raise TransportError(str(e) or e.__class__.__name__) from e

    @staticmethod
    def _decode(raw: bytes, model: Type[ModelT]) -> ModelT:
        if not raw or not raw.strip():
            logger.error(f"Empty response body, expected {model.__name__}")
            raise NoDataError()
        try:
            return model.model_validate_json(raw)
        except ValidationError as e:
            logger.error(f"Error decoding {model.__name__}: {str(e)}")
            raise DecodingError(model.__name__) from e

    # Learning goals

    async def create_goal(
        self, user_id: str, goal: str, timeframe: str, priority: GoalPriority
    ) -> CreatedGoal:
        raw = await self._request(
            "POST",
            "/goals",
            body={
                "userId": user_id,
                "goal": goal,
                "timeframe": timeframe,
                "priority": GoalPriority(priority).value,
            },
        )
        created = self._decode(raw, CreatedGoal)
        logger.info(f"Created goal {created.goal_id} for user {user_id}")
        return created

    # Content

    async def fetch_content(self, topic: str) -> ContentCollection:
        raw = await self._request("GET", "/content", params={"topic": topic})
        collection = self._decode(raw, ContentCollection)
        logger.info(f"Fetched {len(collection.content)} content items for {topic}")
        return collection

    async def fetch_deep_questions(self, topic: str) -> List[DeepQuestion]:
        raw = await self._request("GET", "/questions", params={"topic": topic})
        return self._decode(raw, DeepQuestionsResponse).questions

    async def fetch_cross_disciplinary_recommendations(
        self, user_id: str, topic: str
    ) -> Tuple[List[CrossDisciplinaryRecommendation], int]:
        raw = await self._request(
            "GET",
            "/recommendations/cross-disciplinary",
            params={"userId": user_id, "currentTopic": topic},
        )
        response = self._decode(raw, CrossDisciplinaryResponse)
        return response.recommendations, response.exploration_percentage

    async def fetch_learning_path(self, user_id: str, topic: str) -> LearningPath:
        raw = await self._request(
            "GET", "/learning-path", params={"userId": user_id, "topic": topic}
        )
        return self._decode(raw, LearningPath)

    # Progress and activity

    async def record_progress(
        self,
        user_id: str,
        content_id: str,
        action: ActivityType,
        duration: Optional[float] = None,
    ) -> None:
        body: Dict[str, Any] = {
            "userId": user_id,
            "contentId": content_id,
            "action": ActivityType(action).value,
        }
        if duration is not None:
            body["duration"] = duration

        await self._request("POST", "/progress", body=body)

    async def record_activity(self, user_id: str, activity: LearningActivity) -> None:
        await self._request(
            "POST",
            "/activities",
            body={
                "userId": user_id,
                "contentId": activity.content_id,
                "action": activity.action.value,
                "timestamp": activity.timestamp.isoformat(),
            },
        )
