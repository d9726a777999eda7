import json
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from zhidao.models.user import (
    ActivityType,
    GoalPriority,
    LearningActivity,
    LearningGoal,
    User,
)
from zhidao.services.persistence.user_store import FileUserStore, MongoUserStore


def build_user() -> User:
    user = User(id="user-1", name="用户 ABCD", email="learner@example.com")
    user.learning_goals.append(
        LearningGoal(
            id="goal-1",
            goal="人工智能基础",
            timeframe="3月",
            priority=GoalPriority.medium,
            created_at=datetime(2024, 1, 20, 9, 15, 30, 123456, tzinfo=timezone.utc),
            progress=15,
            related_topics=["机器学习", "神经网络"],
        )
    )
    user.learning_history.append(
        LearningActivity(
            id="activity-1",
            content_id="c1",
            action=ActivityType.completed,
            duration=120.5,
            timestamp=datetime(2024, 1, 21, 18, 0, tzinfo=timezone.utc),
        )
    )
    user.explored_topics = {"人工智能基础": 40, "量子计算": 5}
    return user


class FakeCollection:
    """In-memory stand-in for a motor collection."""

    def __init__(self):
        self.docs = {}
        self.replace_calls = []

    async def find_one(self, query):
        return self.docs.get(query["_id"])

    async def replace_one(self, query, doc, upsert=False):
        self.replace_calls.append((query, doc, upsert))
        self.docs[query["_id"]] = doc


@pytest.mark.asyncio
async def test_load_without_saved_state_returns_none(tmp_path):
    store = FileUserStore(str(tmp_path / "state.json"))

    assert await store.load() is None


@pytest.mark.asyncio
async def test_file_round_trip_is_lossless(tmp_path):
    store = FileUserStore(str(tmp_path / "state.json"))
    user = build_user()

    await store.save(user)
    loaded = await store.load()

    assert loaded == user
    assert loaded.learning_goals[0].created_at.microsecond == 123456
    assert loaded.explored_topics == {"人工智能基础": 40, "量子计算": 5}


@pytest.mark.asyncio
async def test_file_round_trip_of_empty_user(tmp_path):
    store = FileUserStore(str(tmp_path / "state.json"))
    user = User(id="user-2", name="Empty")

    await store.save(user)

    assert await store.load() == user


@pytest.mark.asyncio
async def test_saved_record_uses_camel_case_and_iso_dates(tmp_path):
    path = tmp_path / "state.json"
    store = FileUserStore(str(path))

    await store.save(build_user())
    record = json.loads(path.read_text(encoding="utf-8"))["currentUser"]

    assert set(record) == {
        "id",
        "name",
        "email",
        "learningGoals",
        "learningHistory",
        "exploredTopics",
    }
    goal = record["learningGoals"][0]
    assert goal["createdAt"].startswith("2024-01-20T09:15:30.123456")
    assert goal["relatedTopics"] == ["机器学习", "神经网络"]
    assert record["learningHistory"][0]["contentId"] == "c1"


@pytest.mark.asyncio
async def test_save_overwrites_and_keeps_other_keys(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")
    store = FileUserStore(str(path))

    user = build_user()
    await store.save(user)
    user.learning_goals[0].progress = 50
    await store.save(user)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["theme"] == "dark"
    assert data["currentUser"]["learningGoals"][0]["progress"] == 50
    assert sorted(p.name for p in tmp_path.iterdir()) == ["state.json"], (
        "No temporary files should be left behind"
    )


@pytest.mark.asyncio
async def test_corrupted_file_is_treated_as_no_state(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")
    store = FileUserStore(str(path))

    assert await store.load() is None

    await store.save(build_user())
    assert (await store.load()).id == "user-1"


@pytest.mark.asyncio
async def test_schema_mismatch_is_treated_as_no_state(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(
        json.dumps({"currentUser": {"id": "user-1", "learningGoals": "oops"}}),
        encoding="utf-8",
    )

    assert await FileUserStore(str(path)).load() is None


@pytest.mark.asyncio
async def test_keys_are_independent(tmp_path):
    path = str(tmp_path / "state.json")
    await FileUserStore(path, key="first").save(build_user())

    assert await FileUserStore(path, key="second").load() is None


@pytest.mark.asyncio
async def test_mongo_round_trip_uses_single_upserted_document():
    collection = FakeCollection()
    store = MongoUserStore(SimpleNamespace(user_state=collection))
    user = build_user()

    await store.save(user)
    loaded = await store.load()

    assert loaded == user
    query, doc, upsert = collection.replace_calls[0]
    assert query == {"_id": "currentUser"}
    assert upsert is True
    assert doc["user"]["exploredTopics"] == {"人工智能基础": 40, "量子计算": 5}


@pytest.mark.asyncio
async def test_mongo_missing_or_invalid_document_returns_none():
    collection = FakeCollection()
    store = MongoUserStore(SimpleNamespace(user_state=collection))

    assert await store.load() is None

    collection.docs["currentUser"] = {"_id": "currentUser", "user": {"id": 3}}
    assert await store.load() is None


@pytest.mark.asyncio
@patch("zhidao.services.persistence.user_store.AsyncIOMotorClient")
async def test_mongo_store_from_uri_closes_its_client(mock_motor_client):
    store = MongoUserStore.from_uri("mongodb://localhost:27017", database="learning")

    await store.close()
    await store.close()

    mock_motor_client.return_value.close.assert_called_once_with()


@pytest.mark.asyncio
async def test_mongo_store_leaves_injected_db_open():
    db = SimpleNamespace(user_state=FakeCollection())
    store = MongoUserStore(db)

    await store.close()

    assert store.client is None
