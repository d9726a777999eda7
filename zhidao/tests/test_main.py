import json
from unittest.mock import AsyncMock, patch

import pytest
from aioresponses import aioresponses

from zhidao.config import Settings
from zhidao.main import build_coordinator, build_store, run_session
from zhidao.services.persistence.user_store import FileUserStore, MongoUserStore


def test_build_store_defaults_to_file(tmp_path):
    settings = Settings(_env_file=None, user_store_path=str(tmp_path / "s.json"))

    store = build_store(settings)

    assert isinstance(store, FileUserStore)
    assert store.path == tmp_path / "s.json"
    assert store.key == "currentUser"


@patch("zhidao.services.persistence.user_store.AsyncIOMotorClient")
def test_build_store_mongo(mock_motor_client):
    settings = Settings(
        _env_file=None,
        user_store="mongo",
        mongodb_uri="mongodb://localhost:27017",
        mongodb_database="learning",
    )

    store = build_store(settings)

    assert isinstance(store, MongoUserStore)
    mock_motor_client.assert_called_once_with("mongodb://localhost:27017")
    mock_motor_client.return_value.__getitem__.assert_called_once_with("learning")


def test_build_store_mongo_requires_uri():
    with pytest.raises(ValueError):
        build_store(Settings(_env_file=None, user_store="mongo", mongodb_uri=None))


def test_build_coordinator_wires_settings(tmp_path):
    settings = Settings(
        _env_file=None,
        api_base_url="http://api.example.com/api/",
        user_store_path=str(tmp_path / "s.json"),
    )

    coordinator = build_coordinator(settings)

    assert coordinator.client.base_url == "http://api.example.com/api"
    assert coordinator.settings is settings


@pytest.mark.asyncio
async def test_offline_session_is_populated_with_fallbacks(tmp_path):
    """With the server unreachable the session still has content and a path."""
    path = tmp_path / "state.json"
    settings = Settings(
        _env_file=None,
        api_base_url="http://testserver/api",
        user_store_path=str(path),
    )

    with aioresponses():
        session = await run_session("量子计算", settings)

    assert session.current_topic == "量子计算"
    assert len(session.content_collection.content) == 3
    assert session.learning_path.foundational[0] == "基础概念: 量子计算"
    assert session.deep_questions == []
    assert session.error is not None

    saved = json.loads(path.read_text(encoding="utf-8"))["currentUser"]
    assert saved["name"].startswith("用户 ")


@pytest.mark.asyncio
@patch.object(FileUserStore, "close", new_callable=AsyncMock)
async def test_session_closes_store_when_done(mock_close, tmp_path):
    settings = Settings(
        _env_file=None,
        api_base_url="http://testserver/api",
        user_store_path=str(tmp_path / "state.json"),
    )

    with aioresponses():
        await run_session("量子计算", settings)

    mock_close.assert_awaited_once()
