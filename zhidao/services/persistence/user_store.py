import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient
from pydantic import ValidationError

from zhidao.models.user import User

logger = logging.getLogger(__name__)

DEFAULT_KEY = "currentUser"


class UserStore:
    """Durable slot holding the single active User aggregate."""

    async def load(self) -> Optional[User]:
        raise NotImplementedError

    async def save(self, user: User) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        pass


class FileUserStore(UserStore):
    """Key-value JSON file; each save replaces the whole file atomically."""

    def __init__(self, path: str, key: str = DEFAULT_KEY):
        self.path = Path(path).expanduser()
        self.key = key

    def _read_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object in {self.path}")
        return data

    async def load(self) -> Optional[User]:
        try:
            record = self._read_all().get(self.key)
            if record is None:
                return None
            user = User.model_validate(record)
            logger.info(f"Loaded saved user {user.id} from {self.path}")
            return user
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable saved user in {self.path}: {str(e)}")
            return None

    async def save(self, user: User) -> None:
        try:
            data = self._read_all()
        except (OSError, ValueError) as e:
            logger.warning(f"Overwriting unreadable store {self.path}: {str(e)}")
            data = {}
        data[self.key] = user.to_json_dict()

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Error saving user {user.id} to {self.path}: {str(e)}")
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


class MongoUserStore(UserStore):
    """Single MongoDB document keyed by a fixed identifier."""

    def __init__(self, db, key: str = DEFAULT_KEY, client=None):
        self.db = db
        self.collection = self.db.user_state
        self.key = key
        self.client = client

    @classmethod
    def from_uri(
        cls, mongodb_uri: str, database: str = "zhidao", key: str = DEFAULT_KEY
    ) -> "MongoUserStore":
        client = AsyncIOMotorClient(mongodb_uri)
        return cls(client[database], key=key, client=client)

    async def close(self) -> None:
        """Close the motor client when this store created it."""
        if self.client is not None:
            self.client.close()
            self.client = None

    async def load(self) -> Optional[User]:
        doc = await self.collection.find_one({"_id": self.key})
        if not doc or "user" not in doc:
            return None
        try:
            return User.model_validate(doc["user"])
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable saved user {self.key}: {str(e)}")
            return None

    async def save(self, user: User) -> None:
        try:
            await self.collection.replace_one(
                {"_id": self.key},
                {"_id": self.key, "user": user.to_json_dict()},
                upsert=True,
            )
        except Exception as e:
            logger.error(f"Error saving user {user.id}: {str(e)}")
            raise
