import argparse
import asyncio
import logging
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from zhidao.config import Settings, get_settings
from zhidao.models.session import SessionState
from zhidao.services.learning.coordinator import LearningCoordinator
from zhidao.services.persistence.user_store import (
    FileUserStore,
    MongoUserStore,
    UserStore,
)
from zhidao.services.remote.client import RemoteServiceClient

logger = logging.getLogger(__name__)

console = Console()


def build_store(settings: Settings) -> UserStore:
    if settings.user_store == "mongo":
        if not settings.mongodb_uri:
            raise ValueError("ZHIDAO_MONGODB_URI is required for the mongo user store")
        return MongoUserStore.from_uri(
            settings.mongodb_uri,
            database=settings.mongodb_database,
            key=settings.user_store_key,
        )
    return FileUserStore(settings.user_store_path, key=settings.user_store_key)


def build_coordinator(settings: Optional[Settings] = None) -> LearningCoordinator:
    settings = settings or get_settings()
    client = RemoteServiceClient(settings.api_base_url, settings.request_timeout)
    return LearningCoordinator(client, build_store(settings), settings=settings)


def render_session(session: SessionState) -> None:
    if session.error:
        console.print(f"\n❌ Error: {session.error}", style="red")

    if session.content_collection:
        table = Table(title=f"Content for {session.content_collection.topic}")
        table.add_column("Relevance", style="cyan", justify="right")
        table.add_column("Title", style="green")
        table.add_column("Type", style="blue")
        for item in session.content_collection.content:
            table.add_row(f"{item.relevance_score:.2f}", item.title, item.type.value)
        console.print(Panel(table, title="Content"))

    if session.deep_questions:
        table = Table(title="Deep Questions")
        table.add_column("Difficulty", style="cyan", justify="right")
        table.add_column("Question", style="green")
        for question in session.deep_questions:
            table.add_row(str(question.difficulty), question.question)
        console.print(Panel(table, title="Questions"))

    if session.learning_path:
        table = Table(title="Learning Path")
        table.add_column("Stage", style="cyan")
        table.add_column("Items", style="green")
        for stage, items in session.learning_path.model_dump().items():
            table.add_row(stage, ", ".join(items))
        console.print(Panel(table, title="Path"))


async def run_session(topic: str, settings: Optional[Settings] = None) -> SessionState:
    """Restore or create the user, open a topic session and print it."""
    coordinator = build_coordinator(settings)

    try:
        if await coordinator.initialize() is None:
            await coordinator.create_temporary_user()

        await coordinator.switch_topic(topic)
        await coordinator.fetch_learning_path()
        await coordinator.fetch_cross_disciplinary_recommendations()
        await coordinator.wait_for_background()
    finally:
        await coordinator.store.close()

    render_session(coordinator.session)
    return coordinator.session


def main() -> None:
    parser = argparse.ArgumentParser(description="Open a ZhiDao learning session")
    parser.add_argument("topic", help="Topic to explore")
    args = parser.parse_args()

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    asyncio.run(run_session(args.topic, settings))


if __name__ == "__main__":
    main()
