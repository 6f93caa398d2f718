"""
Application context: the clients shared by all requests of one app instance.
Built once by the app factory and stored on app.state.context.
"""
from dataclasses import dataclass
import logging

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from scrc_api.config import Settings
from scrc_api.database import create_engine, create_session_factory
from scrc_api.services.blob_store import BlobStore, build_blob_store
from scrc_api.services.mailer import Mailer, build_mailer
from scrc_api.services.notifier import Notifier, build_notifier

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker
    blob_store: BlobStore
    mailer: Mailer
    notifier: Notifier


def build_context(settings: Settings) -> AppContext:
    engine = create_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    return AppContext(
        settings=settings,
        engine=engine,
        session_factory=create_session_factory(engine),
        blob_store=build_blob_store(settings),
        mailer=build_mailer(settings),
        notifier=build_notifier(settings),
    )
