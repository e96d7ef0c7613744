import logging

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from app.core.config import settings

logger = logging.getLogger(__name__)

engine = create_engine(
    str(settings.DATABASE_URL),
    connect_args={"check_same_thread": False},
)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    if not type(dbapi_connection).__module__.startswith("sqlite3"):
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def init_db(session: Session) -> None:
    # Tables should be created with Alembic migrations in a real deployment;
    # the SQLite database is bootstrapped directly from the models.
    from app import models  # noqa: F401

    SQLModel.metadata.create_all(session.get_bind())
    logger.info("Database schema ready at %s", settings.DATABASE_URL)
