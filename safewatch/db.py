import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .core.config import settings
from .core.errors import StorageError

logger = logging.getLogger(__name__)


def _build_engine(url: str):
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    in_memory = url in ("sqlite://", "sqlite:///:memory:")
    if in_memory:
        # Every session has to see the same in-memory database
        kwargs["poolclass"] = StaticPool
    sqlite_engine = create_engine(url, **kwargs)

    @event.listens_for(sqlite_engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        if not in_memory:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return sqlite_engine


engine = _build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """Dependency to get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session):
    """Commit everything done inside the block, or nothing at all."""
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Rolled back unit of work: %s", exc)
        raise StorageError("Database operation failed") from exc
    except Exception:
        db.rollback()
        raise


def create_tables():
    """Create all database tables"""
    # Register every model on Base.metadata before creating
    from .models import (  # noqa: F401
        area,
        audit,
        calendar,
        challenge,
        equipment,
        observation,
        permit,
        points,
        quiz,
        toolbox_talk,
        training,
        user,
    )

    Base.metadata.create_all(bind=engine)


def drop_tables():
    Base.metadata.drop_all(bind=engine)


def seed_defaults(db: Session):
    """Seed lookup tables, challenges, quiz, training matrix and calendar defaults.

    Each seeder only fills its own tables when they are empty.
    """
    from .core.areas import seed_areas
    from .core.calendar import seed_calendar
    from .core.challenges import seed_challenges
    from .core.quiz import seed_quiz_questions
    from .core.training import seed_training_matrix

    seed_areas(db)
    seed_challenges(db)
    seed_quiz_questions(db)
    seed_training_matrix(db)
    seed_calendar(db)
