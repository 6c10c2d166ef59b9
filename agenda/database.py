from threading import Lock

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from agenda.core import config
from agenda.core.errors import StoreUnavailableError


connect_args = {'check_same_thread': False} if config.DATABASE_URL.startswith('sqlite') else {}

engine = create_engine(config.DATABASE_URL, echo=config.SQL_ECHO, connect_args=connect_args)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_schema() -> None:
    """Create any missing tables and their declared indexes, once per process."""
    global _schema_checked

    if _schema_checked:
        return

    with _schema_lock:
        if _schema_checked:
            return

        Base.metadata.create_all(bind=engine)
        _schema_checked = True


def ensure_database_ready() -> None:
    try:
        ensure_schema()
    except SQLAlchemyError as exc:
        raise StoreUnavailableError(
            'Database unavailable. Verify DATABASE_URL and database credentials.'
        ) from exc
