"""Engine and sessions: SQLite locally and in tests, Postgres (psycopg 3) in production."""
import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from .config import settings

log = logging.getLogger("bazar.db")

_DEFAULT_URL = "sqlite:///./bazar.db"


def database_url(raw_url: str | None) -> str:
    """Hosted Postgres hands out postgres:// URLs; point them at the psycopg 3 driver."""
    url = (raw_url or "").strip() or _DEFAULT_URL
    scheme, _, rest = url.partition("://")
    if scheme in ("postgres", "postgresql"):
        return f"postgresql+psycopg://{rest}"
    return url


def engine_options(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}
    options: dict = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in url:
        # One shared connection, or each session would open its own empty database
        options["poolclass"] = StaticPool
    return options


DATABASE_URL = database_url(settings.database_url)
engine = create_engine(DATABASE_URL, **engine_options(DATABASE_URL))


def get_db():
    with Session(engine) as session:
        yield session


def init_db():
    SQLModel.metadata.create_all(engine)


def check_db() -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        log.warning("database check failed: %s", e)
        return False
    return True
