import logging
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, make_url
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from printshop.core.config import (
    DATABASE_URL, DB_HOST, DB_USER, DB_PASSWORD, DB_NAME, DB_PORT,
    DB_POOL_SIZE, DB_POOL_TIMEOUT,
)

logger = logging.getLogger(__name__)

Base = declarative_base()


def database_url():
    if DATABASE_URL:
        return make_url(DATABASE_URL)
    return URL.create(
        "mysql+pymysql",
        username=DB_USER,
        password=DB_PASSWORD or None,
        host=DB_HOST,
        port=DB_PORT,
        database=DB_NAME,
        query={"charset": "utf8mb4"},
    )


def build_engine(url):
    options = {"pool_pre_ping": True}
    # sqlite uses its own single-connection pools
    if url.get_backend_name() != "sqlite":
        options.update(pool_size=DB_POOL_SIZE, max_overflow=0, pool_timeout=DB_POOL_TIMEOUT)
    return create_engine(url, **options)


url = database_url()
logger.info("Using database %s", url.render_as_string(hide_password=True))

engine = build_engine(url)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


@contextmanager
def transaction(db: Session):
    """Commit everything written inside the block, or roll all of it back."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
