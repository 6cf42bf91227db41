# backend/database.py
import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from config import settings

logger = logging.getLogger(__name__)

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# Hosted Postgres hands out postgres://, SQLAlchemy only accepts postgresql://
if SQLALCHEMY_DATABASE_URL.startswith("postgres://"):
    SQLALCHEMY_DATABASE_URL = SQLALCHEMY_DATABASE_URL.replace("postgres://", "postgresql://", 1)

if "sqlite" in SQLALCHEMY_DATABASE_URL:
    connect_args = {"check_same_thread": False}
else:
    connect_args = {}

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args=connect_args
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session):
    """Commit everything done inside the block, or nothing.

    Any exception rolls the session back and is re-raised unchanged, so
    HTTP errors raised by services still reach the client.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def check_connection() -> bool:
    # Best effort: the API still starts when the database is down
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as exc:
        logger.warning("Database connection check failed: %s", exc)
        return False


def load_models():
    # Register every model on Base.metadata and let string relationships resolve
    import models.users  # noqa: F401
    import models.catalog  # noqa: F401
    import models.product  # noqa: F401
    import models.stock  # noqa: F401
    import models.sale  # noqa: F401
    import models.purchase  # noqa: F401
    import models.expense  # noqa: F401
    import models.invoice  # noqa: F401
    import models.log  # noqa: F401


def init_db():
    load_models()
    Base.metadata.create_all(bind=engine)
