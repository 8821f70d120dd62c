# app/core/db.py

from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.core.config import settings
from app.utils.logger import get_logger

# --- Configure logging ---
logger = get_logger(__name__)

# --- Create database engine ---
connect_args = {"check_same_thread": False} if settings.db_url.startswith("sqlite") else {}
engine = create_engine(settings.db_url, echo=settings.db_echo, connect_args=connect_args)

# --- Create sessionmaker ---
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# --- Create declarative base ---
Base = declarative_base()


def get_db():
    """
    Method for obtaining database session object
    """
    db = SessionLocal()
    try:
        yield db
        logger.info("Committing DB transaction")
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error("Error in DB transaction", error_message=str(e))
        raise e
    finally:
        db.close()


@contextmanager
def transaction(db: Session):
    """
    Run a read-check-write sequence as one unit of work.

    Commits on success and rolls back everything done inside the block on
    failure. Callers finish every check before the first mutation so a
    rejected request never leaves partial writes behind.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
