# booking_engine/db.py

import logging

from sqlmodel import SQLModel, create_engine, Session

from .config import DATABASE_URL

logger = logging.getLogger(__name__)


def build_engine(url: str = DATABASE_URL):
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False  # required for SQLite + FastAPI
    return create_engine(
        url,
        echo=False,          # set to True to see SQL
        connect_args=connect_args,
    )


# Engine = connection to the database
engine = build_engine()


def init_db(bind=None) -> None:
    # Import models so their tables are registered on SQLModel.metadata
    from . import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
    logger.info("Database tables created")


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session
