"""
Database access context.

The engine and session factory live on a Database object that is built at
process start, handed to the app and the scheduler, and disposed at shutdown.
"""
from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from needs_tracker.constants import DATABASE_URL

Base = declarative_base()


class Database:
    """Owns one engine and the session factory bound to it"""

    def __init__(self, url: str = DATABASE_URL, **engine_kwargs):
        connect_args = engine_kwargs.pop("connect_args", {})
        if url.startswith("sqlite"):
            connect_args.setdefault("check_same_thread", False)

        self.url = url
        self.engine = create_engine(url, connect_args=connect_args, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_all(self) -> None:
        """Create tables for every registered model"""
        from needs_tracker import models  # noqa: F401  register models with Base

        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request):
    """FastAPI dependency yielding a session from the app's Database"""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
