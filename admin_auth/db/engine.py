# (c) Copyright Datacraft, 2026
from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine, Engine
from sqlalchemy.pool import NullPool
from sqlalchemy.orm import sessionmaker, Session as SQLAlchemySession


def make_engine(db_url: str) -> Engine:
    if db_url.startswith("sqlite"):
        return create_engine(db_url, connect_args={"check_same_thread": False})
    return create_engine(db_url, poolclass=NullPool)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(engine, expire_on_commit=False)


def get_db(request: Request) -> Generator[SQLAlchemySession, None, None]:
    """FastAPI dependency for database sessions."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
