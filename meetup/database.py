from fastapi import Depends
from sqlmodel import SQLModel, Session, create_engine
from sqlalchemy.engine import Engine

from .config import DATABASE_URL

# SQLAlchemy database engine
engine = create_engine(DATABASE_URL, pool_pre_ping=True)


def get_engine() -> Engine:
    return engine


def create_db_and_tables(bind: Engine = None):
    # Table classes register themselves on import
    from .models import device, notification, relationship  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


def get_session(bind: Engine = Depends(get_engine)):
    with Session(bind) as session:
        yield session
