from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from focustrack.config import get_settings


def make_engine(database_url: str):
    kwargs = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        # in-memory databases live in a single connection
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, echo=False, **kwargs)


engine = make_engine(get_settings().database_url)


def init_db(bind=None) -> None:
    from focustrack import models  # noqa: F401 - registers the tables

    SQLModel.metadata.create_all(bind or engine)


def get_session():
    with Session(engine, expire_on_commit=False) as session:
        yield session
