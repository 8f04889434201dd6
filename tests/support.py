"""Shared fixtures: an in-memory SQLite database with the full schema and seeding helpers."""

import unittest

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from cacophony.core.database import enable_sqlite_foreign_keys
from cacophony.models import Base
from cacophony.schemas.server import ServerCreate, ServerDetail
from cacophony.schemas.user import UserCreate, UserRead
from cacophony.services.servers import create_server
from cacophony.services.users import create_user

PASSWORD = "hunter22"


def make_engine():
    """One shared in-memory connection, usable from TestClient worker threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    return engine


class DatabaseTestCase(unittest.TestCase):
    """Fresh schema per test; self.db is a session on it."""

    def setUp(self) -> None:
        self.engine = make_engine()
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self.db: Session = self.SessionLocal()

    def tearDown(self) -> None:
        self.db.close()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def make_user(self, username: str, site_admin: bool = False) -> UserRead:
        return create_user(
            self.db,
            UserCreate(username=username, password=PASSWORD, is_site_admin=site_admin),
        )

    def make_server(self, name: str, founder: UserRead) -> ServerDetail:
        return create_server(self.db, ServerCreate(name=name), founder_user_id=founder.id)

    def count(self, model, *filters) -> int:
        return self.db.query(model).filter(*filters).count()

    @staticmethod
    def role_titled(server: ServerDetail, title: str):
        return next(r for r in server.roles if r.title == title)
