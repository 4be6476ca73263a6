"""
Pytest configuration for the project management API tests.

Environment is set before any pm_api import so the module-level Settings and
engine pick up an in-memory database and a test signing secret.
"""

import os

TEST_SECRET = "ab" * 64
os.environ["JWT_SECRET"] = TEST_SECRET
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import date, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from pm_api.core.database import build_engine, get_db, init_db  # noqa: E402
from pm_api.core.security import SigningKey, hash_password  # noqa: E402
from pm_api.entities import Project, Task, TaskStatus, TeamMember, User  # noqa: E402
from pm_api.main import app  # noqa: E402
from pm_api.repositories.user_repository import RoleRepository  # noqa: E402
from pm_api.services.permission_service import ADMIN, DEVELOPER, PROJECT_MANAGER, seed_defaults  # noqa: E402
from pm_api.services.token_service import TokenService, get_token_service  # noqa: E402

PASSWORD = "secret123"


# -----------------------------------------------------------------------------
# Database
# -----------------------------------------------------------------------------
@pytest.fixture
def session_factory():
    """Fresh in-memory database per test, seeded with roles and modules."""
    engine = build_engine("sqlite://")
    init_db(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    with factory() as db:
        seed_defaults(db)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def tokens():
    return TokenService(
        key=SigningKey.from_hex(TEST_SECRET),
        access_ttl=timedelta(hours=1),
        refresh_ttl=timedelta(days=7),
    )


# -----------------------------------------------------------------------------
# Domain fixtures
# -----------------------------------------------------------------------------
@pytest.fixture(scope="session")
def password_hash():
    # one bcrypt hash shared by every fixture user
    return hash_password(PASSWORD)


@pytest.fixture
def make_user(db, password_hash):
    def _make(name: str, email: str, role_name: str) -> User:
        user = User(
            name=name,
            email=email,
            password_hash=password_hash,
            role=RoleRepository(db).get_by_name(role_name),
        )
        db.add(user)
        db.commit()
        return user
    return _make


@pytest.fixture
def pm(make_user):
    return make_user("Paula Manager", "pm@example.com", PROJECT_MANAGER)


@pytest.fixture
def dev(pm, make_user):
    return make_user("Dan Developer", "dev@example.com", DEVELOPER)


@pytest.fixture
def outsider(dev, make_user):
    return make_user("Olga Outsider", "outsider@example.com", DEVELOPER)


@pytest.fixture
def admin(dev, make_user):
    return make_user("Ada Admin", "admin@example.com", ADMIN)


@pytest.fixture
def project(db, pm):
    p = Project(name="P1", description="First project", created_by_id=pm.id)
    db.add(p)
    db.commit()
    return p


@pytest.fixture
def membership(db, project, dev):
    m = TeamMember(user_id=dev.id, project_id=project.id)
    db.add(m)
    db.commit()
    return m


@pytest.fixture
def make_task(db, project, pm):
    def _make(title: str, assignee: User = None, status: TaskStatus = None, due_date: date = None) -> Task:
        if status is None:
            status = TaskStatus.TODO if assignee else TaskStatus.UNASSIGNED
        task = Task(
            title=title,
            project_id=project.id,
            assignee_id=assignee.id if assignee else None,
            status=status,
            due_date=due_date,
            created_by_id=pm.id,
        )
        db.add(task)
        db.commit()
        db.refresh(task)
        return task
    return _make


# -----------------------------------------------------------------------------
# HTTP
# -----------------------------------------------------------------------------
@pytest.fixture
def client(session_factory, tokens):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_token_service] = lambda: tokens
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_header(tokens):
    def _header(user: User) -> dict:
        return {"Authorization": f"Bearer {tokens.issue_access_token(user)}"}
    return _header
