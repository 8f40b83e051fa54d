"""
Test fixtures - file-backed SQLite database per test + authenticated HTTP client

A file (not :memory:) database is used so the background duplication job can
open its own connections and see what the request committed.
"""
from datetime import date

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from backend.database import Base, get_db, get_session_factory
from backend.main import app
from backend.api.auth import get_password_hash, create_access_token
from backend.models import (
    User, Project, ProjectMember, ProjectRole, ProjectStatus,
    Department, DepartmentLead, Element, ElementPriority, Task, TaskDependency, TaskStatus, TaskPriority,
    DocumentFolder, DocumentLink, ChatSettings, ChatRoom, ChatRoomType,
)
from backend.services.duplication import jobs


def _enable_sqlite_fk(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest_asyncio.fixture()
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    event.listen(engine.sync_engine, "connect", _enable_sqlite_fk)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await jobs.drain()
    await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def seed_data(db_session):
    """Insert baseline users: the caller, a teammate and an outsider"""
    user = User(
        email="test@projecthub.local",
        full_name="Test User",
        hashed_password=get_password_hash("testpass123"),
    )
    teammate = User(
        email="teammate@projecthub.local",
        full_name="Team Mate",
        hashed_password=get_password_hash("teampass123"),
    )
    outsider = User(
        email="outsider@projecthub.local",
        full_name="Out Sider",
        hashed_password=get_password_hash("outpass123"),
    )
    db_session.add_all([user, teammate, outsider])
    await db_session.commit()

    return {"user": user, "teammate": teammate, "outsider": outsider}


async def build_alpha(session, owner: User) -> dict:
    """Project "Alpha": one department, one element, a parent and a child task"""
    alpha = Project(name="Alpha", description="Flagship", owner_id=owner.id,
                    start_date=date(2025, 1, 1), end_date=date(2025, 12, 31),
                    theme_colors={"primary": "#111111", "secondary": "#222222"},
                    logo_url="https://cdn.example.com/alpha.png")
    session.add(alpha)
    await session.commit()

    eng = Department(project_id=alpha.id, name="Eng", description="Engineering")
    session.add(eng)
    await session.commit()

    api = Element(project_id=alpha.id, department_id=eng.id, title="API", priority=ElementPriority.HIGH)
    session.add(api)
    await session.commit()

    # Child is inserted before its parent
    build = Task(project_id=alpha.id, element_id=api.id, department_id=eng.id,
                 title="Build endpoint", status=TaskStatus.IN_PROGRESS, priority=TaskPriority.HIGH,
                 progress_percentage=60, actual_cost=1200, logged_hours=14, estimated_cost=2000,
                 estimate_hours=20, labels=["backend"], assignee_user_id=owner.id)
    session.add(build)
    await session.commit()
    design = Task(project_id=alpha.id, element_id=api.id, title="Design API",
                  status=TaskStatus.DONE, progress_percentage=100, actual_cost=300, logged_hours=5,
                  assignee_user_id=owner.id)
    session.add(design)
    await session.commit()
    build.parent_task_id = design.id
    await session.commit()

    return {"project": alpha, "department": eng, "element": api, "child": build, "parent": design}


async def build_full_graph(session, owner: User, teammate: User) -> dict:
    """Alpha plus leads, members, dependencies, a folder tree, links and chat"""
    data = await build_alpha(session, owner)
    alpha, eng = data["project"], data["department"]

    ops = Department(project_id=alpha.id, name="Ops")
    session.add(ops)
    await session.commit()

    session.add_all([
        DepartmentLead(department_id=eng.id, user_id=teammate.id, assigned_by=owner.id),
        ProjectMember(project_id=alpha.id, user_id=teammate.id, role=ProjectRole.MANAGER, added_by=owner.id),
    ])
    await session.commit()

    deploy = Task(project_id=alpha.id, title="Deploy", status=TaskStatus.TODO)
    session.add(deploy)
    await session.commit()
    session.add(TaskDependency(task_id=deploy.id, depends_on_task_id=data["child"].id))
    await session.commit()

    # Nested folder created before its parent
    specs = DocumentFolder(project_id=alpha.id, department_id=eng.id, name="Specs", created_by=owner.id)
    session.add(specs)
    await session.commit()
    root = DocumentFolder(project_id=alpha.id, name="Root", created_by=owner.id)
    session.add(root)
    await session.commit()
    specs.parent_folder_id = root.id
    await session.commit()

    session.add(DocumentLink(project_id=alpha.id, department_id=eng.id, folder_id=specs.id,
                             title="OpenAPI", url="https://docs.example.com/openapi",
                             created_by=owner.id))
    session.add(ChatSettings(project_id=alpha.id, public_chat_enabled=False, max_file_size_mb=25,
                             allowed_file_types=["pdf"], message_retention_days=30))
    session.add(ChatRoom(project_id=alpha.id, name="general", room_type=ChatRoomType.PUBLIC,
                         created_by=owner.id))
    session.add(ChatRoom(project_id=alpha.id, name="leads", room_type=ChatRoomType.PRIVATE,
                         created_by=owner.id))
    await session.commit()

    data.update({"ops": ops, "deploy": deploy, "specs": specs, "root": root})
    return data


async def create_shell(session, source: Project, owner: User, name: str = "Alpha Copy") -> Project:
    shell = Project(name=name, owner_id=owner.id, status=ProjectStatus.DUPLICATING,
                    duplicated_from_id=source.id)
    session.add(shell)
    await session.commit()
    return shell


@pytest_asyncio.fixture()
async def client(session_factory, seed_data):
    """Authenticated httpx AsyncClient bound to the FastAPI app"""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    token = create_access_token(data={"sub": seed_data["user"].email})

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        ac.headers["Authorization"] = f"Bearer {token}"
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def unauth_client(session_factory):
    """Unauthenticated httpx AsyncClient"""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def alpha(db_session, seed_data):
    return await build_alpha(db_session, seed_data["user"])


@pytest_asyncio.fixture()
async def full_graph(db_session, seed_data):
    return await build_full_graph(db_session, seed_data["user"], seed_data["teammate"])


@pytest_asyncio.fixture()
async def alpha_shell(db_session, seed_data, alpha):
    """Destination project as the request handler leaves it"""
    return await create_shell(db_session, alpha["project"], seed_data["user"])


@pytest_asyncio.fixture()
async def graph_shell(db_session, seed_data, full_graph):
    return await create_shell(db_session, full_graph["project"], seed_data["user"])
