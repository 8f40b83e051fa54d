"""
Database setup script - creates the tables and a demo project to duplicate
"""
import asyncio
from datetime import date

from sqlalchemy import select

from backend.database import engine, Base, AsyncSessionLocal
from backend.models import (
    User, Project, ProjectMember, ProjectRole,
    Department, DepartmentLead, Element, ElementPriority,
    Task, TaskDependency, TaskStatus, TaskPriority,
    DocumentFolder, DocumentLink, ChatSettings, ChatRoom, ChatRoomType,
)
from backend.api.auth import get_password_hash


async def _get_or_create_user(session, email, full_name, password, is_admin=False):
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user:
        return user
    user = User(email=email, full_name=full_name,
                hashed_password=get_password_hash(password), is_admin=is_admin)
    session.add(user)
    await session.commit()
    return user


async def seed_demo_project(session, owner, teammate):
    """Project "Website Relaunch" with one of every entity type"""
    result = await session.execute(
        select(Project).where(Project.owner_id == owner.id, Project.name == "Website Relaunch")
    )
    if result.scalar_one_or_none():
        print("Demo project already present")
        return

    project = Project(
        name="Website Relaunch",
        description="New marketing site and CMS migration",
        start_date=date(2025, 1, 6),
        end_date=date(2025, 6, 30),
        owner_id=owner.id,
        theme_colors={"primary": "#1d4ed8", "secondary": "#f59e0b"},
    )
    session.add(project)
    await session.commit()

    design = Department(project_id=project.id, name="Design")
    dev = Department(project_id=project.id, name="Development")
    session.add_all([design, dev])
    await session.commit()

    session.add_all([
        DepartmentLead(department_id=dev.id, user_id=teammate.id, assigned_by=owner.id),
        ProjectMember(project_id=project.id, user_id=teammate.id,
                      role=ProjectRole.MANAGER, added_by=owner.id),
    ])
    await session.commit()

    homepage = Element(project_id=project.id, department_id=design.id,
                       title="Homepage", priority=ElementPriority.HIGH)
    cms = Element(project_id=project.id, department_id=dev.id, title="CMS")
    session.add_all([homepage, cms])
    await session.commit()

    mockups = Task(project_id=project.id, element_id=homepage.id, department_id=design.id,
                   title="Mockups", status=TaskStatus.DONE, progress_percentage=100,
                   estimate_hours=16, logged_hours=18, assignee_user_id=teammate.id)
    session.add(mockups)
    await session.commit()
    build = Task(project_id=project.id, element_id=homepage.id, department_id=dev.id,
                 title="Build templates", status=TaskStatus.IN_PROGRESS, priority=TaskPriority.HIGH,
                 parent_task_id=mockups.id, progress_percentage=40, estimated_cost=4000)
    migrate = Task(project_id=project.id, element_id=cms.id, department_id=dev.id,
                   title="Migrate content", labels=["content", "cms"])
    session.add_all([build, migrate])
    await session.commit()
    session.add(TaskDependency(task_id=migrate.id, depends_on_task_id=build.id))
    await session.commit()

    docs = DocumentFolder(project_id=project.id, name="Docs", created_by=owner.id)
    session.add(docs)
    await session.commit()
    briefs = DocumentFolder(project_id=project.id, department_id=design.id,
                            parent_folder_id=docs.id, name="Briefs", created_by=owner.id)
    session.add(briefs)
    await session.commit()

    session.add(DocumentLink(project_id=project.id, department_id=design.id, folder_id=briefs.id,
                             title="Brand guide", url="https://example.com/brand-guide",
                             created_by=owner.id))
    session.add(ChatSettings(project_id=project.id))
    session.add(ChatRoom(project_id=project.id, name="general",
                         room_type=ChatRoomType.PUBLIC, created_by=owner.id))
    await session.commit()
    print(f"Demo project created ({project.id})")


async def setup_database():
    """Create tables and seed initial data"""
    print("Creating database tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("Tables created")

    async with AsyncSessionLocal() as session:
        admin = await _get_or_create_user(
            session, "admin@projecthub.local", "Administrator", "admin123", is_admin=True
        )
        teammate = await _get_or_create_user(
            session, "dana@projecthub.local", "Dana Levi", "dana123"
        )
        await seed_demo_project(session, admin, teammate)

    await engine.dispose()

    print("\nDatabase setup complete!")
    print("\nDefault login:")
    print("  Email: admin@projecthub.local")
    print("  Password: admin123")


if __name__ == "__main__":
    asyncio.run(setup_database())
