"""
Project visibility rules shared by the project endpoints and duplication
"""
from typing import Optional

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from backend.models.user import User
from backend.models.project import Project, ProjectMember


def visible_projects_query(user: User):
    """Projects the user owns or belongs to; admins see everything"""
    query = select(Project)
    if user.is_admin:
        return query
    member_of = select(ProjectMember.project_id).where(ProjectMember.user_id == user.id)
    return query.where(or_(Project.owner_id == user.id, Project.id.in_(member_of)))


async def get_visible_project(db: AsyncSession, project_id: str, user: User) -> Optional[Project]:
    result = await db.execute(visible_projects_query(user).where(Project.id == project_id))
    return result.scalar_one_or_none()


async def find_owned_project_by_name(db: AsyncSession, owner_id: str, name: str) -> Optional[Project]:
    """Exact, case-sensitive name match among the owner's projects"""
    result = await db.execute(
        select(Project)
        .where(Project.owner_id == owner_id, Project.name == name)
        .limit(1)
    )
    return result.scalar_one_or_none()
