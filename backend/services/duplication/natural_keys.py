"""
Natural-key resolver - finds a row in the destination scope that already
represents a source row, so re-running a duplication does not create it twice.

Keys are exact matches. Two source rows sharing a key in the same scope
collapse into one copy: the second is treated as already cloned.
"""
from typing import Any, Dict, Optional, Tuple, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.database import Base
from backend.models.department import Department, DepartmentLead
from backend.models.project import ProjectMember
from backend.models.element import Element
from backend.models.task import Task, TaskDependency
from backend.models.document import DocumentFolder, DocumentLink
from backend.models.chat import ChatSettings, ChatRoom, ChatParticipant


NATURAL_KEYS: Dict[Type[Base], Tuple[str, ...]] = {
    Department: ("project_id", "name"),
    DepartmentLead: ("department_id", "user_id"),
    ProjectMember: ("project_id", "user_id"),
    Element: ("project_id", "department_id", "title"),
    Task: ("project_id", "element_id", "title"),
    TaskDependency: ("task_id", "depends_on_task_id"),
    DocumentFolder: ("project_id", "department_id", "name"),
    DocumentLink: ("project_id", "folder_id", "url"),
    ChatSettings: ("project_id",),
    ChatRoom: ("project_id", "name"),
    ChatParticipant: ("room_id", "user_id"),
}


def natural_key(model: Type[Base], values: Dict[str, Any]) -> Tuple[Any, ...]:
    """Key tuple of a candidate destination row"""
    return tuple(values.get(column) for column in NATURAL_KEYS[model])


async def find_existing(
    session: AsyncSession,
    model: Type[Base],
    values: Dict[str, Any],
) -> Optional[str]:
    """
    Point lookup for a row of ``model`` matching the natural key in ``values``.

    Args:
        session: Session bound to the destination store
        model: Mapped class being cloned
        values: Candidate destination row, foreign keys already rewritten

    Returns:
        Id of the existing row, or None when the row still has to be created
    """
    query = select(model.id)
    for column, value in zip(NATURAL_KEYS[model], natural_key(model, values)):
        attr = getattr(model, column)
        query = query.where(attr.is_(None) if value is None else attr == value)

    result = await session.execute(query.limit(1))
    return result.scalar_one_or_none()
