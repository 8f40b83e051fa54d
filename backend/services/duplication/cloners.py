"""
Entity cloners - one routine per entity type of a project.

Every cloner reads the source rows of its type, rewrites their foreign keys
through the identity map, reuses a destination row with the same natural key
when one exists and inserts one otherwise. Each insert is committed on its
own, so a failure leaves every earlier row in place.
"""
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.database import Base
from backend.models.project import ProjectMember
from backend.models.department import Department, DepartmentLead
from backend.models.element import Element
from backend.models.task import Task, TaskDependency, INITIAL_TASK_STATUS
from backend.models.document import DocumentFolder, DocumentLink
from backend.models.chat import ChatSettings, ChatRoom, ChatParticipant
from backend.services.duplication.identity_map import EntityType, IdentityMap
from backend.services.duplication.natural_keys import find_existing
from backend.utils.logger import get_logger

logger = get_logger(__name__)


class CloneContext:
    """State threaded through every step of one duplication run"""

    def __init__(
        self,
        session: AsyncSession,
        source_project_id: str,
        dest_project_id: str,
        caller_id: str,
    ):
        self.session = session
        self.source_project_id = source_project_id
        self.dest_project_id = dest_project_id
        # Attribution for assigned_by / added_by / created_by on every copy
        self.caller_id = caller_id
        self.ids = IdentityMap()


class StepResult:
    def __init__(self, created: int = 0, matched: int = 0, skipped: int = 0):
        self.created = created
        self.matched = matched
        self.skipped = skipped

    @property
    def total(self) -> int:
        return self.created + self.matched

    def __repr__(self):
        return f"StepResult(created={self.created}, matched={self.matched}, skipped={self.skipped})"


# --- Helpers ---

async def load_source_rows(ctx: CloneContext, model: Type[Base]) -> List[Any]:
    """All rows of a project-scoped model in the source project, in insertion order"""
    result = await ctx.session.execute(
        select(model)
        .where(model.project_id == ctx.source_project_id)
        .order_by(model.created_at, model.id)
    )
    return list(result.scalars().all())


async def insert_or_match(
    session: AsyncSession,
    model: Type[Base],
    values: Dict[str, Any],
) -> Tuple[str, bool]:
    """Return (id, created) for the destination row described by ``values``"""
    existing_id = await find_existing(session, model, values)
    if existing_id is not None:
        return existing_id, False

    row = model(**values)
    session.add(row)
    await session.commit()
    return row.id, True


async def _clone_rows(
    ctx: CloneContext,
    model: Type[Base],
    entity_type: EntityType,
    source_rows: Iterable[Any],
    build: Callable[[Any], Optional[Dict[str, Any]]],
) -> StepResult:
    result = StepResult()
    for row in source_rows:
        values = build(row)
        if values is None:
            result.skipped += 1
            continue

        dest_id, created = await insert_or_match(ctx.session, model, values)
        ctx.ids.record(entity_type, row.id, dest_id)
        if created:
            result.created += 1
        else:
            result.matched += 1
    return result


# --- Departments, leads, members ---

async def clone_departments(ctx: CloneContext) -> StepResult:
    rows = await load_source_rows(ctx, Department)
    return await _clone_rows(ctx, Department, EntityType.DEPARTMENT, rows, lambda d: {
        "project_id": ctx.dest_project_id,
        "name": d.name,
        "description": d.description,
    })


async def clone_department_leads(ctx: CloneContext) -> StepResult:
    result = await ctx.session.execute(
        select(DepartmentLead)
        .join(Department, DepartmentLead.department_id == Department.id)
        .where(Department.project_id == ctx.source_project_id)
        .order_by(DepartmentLead.created_at, DepartmentLead.id)
    )
    rows = result.scalars().all()
    return await _clone_rows(ctx, DepartmentLead, EntityType.DEPARTMENT_LEAD, rows, lambda lead: {
        "department_id": ctx.ids.rewrite(EntityType.DEPARTMENT, lead.department_id),
        "user_id": lead.user_id,
        "assigned_by": ctx.caller_id,
    })


async def clone_project_members(ctx: CloneContext) -> StepResult:
    rows = await load_source_rows(ctx, ProjectMember)
    return await _clone_rows(ctx, ProjectMember, EntityType.PROJECT_MEMBER, rows, lambda m: {
        "project_id": ctx.dest_project_id,
        "user_id": m.user_id,
        "role": m.role,
        "added_by": ctx.caller_id,
    })


# --- Elements & tasks ---

async def clone_elements(ctx: CloneContext) -> StepResult:
    rows = await load_source_rows(ctx, Element)
    return await _clone_rows(ctx, Element, EntityType.ELEMENT, rows, lambda e: {
        "project_id": ctx.dest_project_id,
        "department_id": ctx.ids.rewrite(EntityType.DEPARTMENT, e.department_id),
        "title": e.title,
        "description": e.description,
        "priority": e.priority,
        "start_date": e.start_date,
        "due_date": e.due_date,
    })


def _task_values(ctx: CloneContext, task: Task) -> Dict[str, Any]:
    # parent_task_id is filled in by the self-reference patch once every task exists
    return {
        "project_id": ctx.dest_project_id,
        "element_id": ctx.ids.rewrite(EntityType.ELEMENT, task.element_id),
        "department_id": ctx.ids.rewrite(EntityType.DEPARTMENT, task.department_id),
        "title": task.title,
        "description": task.description,
        "priority": task.priority,
        "labels": list(task.labels) if task.labels is not None else None,
        "start_date": task.start_date,
        "due_date": task.due_date,
        "estimated_cost": task.estimated_cost,
        "estimate_hours": task.estimate_hours,
        # Progress and assignment start over in the copy
        "status": INITIAL_TASK_STATUS,
        "progress_percentage": 0,
        "actual_cost": 0,
        "logged_hours": 0,
        "assignee_user_id": None,
        "completed_at": None,
    }


async def clone_tasks(ctx: CloneContext) -> StepResult:
    rows = await load_source_rows(ctx, Task)
    return await _clone_rows(ctx, Task, EntityType.TASK, rows, lambda t: _task_values(ctx, t))


async def clone_task_dependencies(ctx: CloneContext) -> StepResult:
    result = await ctx.session.execute(
        select(TaskDependency)
        .join(Task, TaskDependency.task_id == Task.id)
        .where(Task.project_id == ctx.source_project_id)
        .order_by(TaskDependency.created_at, TaskDependency.id)
    )
    rows = result.scalars().all()

    def build(dep: TaskDependency) -> Optional[Dict[str, Any]]:
        task_id = ctx.ids.rewrite(EntityType.TASK, dep.task_id)
        depends_on_task_id = ctx.ids.rewrite(EntityType.TASK, dep.depends_on_task_id)
        if task_id == depends_on_task_id:
            # Both ends collapsed into one copy through a shared natural key
            logger.warning(
                f"Skipping dependency {dep.id}: tasks {dep.task_id} and "
                f"{dep.depends_on_task_id} map to the same copy {task_id}"
            )
            return None
        return {"task_id": task_id, "depends_on_task_id": depends_on_task_id}

    return await _clone_rows(ctx, TaskDependency, EntityType.TASK_DEPENDENCY, rows, build)


# --- Documents ---

async def clone_document_folders(ctx: CloneContext) -> StepResult:
    rows = await load_source_rows(ctx, DocumentFolder)
    return await _clone_rows(ctx, DocumentFolder, EntityType.FOLDER, rows, lambda f: {
        "project_id": ctx.dest_project_id,
        "department_id": ctx.ids.rewrite(EntityType.DEPARTMENT, f.department_id),
        "name": f.name,
        "created_by": ctx.caller_id,
    })


async def clone_document_links(ctx: CloneContext) -> StepResult:
    rows = await load_source_rows(ctx, DocumentLink)
    return await _clone_rows(ctx, DocumentLink, EntityType.LINK, rows, lambda link: {
        "project_id": ctx.dest_project_id,
        "department_id": ctx.ids.rewrite(EntityType.DEPARTMENT, link.department_id),
        "folder_id": ctx.ids.rewrite(EntityType.FOLDER, link.folder_id),
        "title": link.title,
        "url": link.url,
        "description": link.description,
        "created_by": ctx.caller_id,
    })


# --- Chat ---

async def clone_chat_settings(ctx: CloneContext) -> StepResult:
    rows = await load_source_rows(ctx, ChatSettings)
    return await _clone_rows(ctx, ChatSettings, EntityType.CHAT_SETTINGS, rows, lambda s: {
        "project_id": ctx.dest_project_id,
        "public_chat_enabled": s.public_chat_enabled,
        "max_file_size_mb": s.max_file_size_mb,
        "allowed_file_types": list(s.allowed_file_types) if s.allowed_file_types is not None else None,
        "message_retention_days": s.message_retention_days,
        "notifications_enabled": s.notifications_enabled,
    })


async def clone_chat_rooms(ctx: CloneContext) -> StepResult:
    """Clone rooms and join the caller to each copy; messages are not carried over"""
    rows = await load_source_rows(ctx, ChatRoom)
    result = await _clone_rows(ctx, ChatRoom, EntityType.CHAT_ROOM, rows, lambda r: {
        "project_id": ctx.dest_project_id,
        "room_type": r.room_type,
        "name": r.name,
        "created_by": ctx.caller_id,
    })

    for room in rows:
        await insert_or_match(ctx.session, ChatParticipant, {
            "room_id": ctx.ids.rewrite(EntityType.CHAT_ROOM, room.id),
            "user_id": ctx.caller_id,
        })
    return result
