"""
Projects API endpoints - project records, content summary and duplication
"""
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy import select, func
from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel

from backend.database import get_db, get_session_factory
from backend.models.user import User
from backend.models.project import Project, ProjectMember, ProjectStatus
from backend.models.department import Department, DepartmentLead
from backend.models.element import Element
from backend.models.task import Task, TaskDependency
from backend.models.document import DocumentFolder, DocumentLink
from backend.models.chat import ChatSettings, ChatRoom
from backend.api.auth import get_current_user
from backend.core.exceptions import DuplicationError
from backend.services.duplication.handler import start_duplication
from backend.services.project_access import (
    find_owned_project_by_name,
    get_visible_project,
    visible_projects_query,
)

router = APIRouter()
logger = logging.getLogger(__name__)


# --- Pydantic Schemas ---

class ProjectResponse(BaseModel):
    id: str
    name: str
    description: Optional[str]
    status: ProjectStatus
    start_date: Optional[date]
    end_date: Optional[date]
    owner_id: Optional[str]
    theme_colors: Optional[dict]
    logo_url: Optional[str]
    duplicated_from_id: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class ProjectCreate(BaseModel):
    name: str
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    theme_colors: Optional[dict] = None
    logo_url: Optional[str] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    theme_colors: Optional[dict] = None
    logo_url: Optional[str] = None


class ProjectSummary(BaseModel):
    project_id: str
    status: ProjectStatus
    departments: int = 0
    department_leads: int = 0
    members: int = 0
    elements: int = 0
    tasks: int = 0
    task_dependencies: int = 0
    document_folders: int = 0
    document_links: int = 0
    chat_settings: int = 0
    chat_rooms: int = 0


class DuplicateProjectRequest(BaseModel):
    # Field names follow the JSON body the client sends
    projectId: Optional[str] = None
    newProjectName: Optional[str] = None


class DuplicateProjectResponse(BaseModel):
    success: bool = True
    newProjectId: str
    status: ProjectStatus
    message: str


# --- Helper ---

async def _count(db: AsyncSession, query) -> int:
    result = await db.execute(query)
    return result.scalar() or 0


async def _build_summary(db: AsyncSession, project: Project) -> ProjectSummary:
    pid = project.id
    return ProjectSummary(
        project_id=pid,
        status=project.status,
        departments=await _count(db, select(func.count(Department.id)).where(Department.project_id == pid)),
        department_leads=await _count(
            db,
            select(func.count(DepartmentLead.id))
            .join(Department, DepartmentLead.department_id == Department.id)
            .where(Department.project_id == pid),
        ),
        members=await _count(db, select(func.count(ProjectMember.id)).where(ProjectMember.project_id == pid)),
        elements=await _count(db, select(func.count(Element.id)).where(Element.project_id == pid)),
        tasks=await _count(db, select(func.count(Task.id)).where(Task.project_id == pid)),
        task_dependencies=await _count(
            db,
            select(func.count(TaskDependency.id))
            .join(Task, TaskDependency.task_id == Task.id)
            .where(Task.project_id == pid),
        ),
        document_folders=await _count(db, select(func.count(DocumentFolder.id)).where(DocumentFolder.project_id == pid)),
        document_links=await _count(db, select(func.count(DocumentLink.id)).where(DocumentLink.project_id == pid)),
        chat_settings=await _count(db, select(func.count(ChatSettings.id)).where(ChatSettings.project_id == pid)),
        chat_rooms=await _count(db, select(func.count(ChatRoom.id)).where(ChatRoom.project_id == pid)),
    )


async def _get_project_or_404(db: AsyncSession, project_id: str, user: User) -> Project:
    project = await get_visible_project(db, project_id, user)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


# --- Project Endpoints ---

@router.get("/", response_model=List[ProjectResponse])
async def list_projects(
    status: Optional[ProjectStatus] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List projects the caller owns or is a member of"""
    query = visible_projects_query(current_user).order_by(Project.updated_at.desc())
    if status:
        query = query.where(Project.status == status)

    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get a single project; poll this to follow a duplication"""
    return await _get_project_or_404(db, project_id, current_user)


@router.get("/{project_id}/summary", response_model=ProjectSummary)
async def get_project_summary(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Row counts per entity type"""
    project = await _get_project_or_404(db, project_id, current_user)
    return await _build_summary(db, project)


@router.post("/", response_model=ProjectResponse)
async def create_project(
    data: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a new project owned by the caller"""
    if await find_owned_project_by_name(db, current_user.id, data.name):
        raise HTTPException(status_code=409, detail=f"A project named '{data.name}' already exists")

    project = Project(
        **data.model_dump(exclude_none=True),
        owner_id=current_user.id,
        status=ProjectStatus.ACTIVE,
    )
    db.add(project)
    await db.commit()
    await db.refresh(project)
    return project


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    data: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update a project"""
    project = await _get_project_or_404(db, project_id, current_user)

    updates = data.model_dump(exclude_none=True)
    if "name" in updates and updates["name"] != project.name:
        clash = await find_owned_project_by_name(db, project.owner_id, updates["name"])
        if clash:
            raise HTTPException(status_code=409, detail=f"A project named '{updates['name']}' already exists")

    for key, value in updates.items():
        setattr(project, key, value)

    await db.commit()
    await db.refresh(project)
    return project


# --- Duplication ---

@router.post("/duplicate", response_model=DuplicateProjectResponse)
async def duplicate_project(
    data: DuplicateProjectRequest,
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    current_user: User = Depends(get_current_user),
):
    """
    Start copying a project into a new one owned by the caller.

    Returns as soon as the new project exists in ``duplicating`` state; the
    copy runs in the background and ends with status ``active`` or ``error``.
    """
    try:
        project, resumed = await start_duplication(
            db, session_factory, current_user, data.projectId, data.newProjectName,
        )
    except DuplicationError:
        raise
    except SQLAlchemyError as e:
        logger.exception("Database error while starting project duplication")
        raise HTTPException(status_code=500, detail=f"Failed to start duplication: {e.__class__.__name__}")
    except Exception as e:
        logger.exception("Unexpected error while starting project duplication")
        raise HTTPException(status_code=500, detail=f"Failed to start duplication: {e.__class__.__name__}")

    message = (
        "Resuming project duplication" if resumed
        else "Project duplication started"
    )
    return DuplicateProjectResponse(
        newProjectId=project.id,
        status=project.status,
        message=f"{message}; check the project status for completion",
    )
