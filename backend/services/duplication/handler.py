"""
Duplication request handling - validates the request, creates the shell
project synchronously and hands the clone off to a background job.
"""
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.config import get_settings
from backend.core.exceptions import (
    DuplicationDisabledError,
    InvalidRequestError,
    ProjectNameConflictError,
    ProjectNotFoundError,
    UnauthorizedError,
)
from backend.models.user import User
from backend.models.project import Project, ProjectStatus
from backend.services.duplication import jobs
from backend.services.project_access import find_owned_project_by_name, get_visible_project
from backend.utils.logger import get_logger

logger = get_logger(__name__)

RESUMABLE_STATUSES = (ProjectStatus.DUPLICATING, ProjectStatus.ERROR)


def _shell_from(source: Project, name: str, owner: User) -> Project:
    return Project(
        name=name,
        description=source.description,
        status=ProjectStatus.DUPLICATING,
        start_date=source.start_date,
        end_date=source.end_date,
        owner_id=owner.id,
        theme_colors=dict(source.theme_colors) if source.theme_colors is not None else None,
        logo_url=source.logo_url,
        duplicated_from_id=source.id,
    )


def _can_resume(existing: Project, source: Project) -> bool:
    """A failed or orphaned copy of the same source is completed, not rejected"""
    return (
        existing.duplicated_from_id == source.id
        and existing.status in RESUMABLE_STATUSES
        and not jobs.is_running(existing.id)
    )


async def start_duplication(
    db: AsyncSession,
    session_factory: async_sessionmaker,
    caller: Optional[User],
    project_id: Optional[str],
    new_project_name: Optional[str],
) -> Tuple[Project, bool]:
    """
    Accept a duplication request.

    The uniqueness check and the shell insert are separate statements, so two
    concurrent requests for the same name can both get through.

    Returns:
        (destination project, resumed) - resumed is True when an earlier
        failed copy with this name is being completed instead of a new one
        being created

    Raises:
        DuplicationError subclasses; nothing is written or started when one
        is raised
    """
    if not get_settings().DUPLICATION_ENABLED:
        raise DuplicationDisabledError()
    if caller is None:
        raise UnauthorizedError("Unauthorized: no user found")

    # Blank names are rejected; any other name is matched and stored as given
    if not project_id or not (new_project_name or "").strip():
        raise InvalidRequestError("Missing required parameters")
    name = new_project_name

    source = await get_visible_project(db, project_id, caller)
    if source is None:
        raise ProjectNotFoundError(project_id)

    existing = await find_owned_project_by_name(db, caller.id, name)
    if existing is not None:
        if not _can_resume(existing, source):
            raise ProjectNameConflictError(name)
        existing.status = ProjectStatus.DUPLICATING
        await db.commit()
        logger.info(f"Resuming duplication of {source.id} into existing project {existing.id}")
        jobs.launch(session_factory, source.id, existing.id, caller.id)
        return existing, True

    shell = _shell_from(source, name, caller)
    db.add(shell)
    await db.commit()
    logger.info(f"Duplicating project {source.id} as '{name}' ({shell.id})")

    jobs.launch(session_factory, source.id, shell.id, caller.id)
    return shell, False
