"""
Duplication orchestrator - runs the cloners in dependency order and records
the outcome on the destination project's status.
"""
from typing import Awaitable, Callable, List, Tuple

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.models.project import Project, ProjectStatus
from backend.services.duplication import cloners, patcher
from backend.services.duplication.cloners import CloneContext, StepResult
from backend.utils.helpers import utcnow
from backend.utils.logger import get_job_logger

Step = Callable[[CloneContext], Awaitable[StepResult]]


def duplication_steps() -> List[Tuple[str, Step]]:
    """
    Ordered steps of a run. A type is only cloned after every type its
    foreign keys point at, and self-references are patched after the
    whole type exists.
    """
    return [
        ("departments", cloners.clone_departments),
        ("department_leads", cloners.clone_department_leads),
        ("project_members", cloners.clone_project_members),
        ("elements", cloners.clone_elements),
        ("tasks", cloners.clone_tasks),
        ("task_parents", patcher.patch_task_parents),
        ("task_dependencies", cloners.clone_task_dependencies),
        ("document_folders", cloners.clone_document_folders),
        ("folder_parents", patcher.patch_folder_parents),
        ("document_links", cloners.clone_document_links),
        ("chat_settings", cloners.clone_chat_settings),
        ("chat_rooms", cloners.clone_chat_rooms),
    ]


async def _set_status(session: AsyncSession, project_id: str, status: ProjectStatus) -> None:
    await session.execute(
        update(Project)
        .where(Project.id == project_id)
        .values(status=status, updated_at=utcnow())
    )
    await session.commit()


async def run_duplication(
    session_factory: async_sessionmaker,
    source_project_id: str,
    dest_project_id: str,
    caller_id: str,
) -> bool:
    """
    Clone the source project's object graph into the destination shell.

    Stops at the first failing step and marks the destination ``error``;
    rows written by earlier steps are kept so a re-run can complete them.

    Returns:
        True when the destination ended up ``active``
    """
    log = get_job_logger(__name__, f"duplicate:{dest_project_id}")
    log.info(f"Starting duplication of {source_project_id} for user {caller_id}")

    async with session_factory() as session:
        ctx = CloneContext(session, source_project_id, dest_project_id, caller_id)
        step_name = None
        try:
            for step_name, step in duplication_steps():
                result = await step(ctx)
                log.info(
                    f"{step_name}: {result.created} created, {result.matched} already present"
                    + (f", {result.skipped} skipped" if result.skipped else "")
                )
            step_name = "finalize"
            await _set_status(session, dest_project_id, ProjectStatus.ACTIVE)
        except Exception:
            log.exception(f"Duplication failed at step '{step_name}'")
            await session.rollback()
            try:
                await _set_status(session, dest_project_id, ProjectStatus.ERROR)
            except Exception:
                log.exception("Could not mark project as failed")
            return False

    log.info("Duplication complete")
    return True
