"""
Background runner for duplication jobs.

Jobs are spawned on the running event loop and never awaited by the request
that started them. There is no cancellation: once launched, a job runs until
it marks its project ``active`` or ``error``.
"""
import asyncio
from typing import Dict

from sqlalchemy.ext.asyncio import async_sessionmaker

from backend.services.duplication.orchestrator import run_duplication
from backend.utils.logger import get_logger

logger = get_logger(__name__)

# Strong references keep running tasks from being garbage collected
_running: Dict[str, asyncio.Task] = {}


def launch(
    session_factory: async_sessionmaker,
    source_project_id: str,
    dest_project_id: str,
    caller_id: str,
) -> asyncio.Task:
    task = asyncio.create_task(
        run_duplication(session_factory, source_project_id, dest_project_id, caller_id),
        name=f"duplicate-project:{dest_project_id}",
    )
    _running[dest_project_id] = task

    def _done(t: asyncio.Task) -> None:
        if _running.get(dest_project_id) is t:
            del _running[dest_project_id]
        if not t.cancelled() and t.exception() is not None:
            logger.error(f"Duplication job for {dest_project_id} crashed: {t.exception()!r}")

    task.add_done_callback(_done)
    logger.info(f"Launched duplication job {task.get_name()}")
    return task


def is_running(project_id: str) -> bool:
    return project_id in _running


def running_count() -> int:
    return len(_running)


async def drain() -> None:
    """Wait for every job currently running, including ones launched meanwhile"""
    while _running:
        await asyncio.gather(*list(_running.values()), return_exceptions=True)
