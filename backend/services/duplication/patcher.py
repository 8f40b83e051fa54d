"""
Self-reference patcher - second pass over types that point at themselves.

The first pass inserts every row with its parent pointer unset, because a
child may come before its parent in iteration order. Once the whole type is
mapped, this pass sets each copy's parent to the copy of the source parent.
"""
from typing import Dict, Tuple, Type

from sqlalchemy import update

from backend.database import Base
from backend.models.task import Task
from backend.models.document import DocumentFolder
from backend.services.duplication.cloners import CloneContext, StepResult, load_source_rows
from backend.services.duplication.identity_map import EntityType
from backend.utils.helpers import utcnow
from backend.utils.logger import get_logger

logger = get_logger(__name__)

SELF_REFERENCES: Dict[Type[Base], Tuple[str, EntityType]] = {
    Task: ("parent_task_id", EntityType.TASK),
    DocumentFolder: ("parent_folder_id", EntityType.FOLDER),
}


async def patch_self_references(ctx: CloneContext, model: Type[Base]) -> StepResult:
    field, entity_type = SELF_REFERENCES[model]
    result = StepResult()

    for row in await load_source_rows(ctx, model):
        source_parent_id = getattr(row, field)
        if source_parent_id is None:
            continue

        dest_id = ctx.ids.rewrite(entity_type, row.id)
        dest_parent_id = ctx.ids.rewrite(entity_type, source_parent_id)
        if dest_id == dest_parent_id:
            # Parent and child share a natural key, so they are one copy
            logger.warning(f"Not linking {model.__tablename__} {dest_id} to itself")
            result.skipped += 1
            continue

        await ctx.session.execute(
            update(model)
            .where(model.id == dest_id)
            .values({field: dest_parent_id, "updated_at": utcnow()})
        )
        await ctx.session.commit()
        result.created += 1

    return result


async def patch_task_parents(ctx: CloneContext) -> StepResult:
    return await patch_self_references(ctx, Task)


async def patch_folder_parents(ctx: CloneContext) -> StepResult:
    return await patch_self_references(ctx, DocumentFolder)
