"""
Identity map - source id -> cloned id, per entity type, for one duplication run
"""
from enum import Enum
from typing import Dict, Optional

from backend.core.exceptions import MissingMappingError


class EntityType(str, Enum):
    DEPARTMENT = "department"
    DEPARTMENT_LEAD = "department_lead"
    PROJECT_MEMBER = "project_member"
    ELEMENT = "element"
    TASK = "task"
    TASK_DEPENDENCY = "task_dependency"
    FOLDER = "document_folder"
    LINK = "document_link"
    CHAT_SETTINGS = "chat_settings"
    CHAT_ROOM = "chat_room"


class IdentityMap:
    """
    Translates source-project ids into the ids of their copies.

    Lives exactly as long as one run; nothing is persisted. A re-run rebuilds
    it from scratch by matching natural keys against rows already cloned.
    """

    def __init__(self):
        self._maps: Dict[EntityType, Dict[str, str]] = {t: {} for t in EntityType}

    def record(self, entity_type: EntityType, source_id: str, dest_id: str) -> None:
        self._maps[entity_type][source_id] = dest_id

    def get(self, entity_type: EntityType, source_id: str) -> Optional[str]:
        return self._maps[entity_type].get(source_id)

    def rewrite(self, entity_type: EntityType, source_id: Optional[str]) -> Optional[str]:
        """Map a foreign key value; NULL stays NULL, an unmapped id is an error"""
        if source_id is None:
            return None
        dest_id = self._maps[entity_type].get(source_id)
        if dest_id is None:
            raise MissingMappingError(entity_type.value, source_id)
        return dest_id

    def count(self, entity_type: EntityType) -> int:
        return len(self._maps[entity_type])

    def __contains__(self, key) -> bool:
        entity_type, source_id = key
        return source_id in self._maps[entity_type]
