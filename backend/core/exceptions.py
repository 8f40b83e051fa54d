"""
Exception hierarchy for project duplication.

Request-time errors carry the HTTP status they map to; ``backend.main``
registers one handler that renders them as ``{"error": message}``.
Cloning-time errors never reach a client: the duplication job catches them
and records the failure on the destination project's status.
"""
from typing import Optional


class DuplicationError(Exception):
    """Base class for errors raised while accepting a duplication request."""

    status_code = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidRequestError(DuplicationError):
    """Missing or malformed parameters."""

    status_code = 400


class UnauthorizedError(DuplicationError):
    """No caller identity could be established."""

    status_code = 401


class ProjectNotFoundError(DuplicationError):
    """Source project does not exist or is not visible to the caller.

    Both cases produce the same 404 so the response does not reveal
    projects the caller has no access to.
    """

    status_code = 404

    def __init__(self, project_id: Optional[str] = None) -> None:
        self.project_id = project_id
        super().__init__("Project not found")


class ProjectNameConflictError(DuplicationError):
    """The caller already owns a project with the requested name."""

    status_code = 409

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"A project named '{name}' already exists")


class DuplicationDisabledError(DuplicationError):
    status_code = 503

    def __init__(self) -> None:
        super().__init__("Project duplication is currently disabled")


class CloningError(Exception):
    """Raised inside a duplication job; fails the job, never a request."""


class MissingMappingError(CloningError):
    """A foreign key points at a row the current run has not cloned.

    Args:
        entity_type: Entity type of the referenced row.
        source_id: The source-scope id that had no destination counterpart.
    """

    def __init__(self, entity_type: str, source_id: str) -> None:
        self.entity_type = entity_type
        self.source_id = source_id
        super().__init__(f"No cloned {entity_type} for source id {source_id}")
