from backend.models.user import User
from backend.models.project import Project, ProjectMember, ProjectStatus, ProjectRole
from backend.models.department import Department, DepartmentLead
from backend.models.element import Element, ElementPriority
from backend.models.task import Task, TaskDependency, TaskStatus, TaskPriority
from backend.models.document import DocumentFolder, DocumentLink
from backend.models.chat import ChatSettings, ChatRoom, ChatParticipant, ChatRoomType

__all__ = [
    "User",
    "Project",
    "ProjectMember",
    "ProjectStatus",
    "ProjectRole",
    "Department",
    "DepartmentLead",
    "Element",
    "ElementPriority",
    "Task",
    "TaskDependency",
    "TaskStatus",
    "TaskPriority",
    "DocumentFolder",
    "DocumentLink",
    "ChatSettings",
    "ChatRoom",
    "ChatParticipant",
    "ChatRoomType",
]
