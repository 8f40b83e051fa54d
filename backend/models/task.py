"""
Task models - work items, their hierarchy and dependencies
"""
from sqlalchemy import (
    Column, String, Text, Date, DateTime, Numeric, ForeignKey, JSON,
    CheckConstraint, UniqueConstraint, Enum as SQLEnum,
)
from enum import Enum
from backend.database import Base
from backend.utils.helpers import new_id, utcnow


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


INITIAL_TASK_STATUS = TaskStatus.TODO


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint(
            "progress_percentage >= 0 AND progress_percentage <= 100",
            name="ck_tasks_progress_range",
        ),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    element_id = Column(String(36), ForeignKey("elements.id", ondelete="SET NULL"), nullable=True, index=True)
    department_id = Column(String(36), ForeignKey("departments.id", ondelete="SET NULL"), nullable=True)
    parent_task_id = Column(String(36), ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(SQLEnum(TaskStatus, native_enum=False), nullable=False, default=INITIAL_TASK_STATUS)
    priority = Column(SQLEnum(TaskPriority, native_enum=False), nullable=False, default=TaskPriority.MEDIUM)
    labels = Column(JSON, nullable=True)
    start_date = Column(Date, nullable=True)
    due_date = Column(Date, nullable=True)

    # Costs & effort
    estimated_cost = Column(Numeric(12, 2), default=0)
    actual_cost = Column(Numeric(12, 2), default=0)
    estimate_hours = Column(Numeric(10, 2), nullable=True)
    logged_hours = Column(Numeric(10, 2), default=0)
    progress_percentage = Column(Numeric(5, 2), nullable=False, default=0)

    # Assignment is per-project state, never carried into a copy
    assignee_user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    completed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class TaskDependency(Base):
    __tablename__ = "task_dependencies"
    __table_args__ = (
        UniqueConstraint("task_id", "depends_on_task_id", name="uq_task_dependencies_pair"),
        CheckConstraint("task_id <> depends_on_task_id", name="ck_task_dependencies_not_self"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    depends_on_task_id = Column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utcnow)
