"""
Department models - project sub-teams and their leads
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, UniqueConstraint
from backend.database import Base
from backend.utils.helpers import new_id, utcnow


class Department(Base):
    __tablename__ = "departments"
    __table_args__ = (UniqueConstraint("project_id", "name", name="uq_departments_project_name"),)

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)


class DepartmentLead(Base):
    __tablename__ = "department_leads"
    __table_args__ = (UniqueConstraint("department_id", "user_id", name="uq_department_leads_department_user"),)

    id = Column(String(36), primary_key=True, default=new_id)
    department_id = Column(String(36), ForeignKey("departments.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    assigned_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
