"""
Document models - folder tree and external links (uploaded files live elsewhere)
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from backend.database import Base
from backend.utils.helpers import new_id, utcnow


class DocumentFolder(Base):
    __tablename__ = "document_folders"

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    department_id = Column(String(36), ForeignKey("departments.id", ondelete="SET NULL"), nullable=True)
    parent_folder_id = Column(String(36), ForeignKey("document_folders.id", ondelete="CASCADE"), nullable=True)
    name = Column(String, nullable=False)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class DocumentLink(Base):
    __tablename__ = "document_links"

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    department_id = Column(String(36), ForeignKey("departments.id", ondelete="SET NULL"), nullable=True)
    folder_id = Column(String(36), ForeignKey("document_folders.id", ondelete="SET NULL"), nullable=True)
    title = Column(String, nullable=False)
    url = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
