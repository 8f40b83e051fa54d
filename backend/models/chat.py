"""
Chat configuration models - per-project settings, rooms and room membership
"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, JSON, UniqueConstraint, Enum as SQLEnum
from enum import Enum
from backend.database import Base
from backend.utils.helpers import new_id, utcnow


class ChatRoomType(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


DEFAULT_ALLOWED_FILE_TYPES = ["pdf", "png", "jpg", "jpeg", "gif", "doc", "docx", "xls", "xlsx"]


class ChatSettings(Base):
    __tablename__ = "chat_settings"

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, unique=True)
    public_chat_enabled = Column(Boolean, default=True)
    max_file_size_mb = Column(Integer, default=10)
    allowed_file_types = Column(JSON, default=lambda: list(DEFAULT_ALLOWED_FILE_TYPES))
    message_retention_days = Column(Integer, default=90)
    notifications_enabled = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class ChatRoom(Base):
    __tablename__ = "chat_rooms"

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    room_type = Column(SQLEnum(ChatRoomType, native_enum=False), nullable=False, default=ChatRoomType.PUBLIC)
    name = Column(String, nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class ChatParticipant(Base):
    __tablename__ = "chat_participants"
    __table_args__ = (UniqueConstraint("room_id", "user_id", name="uq_chat_participants_room_user"),)

    id = Column(String(36), primary_key=True, default=new_id)
    room_id = Column(String(36), ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    joined_at = Column(DateTime, default=utcnow)
    muted = Column(Boolean, default=False)
