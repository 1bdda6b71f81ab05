"""
SQLAlchemy models for teacher-side state

History → generated documents with the form that produced them
Saved session → the one result a teacher parked for later
Activity log / feedback / referral links / registered teachers → admin views
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, JSON
from sqlalchemy.sql import func
from database.database import Base


class HistoryEntry(Base):
    """One successful generation: module, submitted form, ordered sections."""
    __tablename__ = "generation_history"

    id = Column(Integer, primary_key=True, index=True)
    module_type = Column(String(20), nullable=False, index=True)   # admin | soal | ecourse
    form_data = Column(JSON, nullable=False, default=dict)
    generated_sections = Column(JSON, nullable=False, default=list)  # [{id, title, content}]
    user = Column(String(255), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<HistoryEntry(id={self.id}, module='{self.module_type}', sections={len(self.generated_sections or [])})>"


class SavedSession(Base):
    """
    Single parked result. Only one row is ever kept (id = 1); saving again
    overwrites it and starting a new generation clears it.
    """
    __tablename__ = "saved_sessions"

    id = Column(Integer, primary_key=True)
    module_type = Column(String(20), nullable=False)
    form_data = Column(JSON, nullable=False, default=dict)
    generated_sections = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    user = Column(String(255), nullable=False, index=True)
    module_type = Column(String(20), nullable=False)
    details = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<ActivityLog(id={self.id}, user='{self.user}', module='{self.module_type}')>"


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, index=True)
    user = Column(String(255), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class ShareableLink(Base):
    """Referral link handed to a named user; usage_count grows per visit."""
    __tablename__ = "shareable_links"

    id = Column(String(64), primary_key=True)        # "user_<hex>"
    user_name = Column(String(255), nullable=False)
    url = Column(String(1024), nullable=False)
    usage_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<ShareableLink(id='{self.id}', user='{self.user_name}', uses={self.usage_count})>"


class RegisteredTeacher(Base):
    __tablename__ = "registered_teachers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
