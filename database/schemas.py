"""
Pydantic schemas for request/response validation
Separate from SQLAlchemy models for clean API contracts
"""

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Any, Union
from datetime import datetime

from generation.schemas import GeneratedSection, ModuleType


# ==========================================
# HISTORY SCHEMAS
# ==========================================

class HistoryResponse(BaseModel):
    id: int
    module_type: ModuleType
    form_data: Dict[str, Any]
    generated_sections: List[GeneratedSection]
    user: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SectionContentUpdate(BaseModel):
    content: str


class SavedSessionCreate(BaseModel):
    module_type: ModuleType
    form_data: Dict[str, Any] = Field(default_factory=dict)
    generated_sections: List[GeneratedSection] = Field(..., min_length=1)


class SavedSessionResponse(SavedSessionCreate):
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==========================================
# ACTIVITY / FEEDBACK SCHEMAS
# ==========================================

class ActivityLogCreate(BaseModel):
    user: str = Field(..., min_length=1, max_length=255)
    module_type: ModuleType
    details: str = ""


class ActivityLogResponse(ActivityLogCreate):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FeedbackCreate(BaseModel):
    user: str = Field(..., min_length=1, max_length=255)
    rating: int = Field(..., ge=1, le=5)
    comment: str = ""


class FeedbackResponse(FeedbackCreate):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==========================================
# ADMIN SCHEMAS
# ==========================================

class ShareableLinkCreate(BaseModel):
    user_name: str = Field(..., min_length=1, max_length=255)


class ShareableLinkResponse(BaseModel):
    id: str
    user_name: str
    url: str
    usage_count: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TeacherNames(BaseModel):
    names: List[str] = Field(..., min_length=1)


class TeacherImportResult(BaseModel):
    added: int
    teachers: List[str]


class ApiKeyUpdate(BaseModel):
    api_key: str = Field(..., min_length=1)


class BackupHistoryItem(BaseModel):
    """History record as exported: form fields flattened next to the metadata."""
    id: Optional[Union[str, int]] = None
    module_type: ModuleType
    generated_sections: List[GeneratedSection] = Field(default_factory=list)
    user: Optional[str] = None
    created_at: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class BackupActivityItem(BaseModel):
    id: Optional[Union[str, int]] = None
    user: str = Field(..., min_length=1, max_length=255)
    module_type: ModuleType
    details: str = ""
    created_at: Optional[str] = None


class BackupFeedbackItem(BaseModel):
    id: Optional[Union[str, int]] = None
    user: str = Field(..., min_length=1, max_length=255)
    rating: int = Field(..., ge=1, le=5)
    comment: str = ""
    created_at: Optional[str] = None


class BackupLinkItem(BaseModel):
    id: str = Field(..., min_length=1)
    userName: str
    url: str
    usageCount: int = Field(0, ge=0)
    createdAt: Optional[str] = None


class BackupPayload(BaseModel):
    """
    Whole-app backup. `version` and `timestamp` are mandatory; every other
    key is optional and only replaces its table when non-empty.
    """
    version: str
    timestamp: str
    history: Optional[List[BackupHistoryItem]] = None
    activityLog: Optional[List[BackupActivityItem]] = None
    feedback: Optional[List[BackupFeedbackItem]] = None
    shareableLinks: Optional[List[BackupLinkItem]] = None
    registeredTeachers: Optional[List[str]] = None


class RestoreResult(BaseModel):
    restored: Dict[str, int]
