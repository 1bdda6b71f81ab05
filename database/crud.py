"""
CRUD operations for teacher-side state
All database operations go through these functions
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from database import models
from generation.schemas import GeneratedSection

SAVED_SESSION_ID = 1
BACKUP_VERSION = "1.1"


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def _iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _dump_sections(sections: List[GeneratedSection]) -> List[Dict[str, str]]:
    return [s.model_dump() for s in sections]


# ==========================================
# HISTORY CRUD
# ==========================================

def create_history(
    db: Session,
    module_type: str,
    form_data: Dict[str, Any],
    sections: List[GeneratedSection],
    user: Optional[str] = None,
) -> models.HistoryEntry:
    """Store one generation result (newest first when listed)."""
    entry = models.HistoryEntry(
        module_type=module_type,
        form_data=form_data,
        generated_sections=_dump_sections(sections),
        user=user,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def get_history(db: Session, history_id: int) -> Optional[models.HistoryEntry]:
    return db.query(models.HistoryEntry).filter(models.HistoryEntry.id == history_id).first()


def list_history(
    db: Session,
    module_type: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[models.HistoryEntry]:
    query = db.query(models.HistoryEntry)
    if module_type:
        query = query.filter(models.HistoryEntry.module_type == module_type)
    return (
        query.order_by(models.HistoryEntry.created_at.desc(), models.HistoryEntry.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def delete_history(db: Session, history_id: int) -> bool:
    entry = get_history(db, history_id)
    if not entry:
        return False
    db.delete(entry)
    db.commit()
    return True


def update_history_section(
    db: Session,
    entry: models.HistoryEntry,
    section_id: str,
    content: Optional[str] = None,
    delete: bool = False,
) -> bool:
    """Edit or drop one section in place. Returns False when the id is unknown."""
    sections = list(entry.generated_sections or [])
    index = next((i for i, s in enumerate(sections) if s.get("id") == section_id), None)
    if index is None:
        return False
    if delete:
        sections.pop(index)
    else:
        sections[index] = {**sections[index], "content": content}
    # JSON columns are not mutation-tracked; assign a new list
    entry.generated_sections = sections
    db.commit()
    db.refresh(entry)
    return True


# ==========================================
# SAVED SESSION CRUD
# ==========================================

def save_session(
    db: Session,
    module_type: str,
    form_data: Dict[str, Any],
    sections: List[GeneratedSection],
) -> models.SavedSession:
    session_row = db.get(models.SavedSession, SAVED_SESSION_ID)
    if session_row is None:
        session_row = models.SavedSession(id=SAVED_SESSION_ID)
        db.add(session_row)
    session_row.module_type = module_type
    session_row.form_data = form_data
    session_row.generated_sections = _dump_sections(sections)
    session_row.created_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(session_row)
    return session_row


def get_saved_session(db: Session) -> Optional[models.SavedSession]:
    return db.get(models.SavedSession, SAVED_SESSION_ID)


def clear_saved_session(db: Session) -> bool:
    session_row = get_saved_session(db)
    if session_row is None:
        return False
    db.delete(session_row)
    db.commit()
    return True


# ==========================================
# ACTIVITY LOG / FEEDBACK CRUD
# ==========================================

def activity_details(module_type: str, form_data: Dict[str, Any]) -> str:
    """One-line summary shown in the activity log."""
    if module_type == "ecourse":
        return f"{form_data.get('topik_ecourse', '')} - {form_data.get('jumlah_pertemuan', '')} Pertemuan"
    return f"{form_data.get('mata_pelajaran', '')} - Kelas {form_data.get('kelas', '')}"


def create_activity(db: Session, user: str, module_type: str, details: str) -> models.ActivityLog:
    log_row = models.ActivityLog(user=user, module_type=module_type, details=details)
    db.add(log_row)
    db.commit()
    db.refresh(log_row)
    return log_row


def list_activity(db: Session, user: Optional[str] = None, skip: int = 0, limit: int = 200) -> List[models.ActivityLog]:
    query = db.query(models.ActivityLog)
    if user:
        query = query.filter(models.ActivityLog.user == user)
    return (
        query.order_by(models.ActivityLog.created_at.desc(), models.ActivityLog.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def create_feedback(db: Session, user: str, rating: int, comment: str) -> models.Feedback:
    row = models.Feedback(user=user, rating=rating, comment=comment)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def list_feedback(db: Session, skip: int = 0, limit: int = 200) -> List[models.Feedback]:
    return (
        db.query(models.Feedback)
        .order_by(models.Feedback.created_at.desc(), models.Feedback.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


# ==========================================
# SHAREABLE LINK CRUD
# ==========================================

def create_link(db: Session, user_name: str, base_url: str) -> models.ShareableLink:
    """Referral link rooted at `/` of the public site: <base>/?ref=<id>."""
    link_id = f"user_{uuid.uuid4().hex[:12]}"
    link = models.ShareableLink(
        id=link_id,
        user_name=user_name,
        url=f"{base_url.rstrip('/')}/?ref={link_id}",
        usage_count=0,
    )
    db.add(link)
    db.commit()
    db.refresh(link)
    return link


def list_links(db: Session) -> List[models.ShareableLink]:
    return db.query(models.ShareableLink).order_by(models.ShareableLink.created_at.asc()).all()


def delete_link(db: Session, link_id: str) -> bool:
    link = db.get(models.ShareableLink, link_id)
    if link is None:
        return False
    db.delete(link)
    db.commit()
    return True


def track_referral(db: Session, link_id: str) -> Optional[models.ShareableLink]:
    """Count one visit through a referral link. Unknown ids are ignored."""
    link = db.get(models.ShareableLink, link_id)
    if link is None:
        return None
    link.usage_count = (link.usage_count or 0) + 1
    db.commit()
    db.refresh(link)
    return link


# ==========================================
# REGISTERED TEACHERS CRUD
# ==========================================

def list_teachers(db: Session) -> List[str]:
    return [t.name for t in db.query(models.RegisteredTeacher).order_by(models.RegisteredTeacher.id).all()]


def add_teachers(db: Session, names: List[str]) -> int:
    """Insert new names, skipping blanks and duplicates. Returns how many were added."""
    existing = set(list_teachers(db))
    added = 0
    for raw in names:
        name = raw.strip()
        if not name or name in existing:
            continue
        db.add(models.RegisteredTeacher(name=name))
        existing.add(name)
        added += 1
    db.commit()
    return added


# ==========================================
# BACKUP / RESTORE
# ==========================================

def export_backup(db: Session) -> Dict[str, Any]:
    """Everything in one JSON-able dict, keyed the way the web client expects."""
    history = []
    for entry in list_history(db, limit=100000):
        item = dict(entry.form_data or {})
        item.update(
            id=str(entry.id),
            module_type=entry.module_type,
            generated_sections=entry.generated_sections or [],
            user=entry.user,
            created_at=_iso(entry.created_at),
        )
        history.append(item)

    return {
        "version": BACKUP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "history": history,
        "activityLog": [
            {
                "id": str(row.id),
                "user": row.user,
                "module_type": row.module_type,
                "details": row.details,
                "created_at": _iso(row.created_at),
            }
            for row in list_activity(db, limit=100000)
        ],
        "feedback": [
            {
                "id": str(row.id),
                "user": row.user,
                "rating": row.rating,
                "comment": row.comment,
                "created_at": _iso(row.created_at),
            }
            for row in list_feedback(db, limit=100000)
        ],
        "shareableLinks": [
            {
                "id": link.id,
                "userName": link.user_name,
                "url": link.url,
                "usageCount": link.usage_count,
                "createdAt": _iso(link.created_at),
            }
            for link in list_links(db)
        ],
        "registeredTeachers": list_teachers(db),
    }


_HISTORY_META = {"id", "module_type", "generated_sections", "created_at", "user"}


def restore_backup(db: Session, data: Dict[str, Any]) -> Dict[str, int]:
    """
    Replace each table whose key holds a non-empty list. Runs in one
    transaction; any failure rolls everything back and re-raises.
    """
    restored: Dict[str, int] = {}
    try:
        if data.get("history"):
            db.query(models.HistoryEntry).delete()
            for item in data["history"]:
                db.add(models.HistoryEntry(
                    module_type=item["module_type"],
                    form_data={k: v for k, v in item.items() if k not in _HISTORY_META},
                    generated_sections=item.get("generated_sections") or [],
                    user=item.get("user"),
                    created_at=_parse_timestamp(item.get("created_at")) or datetime.now(timezone.utc),
                ))
            restored["history"] = len(data["history"])

        if data.get("activityLog"):
            db.query(models.ActivityLog).delete()
            for item in data["activityLog"]:
                db.add(models.ActivityLog(
                    user=item["user"],
                    module_type=item["module_type"],
                    details=item.get("details", ""),
                    created_at=_parse_timestamp(item.get("created_at")) or datetime.now(timezone.utc),
                ))
            restored["activityLog"] = len(data["activityLog"])

        if data.get("feedback"):
            db.query(models.Feedback).delete()
            for item in data["feedback"]:
                db.add(models.Feedback(
                    user=item["user"],
                    rating=int(item["rating"]),
                    comment=item.get("comment", ""),
                    created_at=_parse_timestamp(item.get("created_at")) or datetime.now(timezone.utc),
                ))
            restored["feedback"] = len(data["feedback"])

        if data.get("shareableLinks"):
            db.query(models.ShareableLink).delete()
            for item in data["shareableLinks"]:
                db.add(models.ShareableLink(
                    id=item["id"],
                    user_name=item["userName"],
                    url=item["url"],
                    usage_count=int(item.get("usageCount", 0)),
                    created_at=_parse_timestamp(item.get("createdAt")) or datetime.now(timezone.utc),
                ))
            restored["shareableLinks"] = len(data["shareableLinks"])

        if data.get("registeredTeachers"):
            db.query(models.RegisteredTeacher).delete()
            db.flush()
            names = list(dict.fromkeys(n.strip() for n in data["registeredTeachers"] if n.strip()))
            for name in names:
                db.add(models.RegisteredTeacher(name=name))
            restored["registeredTeachers"] = len(names)

        db.commit()
    except Exception:
        db.rollback()
        raise
    return restored
