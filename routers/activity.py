"""
Activity log and feedback endpoints
Read by the admin panel; the CSV export is what admins download
"""

import csv
import io
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from database import crud, schemas
from database.database import get_db

router = APIRouter(tags=["activity"])

CSV_COLUMNS = ["Waktu", "Pengguna", "Modul", "Detail"]


# ==========================================
# ACTIVITY LOG
# ==========================================

@router.get("/activity", response_model=List[schemas.ActivityLogResponse])
def list_activity(
    user: Optional[str] = None,
    skip: int = 0,
    limit: int = 200,
    db: Session = Depends(get_db),
):
    return crud.list_activity(db, user=user, skip=skip, limit=limit)


@router.post("/activity", response_model=schemas.ActivityLogResponse, status_code=status.HTTP_201_CREATED)
def create_activity(entry: schemas.ActivityLogCreate, db: Session = Depends(get_db)):
    return crud.create_activity(db, entry.user, entry.module_type, entry.details)


@router.get("/activity/export.csv")
def export_activity_csv(db: Session = Depends(get_db)):
    """Whole activity log as CSV, newest first."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_COLUMNS)
    for row in crud.list_activity(db, limit=100000):
        created = row.created_at.isoformat() if row.created_at else ""
        writer.writerow([created, row.user, row.module_type, row.details])
    buffer.seek(0)
    return StreamingResponse(
        iter([buffer.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="activity_log.csv"'},
    )


# ==========================================
# FEEDBACK
# ==========================================

@router.get("/feedback", response_model=List[schemas.FeedbackResponse])
def list_feedback(skip: int = 0, limit: int = 200, db: Session = Depends(get_db)):
    return crud.list_feedback(db, skip=skip, limit=limit)


@router.post("/feedback", response_model=schemas.FeedbackResponse, status_code=status.HTTP_201_CREATED)
def create_feedback(entry: schemas.FeedbackCreate, db: Session = Depends(get_db)):
    return crud.create_feedback(db, entry.user, entry.rating, entry.comment)
