"""
History API endpoints
Generated documents, per-section edits and the single saved session
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import crud, schemas
from database.database import get_db

router = APIRouter(prefix="/history", tags=["history"])


# ==========================================
# SAVED SESSION
# (declared before /{history_id} so "session" is not parsed as an id)
# ==========================================

@router.put("/session", response_model=schemas.SavedSessionResponse)
def save_session(payload: schemas.SavedSessionCreate, db: Session = Depends(get_db)):
    """Park the current result. Overwrites any earlier saved session."""
    return crud.save_session(db, payload.module_type, payload.form_data, payload.generated_sections)


@router.get("/session", response_model=Optional[schemas.SavedSessionResponse])
def get_saved_session(db: Session = Depends(get_db)):
    return crud.get_saved_session(db)


@router.post("/session/restore", response_model=schemas.SavedSessionResponse)
def restore_session(db: Session = Depends(get_db)):
    """Return the saved session and remove it, so it is offered only once."""
    session_row = crud.get_saved_session(db)
    if session_row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tidak ada sesi tersimpan.")
    restored = schemas.SavedSessionResponse.model_validate(session_row)
    crud.clear_saved_session(db)
    return restored


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
def dismiss_session(db: Session = Depends(get_db)):
    crud.clear_saved_session(db)


# ==========================================
# HISTORY
# ==========================================

@router.get("", response_model=List[schemas.HistoryResponse])
def list_history(
    module_type: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    """Newest first, optionally filtered by module type."""
    return crud.list_history(db, module_type=module_type, skip=skip, limit=limit)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def clear_history(db: Session = Depends(get_db)):
    for entry in crud.list_history(db, limit=100000):
        crud.delete_history(db, entry.id)


@router.get("/{history_id}", response_model=schemas.HistoryResponse)
def get_history(history_id: int, db: Session = Depends(get_db)):
    entry = crud.get_history(db, history_id)
    if not entry:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Riwayat {history_id} tidak ditemukan")
    return entry


@router.delete("/{history_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_history(history_id: int, db: Session = Depends(get_db)):
    if not crud.delete_history(db, history_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Riwayat {history_id} tidak ditemukan")


@router.patch("/{history_id}/sections/{section_id}", response_model=schemas.HistoryResponse)
def update_section(
    history_id: int,
    section_id: str,
    update: schemas.SectionContentUpdate,
    db: Session = Depends(get_db),
):
    """Replace the HTML content of one section (manual edit in the results view)."""
    entry = get_history(history_id, db)
    if not crud.update_history_section(db, entry, section_id, content=update.content):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Bagian '{section_id}' tidak ditemukan")
    return entry


@router.delete("/{history_id}/sections/{section_id}", response_model=schemas.HistoryResponse)
def delete_section(history_id: int, section_id: str, db: Session = Depends(get_db)):
    entry = get_history(history_id, db)
    if not crud.update_history_section(db, entry, section_id, delete=True):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Bagian '{section_id}' tidak ditemukan")
    return entry
