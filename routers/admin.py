"""
Admin API endpoints
Referral links, registered teachers, backup/restore and credential swap
"""

import csv
import io
import json
import logging
import os
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import crud, schemas
from database.database import get_db
from generation.gpt_client import GenerationClient
from routers.dependencies import get_generation_client

router = APIRouter(prefix="/admin", tags=["admin"])

log = logging.getLogger("routers.admin")

PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "")
INVALID_BACKUP = "File backup tidak valid atau rusak."


# ==========================================
# SHAREABLE LINKS
# ==========================================

@router.get("/links", response_model=List[schemas.ShareableLinkResponse])
def list_links(db: Session = Depends(get_db)):
    return crud.list_links(db)


@router.post("/links", response_model=schemas.ShareableLinkResponse, status_code=status.HTTP_201_CREATED)
def create_link(payload: schemas.ShareableLinkCreate, request: Request, db: Session = Depends(get_db)):
    """
    Create a referral link for a named user.
    The URL always points at the site root with `?ref=<id>`.
    """
    user_name = payload.user_name.strip()
    if not user_name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Nama pengguna wajib diisi.")
    base_url = PUBLIC_BASE_URL or str(request.base_url)
    link = crud.create_link(db, user_name, base_url)
    log.info(f"[LINKS] created {link.id} for '{user_name}'")
    return link


@router.delete("/links/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_link(link_id: str, db: Session = Depends(get_db)):
    if not crud.delete_link(db, link_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Link '{link_id}' tidak ditemukan")


@router.post("/links/track")
def track_referral(ref: str, db: Session = Depends(get_db)):
    """Count a visit that arrived with ?ref=<id>. Unknown ids are ignored."""
    link = crud.track_referral(db, ref)
    if link is None:
        return {"tracked": False, "usage_count": None}
    return {"tracked": True, "usage_count": link.usage_count}


# ==========================================
# REGISTERED TEACHERS
# ==========================================

@router.get("/teachers", response_model=List[str])
def list_teachers(db: Session = Depends(get_db)):
    return crud.list_teachers(db)


@router.post("/teachers", response_model=schemas.TeacherImportResult)
def add_teachers(payload: schemas.TeacherNames, db: Session = Depends(get_db)):
    added = crud.add_teachers(db, payload.names)
    return schemas.TeacherImportResult(added=added, teachers=crud.list_teachers(db))


@router.post("/teachers/import-csv", response_model=schemas.TeacherImportResult)
async def import_teachers_csv(file: UploadFile = File(...), db: Session = Depends(get_db)):
    """
    One teacher name per row, first column. A header row named
    "nama" / "name" / "nama guru" is skipped.
    """
    raw = await file.read()
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File CSV harus berformat UTF-8.")

    names = []
    for row in csv.reader(io.StringIO(text)):
        if not row or not row[0].strip():
            continue
        names.append(row[0].strip())
    if names and names[0].lower() in ("nama", "name", "nama guru"):
        names = names[1:]

    added = crud.add_teachers(db, names)
    log.info(f"[TEACHERS] imported {added}/{len(names)} names from {file.filename}")
    return schemas.TeacherImportResult(added=added, teachers=crud.list_teachers(db))


# ==========================================
# BACKUP / RESTORE
# ==========================================

@router.get("/backup")
def backup(db: Session = Depends(get_db)):
    data = crud.export_backup(db)
    filename = f"guru_inovatif_backup_{datetime.now(timezone.utc).date().isoformat()}.json"
    return JSONResponse(
        content=data,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/restore", response_model=schemas.RestoreResult)
async def restore(file: UploadFile = File(...), db: Session = Depends(get_db)):
    """
    Restore from a backup file. `version` and `timestamp` are required;
    each table is replaced only when its key holds data.
    """
    try:
        payload = schemas.BackupPayload.model_validate(json.loads(await file.read()))
    except (ValueError, ValidationError) as e:
        log.warning(f"[RESTORE] rejected {file.filename}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_BACKUP)

    try:
        restored = crud.restore_backup(db, payload.model_dump())
    except (KeyError, TypeError, ValueError, IntegrityError) as e:
        log.warning(f"[RESTORE] malformed records in {file.filename}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_BACKUP)

    log.info(f"[RESTORE] version={payload.version} restored={restored}")
    return schemas.RestoreResult(restored=restored)


# ==========================================
# CREDENTIAL
# ==========================================

@router.post("/api-key", status_code=status.HTTP_204_NO_CONTENT)
def set_api_key(payload: schemas.ApiKeyUpdate, client: GenerationClient = Depends(get_generation_client)):
    """Swap the service credential. Calls already in flight keep the old one."""
    client.set_api_key(payload.api_key.strip())
    log.info("[API-KEY] credential updated")
