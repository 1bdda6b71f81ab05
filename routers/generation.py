"""
Generation Router: /generation

Runs the document families through the orchestrator and records results.
Endpoints:
  POST /generation/admin               : administrative packet
  POST /generation/soal                : question bank with exam header
  POST /generation/ecourse             : e-course package
  POST /generation/suggestions/cp      : CP element suggestions (markdown)
  POST /generation/suggestions/topics  : topic suggestions (markdown)

Starting a document clears the saved session. A successful one is stored
in history and logged in the activity log when X-User-Name is present.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database import crud
from database.database import get_db
from generation.form_rules import question_total_error
from generation.orchestrator import GenerationOrchestrator
from generation.schemas import (
    AdminFormData,
    EcourseFormData,
    GeneratedSection,
    GenerationResponse,
    SoalFormData,
    SuggestionRequest,
    SuggestionResponse,
)
from routers.dependencies import generation_http_error, get_orchestrator, get_user_name

router = APIRouter(prefix="/generation", tags=["generation"])

log = logging.getLogger("generation.pipeline")


def _record(
    db: Session,
    module_type: str,
    form_data: Dict[str, Any],
    sections: List[GeneratedSection],
    user: Optional[str],
) -> GenerationResponse:
    entry = crud.create_history(db, module_type, form_data, sections, user=user)
    if user:
        crud.create_activity(db, user, module_type, crud.activity_details(module_type, form_data))
    log.info(f"[{module_type.upper()}] stored history id={entry.id} ({len(sections)} sections)")
    return GenerationResponse(module_type=module_type, history_id=entry.id, sections=sections)


# ─── Document families ─────────────────────────────────────────────────────────

@router.post("/admin", response_model=GenerationResponse)
async def generate_admin(
    form: AdminFormData,
    db: Session = Depends(get_db),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
    user: Optional[str] = Depends(get_user_name),
):
    """Generate the administrative packet (ATP, Prota, Promes, Modul Ajar, ...)."""
    crud.clear_saved_session(db)
    log.info(f"[ADMIN] {form.mata_pelajaran} kelas {form.kelas} modul={form.jumlah_modul_ajar}")
    try:
        sections = await orchestrator.generate_admin(form)
    except Exception as e:
        raise generation_http_error(e, "ADMIN")
    return _record(db, "admin", form.model_dump(), sections, user)


@router.post("/soal", response_model=GenerationResponse)
async def generate_soal(
    form: SoalFormData,
    db: Session = Depends(get_db),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
    user: Optional[str] = Depends(get_user_name),
):
    """
    **Generate a question bank.**

    Rejected with 422 before any model call when the per-type question
    counts add up to more than `jumlah_soal_total`.
    """
    error = question_total_error(form)
    if error:
        raise HTTPException(status_code=422, detail=error)

    crud.clear_saved_session(db)
    log.info(f"[SOAL] {form.mata_pelajaran} kelas {form.kelas} topik='{form.topik_materi[:80]}'")
    try:
        sections = await orchestrator.generate_soal(form)
    except Exception as e:
        raise generation_http_error(e, "SOAL")
    return _record(db, "soal", form.model_dump(), sections, user)


@router.post("/ecourse", response_model=GenerationResponse)
async def generate_ecourse(
    form: EcourseFormData,
    db: Session = Depends(get_db),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
    user: Optional[str] = Depends(get_user_name),
):
    crud.clear_saved_session(db)
    log.info(f"[ECOURSE] '{form.topik_ecourse[:80]}' pertemuan={form.jumlah_pertemuan}")
    try:
        sections = await orchestrator.generate_ecourse(form)
    except Exception as e:
        raise generation_http_error(e, "ECOURSE")
    return _record(db, "ecourse", form.model_dump(), sections, user)


# ─── AI assistant suggestions ──────────────────────────────────────────────────

@router.post("/suggestions/cp", response_model=SuggestionResponse)
async def suggest_cp(
    request: SuggestionRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    try:
        markdown = await orchestrator.suggest_cp(request)
    except Exception as e:
        raise generation_http_error(e, "CP_SUGGESTION")
    return SuggestionResponse(markdown=markdown)


@router.post("/suggestions/topics", response_model=SuggestionResponse)
async def suggest_topics(
    request: SuggestionRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    try:
        markdown = await orchestrator.suggest_topics(request)
    except Exception as e:
        raise generation_http_error(e, "TOPIC_SUGGESTION")
    return SuggestionResponse(markdown=markdown)
