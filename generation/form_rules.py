"""
Business rules checked by the caller before a question bank is requested.
The orchestrator trusts its input and never re-checks these.
"""

from typing import Optional

from generation.document_templates import uses_pesantren_sections
from generation.schemas import SoalFormData


def count_requested_questions(form: SoalFormData) -> int:
    """Questions of the selected types (TKA extras are not counted)."""
    if uses_pesantren_sections(form):
        return sum(s.count for s in form.soal_pesantren_sections)
    total = 0
    if "Pilihan Ganda" in form.jenis_soal:
        total += form.jumlah_pg
    if "Uraian" in form.jenis_soal:
        total += form.jumlah_uraian
    if "Isian Singkat" in form.jenis_soal:
        total += form.jumlah_isian_singkat
    return total


def question_total_error(form: SoalFormData) -> Optional[str]:
    """Indonesian error message when per-type counts exceed the declared total."""
    total = count_requested_questions(form)
    if total > form.jumlah_soal_total:
        return (
            f"Jumlah soal per jenis ({total}) melebihi total soal standar "
            f"({form.jumlah_soal_total})."
        )
    return None
