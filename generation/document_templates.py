"""
Static HTML fragments spliced around generated question-bank sections.

- Exam header (kop + assessment title + identity table) goes on top of the
  question sheet.
- Teacher signature block goes at the bottom of every other section.

Values coming from the form are HTML-escaped; the generated content itself is
passed through untouched.
"""

import os
import re
from html import escape
from typing import Iterable, Optional

from generation.schemas import SoalFormData

# Full-width kop image used instead of the text header for pesantren exams
PESANTREN_HEADER_IMAGE_URL = os.getenv("PESANTREN_HEADER_IMAGE_URL", "")

ARABIC_SUBJECTS = {
    "BAHASA ARAB",
    "NAHWU",
    "SHARAF",
    "INSYA",
    "MUTHALAAH",
    "MAHFUDZAT",
    "IMLA",
    "BALAGHAH",
    "DURUSUL LUGHAH",
    "KHAT",
}

# Title the model gives the question sheet, per output language
QUESTION_SHEET_TITLES = {
    "Bahasa Indonesia": ("Naskah Soal", "Lembar Soal", "Soal Ujian"),
    "Bahasa Inggris": ("Question Sheet", "Question Paper", "Exam Questions"),
    "Bahasa Arab": ("ورقة الأسئلة", "أسئلة الامتحان", "الأسئلة"),
}

SIGNATURE_LABELS = {
    "Bahasa Indonesia": "Guru Mata Pelajaran",
    "Bahasa Inggris": "Subject Teacher",
    "Bahasa Arab": "معلم المادة",
}


def _normalise(title: str) -> str:
    return re.sub(r"\s+", " ", title).strip().casefold()


_KNOWN_TITLES = {
    _normalise(title)
    for variants in QUESTION_SHEET_TITLES.values()
    for title in variants
}


def is_question_sheet_title(title: str, extra_titles: Iterable[str] = ()) -> bool:
    """Match a section title against every known question-sheet variant."""
    wanted = _KNOWN_TITLES | {_normalise(t) for t in extra_titles}
    return _normalise(title) in wanted


def normalise_subject(subject: str) -> str:
    return re.sub(r"['\\]", "", subject).strip().upper()


def is_arabic_context(form: SoalFormData) -> bool:
    return form.bahasa == "Bahasa Arab" or normalise_subject(form.mata_pelajaran) in ARABIC_SUBJECTS


def uses_pesantren_sections(form: SoalFormData) -> bool:
    """Pesantren + Arabic context switch the question structure to lettered sections."""
    return form.jenjang == "Pesantren" and is_arabic_context(form)


# ─── Header ────────────────────────────────────────────────────────────────────

_CELL = 'style="border: none; padding: 2px;"'


def _row(left_label: str, left_value: str, right_label: str, right_value: str) -> str:
    return (
        "<tr>"
        f"<td {_CELL}>{left_label}</td><td {_CELL}>:</td><td {_CELL}>{escape(left_value)}</td>"
        f"<td {_CELL}>{right_label}</td><td {_CELL}>:</td><td {_CELL}>{escape(right_value)}</td>"
        "</tr>"
    )


def build_exam_header(form: SoalFormData, pesantren_image_url: Optional[str] = None) -> str:
    """Header fragment for the question sheet."""
    image_url = PESANTREN_HEADER_IMAGE_URL if pesantren_image_url is None else pesantren_image_url
    if form.jenjang == "Pesantren" and image_url:
        return (
            '<div style="text-align: center;">'
            f'<img src="{escape(image_url)}" alt="Kop Surat Pesantren" '
            'style="width: 100%; max-width: 700px; margin: 0 auto;"/>'
            "</div>"
        )

    logo = ""
    if form.logo_sekolah:
        logo = (
            f'<img src="{escape(form.logo_sekolah)}" alt="logo" '
            'style="width: 80px; height: auto; position: absolute; left: 20px;">'
        )

    return (
        '<div style="text-align: center; font-family: \'Times New Roman\', serif; '
        'border-bottom: 3px solid black; padding-bottom: 5px; margin-bottom: 10px;">'
        f"{logo}"
        f'<h3 style="margin: 0; font-size: 14pt; font-weight: bold;">{escape(form.yayasan)}</h3>'
        f'<h2 style="margin: 0; font-size: 18pt; font-weight: bold;">{escape(form.sekolah)}</h2>'
        f'<p style="margin: 0; font-size: 10pt;">{escape(form.alamat_sekolah)}</p>'
        "</div>"
        '<h3 style="text-align: center; font-family: \'Times New Roman\', serif; '
        f'font-weight: bold; margin-top: 20px;">{escape(form.judul_asesmen)}</h3>'
        '<table style="width: 100%; border-collapse: collapse; '
        'font-family: \'Times New Roman\', serif; margin-top: 15px; font-size: 11pt;"><tbody>'
        + _row("Mata Pelajaran", form.mata_pelajaran, "Tanggal", form.tanggal_ujian)
        + _row("Kelas/Semester", f"{form.kelas} / {form.semester_label}", "Jam Ke-", form.jam_ke)
        + _row("Tahun Ajaran", form.tahun_ajaran, "Waktu", form.waktu_ujian)
        + "</tbody></table>"
    )


# ─── Signature ─────────────────────────────────────────────────────────────────

def build_signature_block(form: SoalFormData) -> str:
    label = SIGNATURE_LABELS.get(form.bahasa, SIGNATURE_LABELS["Bahasa Indonesia"])
    return (
        '<div style="margin-top: 40px; overflow: auto;">'
        '<div style="float: right; text-align: center; width: 250px;">'
        f"<p>{label}</p><br/><br/><br/>"
        f'<p style="font-weight: bold; text-decoration: underline;">{escape(form.nama_guru)}</p>'
        "</div></div>"
    )
