"""
Question bank (paket asesmen) prompts and post-processing.

Sections requested, in order:
  Naskah Soal, [Kisi-kisi Soal], Kunci Jawaban & Pembahasan,
  Analisis Soal Kualitatif, Rubrik Penilaian, Ringkasan Materi

The question structure comes from the type mix (PG / Uraian / Isian Singkat,
plus TKA-level questions) or, for pesantren exams in an Arabic context, from
the teacher's lettered sections.

After validation the exam header is spliced on top of the question sheet and
the signature block under every other section.
"""

import logging
from typing import List, Tuple

from generation.document_templates import (
    QUESTION_SHEET_TITLES,
    build_exam_header,
    build_signature_block,
    is_question_sheet_title,
    normalise_subject,
    uses_pesantren_sections,
)
from generation.schemas import GeneratedSection, SoalFormData

log = logging.getLogger("generation.pipeline")

SOAL_TEMPERATURE = 0.5
SOAL_THINKING_BUDGET = 8192


# ─── Section plan ──────────────────────────────────────────────────────────────

SECTION_DESCRIPTIONS = {
    "naskah_soal": "Konten naskah soal lengkap sesuai struktur yang diminta.",
    "kisi_kisi": (
        "Buat tabel kisi-kisi soal yang mencakup: No, Capaian Pembelajaran, Materi Pokok, "
        "Kelas/Semester, Indikator Soal, Level Kognitif (C1-C6), Bentuk Soal, dan Nomor Soal."
    ),
    "kunci_jawaban": (
        "Berikan kunci jawaban untuk PG dan Uraian. Yang terpenting, SERTAKAN PEMBAHASAN/PENJELASAN "
        "yang detail untuk SETIAP SOAL, agar siswa bisa belajar dari kesalahan."
    ),
    "analisis_kualitatif": (
        "Buat analisis kualitatif dalam bentuk tabel. Kolom tabel mencakup: No. Soal, Aspek yang "
        "Dianalisis (Materi, Konstruksi, Bahasa), Keterangan (Sesuai/Tidak Sesuai), dan "
        "Catatan/Tindak Lanjut. Analisis ini untuk memastikan kualitas soal."
    ),
    "rubrik_penilaian": (
        "Buat rubrik penilaian yang jelas. Untuk Pilihan Ganda, berikan skor per soal (misal, skor 1 "
        "jika benar, 0 jika salah). Untuk Uraian, buat rubrik penilaian detail per soal dengan kriteria "
        "dan rentang skor (contoh: Skor 0-5 berdasarkan ketepatan konsep, kelengkapan jawaban, dan alur "
        "berpikir). Sertakan juga pedoman perhitungan nilai akhir."
    ),
    "ringkasan_materi": (
        "Buat ringkasan materi yang padat dan jelas dari topik yang diujikan. Ringkasan ini harus "
        "membantu siswa mereview materi sebelum ujian."
    ),
}


def plan_sections(form: SoalFormData) -> List[Tuple[str, str]]:
    """(id, title) pairs in document order."""
    sheet_title = QUESTION_SHEET_TITLES.get(form.bahasa, QUESTION_SHEET_TITLES["Bahasa Indonesia"])[0]
    sections = [
        ("naskah_soal", sheet_title),
        ("kunci_jawaban", "Kunci Jawaban & Pembahasan"),
        ("analisis_kualitatif", "Analisis Soal Kualitatif"),
        ("rubrik_penilaian", "Rubrik Penilaian"),
        ("ringkasan_materi", "Ringkasan Materi"),
    ]
    if form.sertakan_kisi_kisi:
        sections.insert(1, ("kisi_kisi", "Kisi-kisi Soal"))
    return sections


# ─── Question structure ────────────────────────────────────────────────────────

def build_structure_lines(form: SoalFormData) -> List[str]:
    """One instruction line per question block, in exam order."""
    if uses_pesantren_sections(form):
        return [
            f'- Bagian {s.letter}: Buat {s.count} soal sesuai perintah: "{s.instruction}"'
            for s in form.soal_pesantren_sections
        ]

    pg, uraian, isian = [], [], []
    if "Pilihan Ganda" in form.jenis_soal and form.jumlah_pg > 0:
        pg.append(f"{form.jumlah_pg} soal pilihan ganda biasa")
    if form.sertakan_soal_tka and form.jumlah_soal_tka > 0:
        pg.append(f"{form.jumlah_soal_tka} soal Pilihan Ganda level TKA ({form.kelompok_tka})")
    if "Uraian" in form.jenis_soal and form.jumlah_uraian > 0:
        uraian.append(f"{form.jumlah_uraian} soal uraian biasa")
    if form.sertakan_soal_tka_uraian and form.jumlah_soal_tka_uraian > 0:
        uraian.append(f"{form.jumlah_soal_tka_uraian} soal Uraian level TKA ({form.kelompok_tka})")
    if "Isian Singkat" in form.jenis_soal and form.jumlah_isian_singkat > 0:
        isian.append(f"{form.jumlah_isian_singkat} soal isian singkat")

    lines = []
    if pg:
        lines.append(
            f"- Bagian Pilihan Ganda: Buat {' dan '.join(pg)}. Gabungkan semua soal pilihan ganda "
            'dalam satu bagian berlabel "A. Pilihan Ganda" dengan penomoran yang berurutan.'
        )
    if uraian:
        lines.append(
            f"- Bagian Uraian: Buat {' dan '.join(uraian)}. Gabungkan semua soal uraian dalam satu "
            'bagian berlabel "B. Uraian" dengan penomoran yang berurutan, melanjutkan dari bagian sebelumnya.'
        )
    if isian:
        lines.append(
            f"- Bagian Isian Singkat: Buat {' dan '.join(isian)}. Gabungkan dalam satu bagian berlabel "
            '"C. Isian Singkat", melanjutkan penomoran dari bagian sebelumnya.'
        )
    return lines


INSYA_INSTRUCTION = (
    "**Instruksi Khusus Mapel Insya':** Fokus soal adalah pada **penerapan** kaidah Nahwu/Sharaf "
    "(Qawaid) dalam membuat kalimat atau menjawab pertanyaan, BUKAN menguji teori. Contoh: Soal \"Jim\" "
    "meminta siswa menyusun kata menjadi kalimat sempurna yang menuntut penerapan i'rab, atau soal "
    "\"Ba\" yang jawabannya memerlukan penggunaan struktur kalimat tertentu."
)


# ─── Prompt ────────────────────────────────────────────────────────────────────

SOAL_PROMPT = """Anda adalah AI pembuat soal ujian ahli. Buatkan paket asesmen lengkap berdasarkan data berikut.

**Data:**
- Jenjang: {jenjang}
- Kelas: {kelas}
- Mata Pelajaran: {mata_pelajaran}
- Topik/Materi: {topik_materi}
- Tingkat Kesulitan: {tingkat_kesulitan}
- Bahasa: {bahasa}

**Struktur Soal yang Diminta:**
{structure}
{special_instruction}

**Tugas:**
Generate dokumen-dokumen berikut dalam format JSON. Setiap dokumen harus menjadi objek dalam array 'sections', dengan 'id', 'title', dan 'content' (dalam format HTML).
{section_prompts}

**Aturan Format:**
- Root object harus memiliki properti "sections" yang berisi array, dengan urutan dokumen seperti di atas.
- Setiap objek section harus memiliki: "id" (string unik: {section_ids}), "title" (gunakan judul persis seperti di atas), "content" (string HTML).
- JANGAN menulis kop/header ujian maupun blok tanda tangan guru; keduanya ditambahkan otomatis oleh sistem.
- Gunakan tag HTML standar. Untuk soal pilihan ganda, gunakan format <ol type='A'>.
- Untuk bahasa Arab, pastikan teks rata kanan dan arah RTL. Gunakan <div dir="rtl" style="text-align: right;"> untuk membungkus konten Arab.
"""


def build_soal_prompt(form: SoalFormData) -> str:
    sections = plan_sections(form)
    section_prompts = "\n".join(
        f"{i}. **{title}**: {SECTION_DESCRIPTIONS[section_id]}"
        for i, (section_id, title) in enumerate(sections, start=1)
    )
    special = INSYA_INSTRUCTION if normalise_subject(form.mata_pelajaran) == "INSYA" else ""
    return SOAL_PROMPT.format(
        jenjang=form.jenjang,
        kelas=form.kelas,
        mata_pelajaran=form.mata_pelajaran,
        topik_materi=form.topik_materi,
        tingkat_kesulitan=form.tingkat_kesulitan,
        bahasa=form.bahasa,
        structure="\n".join(build_structure_lines(form)),
        special_instruction=special,
        section_prompts=section_prompts,
        section_ids=", ".join(f'"{section_id}"' for section_id, _ in sections),
    )


# ─── Post-processing ───────────────────────────────────────────────────────────

def apply_exam_template(sections: List[GeneratedSection], form: SoalFormData) -> List[GeneratedSection]:
    """
    Prepend the exam header to the first question-sheet section and append the
    signature block to every other section. Order is preserved. When no title
    matches, sections come back untouched.
    """
    sheet_index = next(
        (i for i, s in enumerate(sections) if is_question_sheet_title(s.title)),
        None,
    )
    if sheet_index is None:
        log.warning(
            f"[SOAL] no question-sheet section among {[s.title for s in sections]}; "
            "header and signature not applied"
        )
        return sections

    header = build_exam_header(form)
    signature = build_signature_block(form)
    result = []
    for i, section in enumerate(sections):
        if i == sheet_index:
            content = header + section.content
        else:
            content = section.content + signature
        result.append(section.model_copy(update={"content": content}))
    return result
