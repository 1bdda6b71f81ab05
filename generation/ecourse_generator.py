"""
E-course prompt and slide-block post-processing.

The model returns a single section ("ecourse_package"). Slide markup inside
<!-- SLIDE_CONTENT_START --> ... <!-- SLIDE_CONTENT_END --> is wrapped into a
presentation container so the front end can page through it.
"""

from generation.schemas import EcourseFormData

ECOURSE_TEMPERATURE = 0.7
ECOURSE_THINKING_BUDGET = 16384

SLIDE_START = "<!-- SLIDE_CONTENT_START -->"
SLIDE_END = "<!-- SLIDE_CONTENT_END -->"


ECOURSE_PROMPT = """Anda adalah seorang *Instructional Designer* ahli. Tugas Anda adalah merancang dan membuat E-Course lengkap berdasarkan data berikut.

**Data E-Course:**
- Topik Utama: "{topik}"
- Jumlah Pertemuan/Modul: {jumlah_pertemuan}
- Nama Pengajar: {nama_guru}

**Tugas:**
Generate paket E-Course yang komprehensif dalam format JSON. Root object harus memiliki properti "sections" yang berisi sebuah array dengan SATU objek di dalamnya. Objek ini harus memiliki: "id" (string: "ecourse_package"), "title" (string: "Paket E-Course Lengkap: {topik}"), dan "content" (string HTML).

**Struktur Konten HTML dalam "content":**
1. **Silabus & Rencana Pembelajaran (Learning Path)**:
   - Judul, Deskripsi Singkat, Tujuan Pembelajaran Umum, Target Audiens.
   - Tabel Rencana Pembelajaran: Nomor Pertemuan, Judul Materi, Aktivitas (Materi, Latihan, Kuis), Estimasi Waktu.
2. **Materi Pembelajaran per Pertemuan**:
   - Buat H3 untuk setiap pertemuan (Contoh: "<h3>Pertemuan 1: Judul Materi</h3>").
   - Untuk setiap pertemuan sertakan: Tujuan Pembelajaran Khusus (<ul>), Materi Utama, Latihan / Studi Kasus, Evaluasi / Kuis.
3. **Konten Slide Presentasi (PPT)**:
   - Awali dengan `{slide_start}` dan akhiri dengan `{slide_end}`.
   - Setiap slide: `<div class="ppt-slide"><h4 class="slide-title">Judul Slide</h4><div class="slide-content">...</div></div>`.
   - Buat beberapa slide yang merangkum semua pertemuan.

**Aturan Penting:**
- Gunakan tag HTML standar (<h1>, <h2>, <h3>, <p>, <ul>, <li>, <table>, <strong>).
- Pastikan seluruh output adalah satu string HTML yang valid di dalam properti "content".
"""


def build_ecourse_prompt(form: EcourseFormData) -> str:
    return ECOURSE_PROMPT.format(
        topik=form.topik_ecourse,
        jumlah_pertemuan=form.jumlah_pertemuan,
        nama_guru=form.nama_guru,
        slide_start=SLIDE_START,
        slide_end=SLIDE_END,
    )


def wrap_slide_content(html: str) -> str:
    """Replace the marked slide block with a ppt-container div. No markers, no change."""
    start = html.find(SLIDE_START)
    end = html.find(SLIDE_END)
    if start == -1 or end == -1 or end < start:
        return html
    slides = html[start + len(SLIDE_START):end]
    wrapped = f'<div class="ppt-container"><h2>Konten Slide Presentasi</h2>{slides}</div>'
    return html[:start] + wrapped + html[end + len(SLIDE_END):]
