"""
Administrative packet prompts (Kurikulum Merdeka).

One request produces six documents, in this order:
ATP analysis, Prota, Promes, N Modul Ajar, KKTP, daily teaching journal.
Also hosts the free-text AI assistant prompts (CP elements, topic ideas).
"""

from generation.schemas import AdminFormData, SuggestionRequest

ADMIN_TEMPERATURE = 0.7
ADMIN_THINKING_BUDGET = 8192


ADMIN_PROMPT = """Anda adalah asisten ahli untuk guru di Indonesia. Buatkan dokumen administrasi guru lengkap sesuai Kurikulum Merdeka.

**Data:**
- Jenjang: {jenjang}
- Kelas: {kelas}
- Fase: {fase}
- Mata Pelajaran: {mata_pelajaran}
- Elemen CP: {cp_elements}
- Alokasi Waktu: {alokasi_waktu}
- Jumlah Modul Ajar yang dibuat: {jumlah_modul_ajar}
- Sekolah: {sekolah}
- Guru: {nama_guru}
- Tahun Ajaran: {tahun_ajaran}
- Semester: {semester}
- Bahasa: {bahasa}

**Tugas:**
Generate dokumen berikut dalam format JSON. Setiap dokumen harus menjadi objek dalam array 'sections', dengan 'id', 'title', dan 'content' (dalam format HTML).
1. **Analisis CP, TP, dan ATP**: Buat tabel ATP yang runut.
2. **Program Tahunan (Prota)**: Buat tabel Prota.
3. **Program Semester (Promes)**: Buat tabel Promes.
4. **{jumlah_modul_ajar} Modul Ajar**: Buat modul ajar lengkap sesuai jumlah yang diminta.
5. **KKTP (Kriteria Ketercapaian Tujuan Pembelajaran)**: Buat tabel KKTP.
6. **Jurnal Harian Guru**: Buat format tabel jurnal harian yang siap diisi.

**Aturan Format:**
- Root object harus memiliki properti "sections" yang berisi array, dengan urutan dokumen seperti di atas.
- Setiap objek section harus memiliki: "id" (string unik, misal "atp"), "title" (string, misal "Analisis CP, TP, dan ATP"), "content" (string HTML).
- Gunakan tag HTML standar untuk format (<table>, <thead>, <tbody>, <tr>, <th>, <td>, <h3>, <p>, <ul>, <li>).
- Untuk bahasa Arab, gunakan <p style="text-align:right; direction:rtl;">.
"""


CP_SUGGESTION_PROMPT = (
    "Buat daftar Elemen Capaian Pembelajaran (CP) untuk mata pelajaran {mata_pelajaran}, "
    "jenjang {jenjang}, kelas {kelas}, fase {fase}. Sajikan dalam format Markdown dengan poin-poin."
)

TOPIC_SUGGESTION_PROMPT = (
    "Berikan daftar ide Topik/Materi Pembelajaran yang relevan untuk mata pelajaran {mata_pelajaran}, "
    "jenjang {jenjang}, kelas {kelas}, fase {fase} untuk semester {semester}. "
    "Sajikan dalam format Markdown dengan poin-poin."
)


def build_admin_prompt(form: AdminFormData) -> str:
    return ADMIN_PROMPT.format(
        jenjang=form.jenjang,
        kelas=form.kelas,
        fase=form.fase,
        mata_pelajaran=form.mata_pelajaran,
        cp_elements=form.cp_elements,
        alokasi_waktu=form.alokasi_waktu,
        jumlah_modul_ajar=form.jumlah_modul_ajar,
        sekolah=form.sekolah,
        nama_guru=form.nama_guru,
        tahun_ajaran=form.tahun_ajaran,
        semester=form.semester_label,
        bahasa=form.bahasa,
    )


def build_cp_prompt(request: SuggestionRequest) -> str:
    return CP_SUGGESTION_PROMPT.format(**request.model_dump())


def build_topic_prompt(request: SuggestionRequest) -> str:
    return TOPIC_SUGGESTION_PROMPT.format(**request.model_dump())
