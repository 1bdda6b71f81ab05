"""
Pydantic schemas for the generation pipeline.

Layer 1: form records submitted by the teacher (admin packet, question bank,
         e-course) and media requests (image, audio, video, grounded search).
Layer 2: internal pipeline types (GenerationRequest, validator variants).
Layer 3: output types returned to the caller (GeneratedSection and friends).
"""

from typing import List, Optional, Dict, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


ModuleType = Literal["admin", "soal", "ecourse"]


# ─── Layer 1: Form records ────────────────────────────────────────────────────

class BaseFormData(BaseModel):
    """Fields shared by every document family."""
    jenjang: str = Field(..., description="School level, e.g. SD | SMP | SMA | MA | Pesantren")
    kelas: str
    semester: str = Field("1", description="'1' = Ganjil, '2' = Genap")
    mata_pelajaran: str
    sekolah: str = ""
    tahun_ajaran: str = ""
    nama_guru: str = ""
    bahasa: str = "Bahasa Indonesia"
    use_thinking_mode: bool = False

    @property
    def semester_label(self) -> str:
        return "Ganjil" if str(self.semester).strip() == "1" else "Genap"


class AdminFormData(BaseFormData):
    """Administrative packet: ATP, Prota, Promes, Modul Ajar, KKTP, journal."""
    fase: str = ""
    cp_elements: str = ""
    alokasi_waktu: str = ""
    jumlah_modul_ajar: int = Field(1, ge=1, le=20)


class PesantrenSection(BaseModel):
    """One lettered section of a pesantren exam (Alif, Ba, Jim, ...)."""
    letter: str
    count: int = Field(..., ge=0)
    instruction: str = ""


class SoalFormData(BaseFormData):
    """Question bank request with the question-type mix and exam header."""
    topik_materi: str = ""
    tingkat_kesulitan: str = "Sedang"
    jumlah_soal_total: int = Field(20, ge=0)
    jenis_soal: List[str] = Field(default_factory=lambda: ["Pilihan Ganda", "Uraian"])
    jumlah_pg: int = Field(0, ge=0)
    jumlah_uraian: int = Field(0, ge=0)
    jumlah_isian_singkat: int = Field(0, ge=0)

    sertakan_kisi_kisi: bool = False
    sertakan_soal_tka: bool = False
    jumlah_soal_tka: int = Field(0, ge=0)
    sertakan_soal_tka_uraian: bool = False
    jumlah_soal_tka_uraian: int = Field(0, ge=0)
    kelompok_tka: Literal["saintek", "soshum"] = "saintek"

    soal_pesantren_sections: List[PesantrenSection] = Field(default_factory=list)

    # Exam header customisation
    yayasan: str = ""
    alamat_sekolah: str = ""
    logo_sekolah: str = Field("", description="Logo as a data URL")
    judul_asesmen: str = ""
    tanggal_ujian: str = ""
    jam_ke: str = ""
    waktu_ujian: str = ""


class EcourseFormData(BaseModel):
    """E-course request. Only the topic and meeting count drive the prompt."""
    topik_ecourse: str = Field(..., min_length=1)
    jumlah_pertemuan: int = Field(4, ge=1, le=30)
    nama_guru: str = ""
    use_thinking_mode: bool = False


class SuggestionRequest(BaseModel):
    """AI assistant input for CP element / topic suggestions."""
    jenjang: str
    kelas: str
    mata_pelajaran: str
    fase: str = ""
    semester: str = "1"


# ─── Layer 1: Media requests ──────────────────────────────────────────────────

class ImagePrompt(BaseModel):
    prompt: str = Field(..., min_length=1)
    size: str = "1024x1024"


class ImageEditRequest(BaseModel):
    image_base64: str
    mime_type: str = "image/png"
    prompt: str = Field(..., min_length=1)


class ImageAnalysisRequest(ImageEditRequest):
    pass


class SpeechRequest(BaseModel):
    text: str = Field(..., min_length=1)


class VideoFrame(BaseModel):
    data: str
    mime_type: str = "image/jpeg"


class VideoRequest(BaseModel):
    prompt: str = Field(..., min_length=1)
    image: Optional[VideoFrame] = None
    aspect_ratio: Literal["16:9", "9:16"] = "16:9"


class VideoFramesRequest(BaseModel):
    frames: List[VideoFrame] = Field(..., min_length=1)
    prompt: str = Field(..., min_length=1)


class GeoLocation(BaseModel):
    latitude: float
    longitude: float


class GroundedSearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    tool: Literal["web", "maps"] = "web"
    location: Optional[GeoLocation] = None


# ─── Layer 2: Internal pipeline types ─────────────────────────────────────────

class GenerationRequest(BaseModel):
    """One outbound call to the generative service. Never mutated once issued."""
    model_config = ConfigDict(frozen=True)

    task: str
    model: str
    prompt: str
    system: Optional[str] = None
    response_schema: Optional[Dict[str, Any]] = None
    temperature: Optional[float] = None
    use_thinking: bool = False
    thinking_budget: int = 0
    max_tokens: int = 16384


class SectionRecord(BaseModel):
    """Shape of one section as the model returns it. `id` is optional."""
    id: Optional[str] = None
    title: str
    content: str

    @field_validator("id", mode="before")
    @classmethod
    def _scalar_id(cls, value: Any) -> Optional[str]:
        # Any scalar id is kept as text; anything else is dropped and reassigned later
        if isinstance(value, (str, int, float)):
            return str(value)
        return None

    @field_validator("title", "content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class SectionsEnvelope(BaseModel):
    sections: List[SectionRecord]


# ─── Layer 3: Output types ────────────────────────────────────────────────────

class GeneratedSection(BaseModel):
    """One titled block of generated HTML."""
    id: str
    title: str
    content: str


class ValidResponse(BaseModel):
    """Validator result when the payload matched an accepted shape."""
    kind: Literal["valid"] = "valid"
    sections: List[SectionRecord]


class MalformedResponse(BaseModel):
    """Validator result when nothing usable could be parsed.

    `sections` always holds exactly one diagnostic section embedding `raw`.
    """
    kind: Literal["malformed"] = "malformed"
    sections: List[SectionRecord]
    raw: str
    error: str


ValidationResult = Union[ValidResponse, MalformedResponse]


class GenerationResponse(BaseModel):
    """Router response for the document families."""
    module_type: ModuleType
    history_id: Optional[int] = None
    sections: List[GeneratedSection]


class SuggestionResponse(BaseModel):
    markdown: str


class ImageResult(BaseModel):
    data_url: str


class TextResult(BaseModel):
    text: str


class SpeechResult(BaseModel):
    """Decoded speech: one float list per channel, normalised to [-1, 1)."""
    sample_rate: int
    channels: int
    frame_count: int
    samples: List[List[float]]
    pcm_base64: str


class GroundingSource(BaseModel):
    uri: str
    title: str = ""


class GroundedSearchResult(BaseModel):
    text: str
    sources: List[GroundingSource] = Field(default_factory=list)


class VideoOperation(BaseModel):
    """Long-running video job as reported by the service."""
    id: str
    status: str
    progress: Optional[int] = None
    done: bool = False
    error: Optional[str] = None


# ─── Structured output contract ───────────────────────────────────────────────
# JSON schema sent with every document-family request (strict mode).

SECTIONS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "sections": {
            "type": "array",
            "description": "An array of generated document sections.",
            "items": {
                "type": "object",
                "properties": {
                    "id": {
                        "type": "string",
                        "description": "Unique identifier for the section (e.g. 'atp', 'naskah_soal').",
                    },
                    "title": {"type": "string", "description": "The title of the generated section."},
                    "content": {"type": "string", "description": "The full HTML content of the section."},
                },
                "required": ["id", "title", "content"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["sections"],
    "additionalProperties": False,
}
