"""
Generation Orchestrator

For each document family, builds one request, drives it through the retry
policy, validates the raw response and applies family post-processing.

Per call:  Idle → Requesting → (Retrying ⇄ Requesting)* → Validating
           → Succeeded | Failed

Families:
  admin     administrative packet          (structured, 6+ sections)
  soal      question bank                  (structured, header/signature splice)
  ecourse   e-course package               (structured, slide wrapping)
  cp/topic  AI assistant suggestions       (free text)
  image / speech / transcription / video / grounded search

Terminal errors from the retry policy propagate unchanged; user-facing
wording is the caller's job (generation.error_messages).
"""

import enum
import logging
import time
from typing import Any, Awaitable, Callable, List, Optional, Tuple, TypeVar

from generation import gpt_client
from generation.admin_generator import (
    ADMIN_TEMPERATURE,
    ADMIN_THINKING_BUDGET,
    build_admin_prompt,
    build_cp_prompt,
    build_topic_prompt,
)
from generation.ecourse_generator import (
    ECOURSE_TEMPERATURE,
    ECOURSE_THINKING_BUDGET,
    build_ecourse_prompt,
    wrap_slide_content,
)
from generation.gpt_client import GenerationClient
from generation.media import (
    PCM_CHANNELS,
    PCM_SAMPLE_RATE,
    decode_base64,
    decode_pcm16,
    encode_base64,
    to_data_url,
)
from generation.response_validator import parse_sections
from generation.retry_policy import RetryPolicy, RetryState
from generation.schemas import (
    SECTIONS_SCHEMA,
    AdminFormData,
    EcourseFormData,
    GeneratedSection,
    GenerationRequest,
    GroundedSearchResult,
    GroundingSource,
    GeoLocation,
    SectionRecord,
    SoalFormData,
    SpeechResult,
    SuggestionRequest,
    VideoFrame,
    VideoOperation,
)
from generation.soal_generator import (
    SOAL_TEMPERATURE,
    SOAL_THINKING_BUDGET,
    apply_exam_template,
    build_soal_prompt,
)

log = logging.getLogger("generation.pipeline")

T = TypeVar("T")


class GenerationPhase(str, enum.Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    RETRYING = "retrying"
    VALIDATING = "validating"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


PhaseListener = Callable[[str, GenerationPhase], None]


class _CallTrace:
    """Phase bookkeeping for one logical call."""

    def __init__(self, task: str, listener: Optional[PhaseListener]) -> None:
        self.task = task
        self.phase = GenerationPhase.IDLE
        self._listener = listener

    def enter(self, phase: GenerationPhase) -> None:
        log.debug(f"[{self.task.upper()}] {self.phase.value} → {phase.value}")
        self.phase = phase
        if self._listener is not None:
            self._listener(self.task, phase)


def assign_section_ids(records: List[SectionRecord], timestamp_ms: int) -> List[GeneratedSection]:
    """
    Keep ids the model supplied; fill the rest with "<timestamp>-<index>".
    A repeated id within the batch is replaced so ids stay unique.
    """
    seen = set()
    sections = []
    for index, record in enumerate(records):
        section_id = str(record.id).strip() if record.id is not None else ""
        if not section_id or section_id in seen:
            section_id = f"{timestamp_ms}-{index}"
        seen.add(section_id)
        sections.append(GeneratedSection(id=section_id, title=record.title, content=record.content))
    return sections


class GenerationOrchestrator:
    """Stateless between calls; every call owns its own RetryState."""

    def __init__(
        self,
        client: GenerationClient,
        retry_policy: Optional[RetryPolicy] = None,
        clock: Callable[[], float] = time.time,
        on_phase: Optional[PhaseListener] = None,
    ) -> None:
        self._client = client
        self._retry = retry_policy or RetryPolicy()
        self._clock = clock
        self._on_phase = on_phase

    # ─── Plumbing ──────────────────────────────────────────────────────────────

    async def _execute(
        self,
        trace: _CallTrace,
        call: Callable[[Any], Awaitable[T]],
    ) -> T:
        """Run `call(sdk)` under the retry policy with one SDK snapshot."""
        sdk = self._client.sdk()

        def _on_retry(state: RetryState, error: BaseException) -> None:
            trace.enter(GenerationPhase.RETRYING)
            trace.enter(GenerationPhase.REQUESTING)

        trace.enter(GenerationPhase.REQUESTING)
        try:
            return await self._retry.run(lambda: call(sdk), task=trace.task, on_retry=_on_retry)
        except Exception:
            trace.enter(GenerationPhase.FAILED)
            raise

    def _text_request(
        self,
        task: str,
        prompt: str,
        *,
        temperature: Optional[float] = None,
        use_thinking: bool = False,
        thinking_budget: int = 0,
        structured: bool = False,
    ) -> GenerationRequest:
        return GenerationRequest(
            task=task,
            model=gpt_client.GPT_REASONING_MODEL if use_thinking else gpt_client.GPT_MODEL,
            prompt=prompt,
            response_schema=SECTIONS_SCHEMA if structured else None,
            temperature=temperature,
            use_thinking=use_thinking,
            thinking_budget=thinking_budget if use_thinking else 0,
        )

    async def _generate_sections(self, request: GenerationRequest) -> List[GeneratedSection]:
        trace = _CallTrace(request.task, self._on_phase)
        started = time.perf_counter()
        log.info(
            f"[{request.task.upper()}] model={request.model} prompt_len={len(request.prompt)} "
            f"thinking={request.use_thinking}"
        )
        raw = await self._execute(trace, lambda sdk: gpt_client.call_gpt(sdk, request))

        trace.enter(GenerationPhase.VALIDATING)
        result = parse_sections(raw)
        if result.kind == "malformed":
            log.warning(f"[{request.task.upper()}] returning diagnostic section: {result.error[:200]}")
        sections = assign_section_ids(result.sections, int(self._clock() * 1000))

        trace.enter(GenerationPhase.SUCCEEDED)
        log.info(
            f"[{request.task.upper()}] OK: {len(sections)} sections in "
            f"{time.perf_counter() - started:.1f}s"
        )
        return sections

    # ─── Document families ─────────────────────────────────────────────────────

    async def generate_admin(self, form: AdminFormData) -> List[GeneratedSection]:
        request = self._text_request(
            "admin",
            build_admin_prompt(form),
            temperature=ADMIN_TEMPERATURE,
            use_thinking=form.use_thinking_mode,
            thinking_budget=ADMIN_THINKING_BUDGET,
            structured=True,
        )
        return await self._generate_sections(request)

    async def generate_soal(self, form: SoalFormData) -> List[GeneratedSection]:
        request = self._text_request(
            "soal",
            build_soal_prompt(form),
            temperature=SOAL_TEMPERATURE,
            use_thinking=form.use_thinking_mode,
            thinking_budget=SOAL_THINKING_BUDGET,
            structured=True,
        )
        sections = await self._generate_sections(request)
        return apply_exam_template(sections, form)

    async def generate_ecourse(self, form: EcourseFormData) -> List[GeneratedSection]:
        request = self._text_request(
            "ecourse",
            build_ecourse_prompt(form),
            temperature=ECOURSE_TEMPERATURE,
            use_thinking=form.use_thinking_mode,
            thinking_budget=ECOURSE_THINKING_BUDGET,
            structured=True,
        )
        sections = await self._generate_sections(request)
        if sections:
            first = sections[0]
            sections[0] = first.model_copy(update={"content": wrap_slide_content(first.content)})
        return sections

    async def _free_text(self, request: GenerationRequest) -> str:
        trace = _CallTrace(request.task, self._on_phase)
        text = await self._execute(trace, lambda sdk: gpt_client.call_gpt(sdk, request))
        trace.enter(GenerationPhase.SUCCEEDED)
        return text

    async def suggest_cp(self, request: SuggestionRequest) -> str:
        return await self._free_text(self._text_request("cp_suggestion", build_cp_prompt(request)))

    async def suggest_topics(self, request: SuggestionRequest) -> str:
        return await self._free_text(self._text_request("topic_suggestion", build_topic_prompt(request)))

    # ─── Images ────────────────────────────────────────────────────────────────

    async def generate_image(self, prompt: str, size: str = "1024x1024") -> str:
        trace = _CallTrace("image", self._on_phase)
        b64 = await self._execute(trace, lambda sdk: gpt_client.create_image(sdk, prompt, size))
        if not b64:
            trace.enter(GenerationPhase.FAILED)
            raise ValueError("No image generated")
        trace.enter(GenerationPhase.SUCCEEDED)
        return to_data_url(b64, "image/png")

    async def edit_image(self, image_base64: str, mime_type: str, prompt: str) -> str:
        image = decode_base64(image_base64)
        trace = _CallTrace("image_edit", self._on_phase)
        b64 = await self._execute(trace, lambda sdk: gpt_client.edit_image(sdk, image, mime_type, prompt))
        if not b64:
            trace.enter(GenerationPhase.FAILED)
            raise ValueError("No image generated from edit")
        trace.enter(GenerationPhase.SUCCEEDED)
        return to_data_url(b64, "image/png")

    async def analyze_image(self, image_base64: str, mime_type: str, prompt: str) -> str:
        trace = _CallTrace("image_analysis", self._on_phase)
        text = await self._execute(
            trace, lambda sdk: gpt_client.call_vision(sdk, [(image_base64, mime_type)], prompt)
        )
        trace.enter(GenerationPhase.SUCCEEDED)
        return text

    # ─── Audio ─────────────────────────────────────────────────────────────────

    async def text_to_speech(self, text: str) -> SpeechResult:
        trace = _CallTrace("speech", self._on_phase)
        pcm = await self._execute(trace, lambda sdk: gpt_client.synthesize_speech(sdk, text))
        if not pcm:
            trace.enter(GenerationPhase.FAILED)
            raise ValueError("No audio data returned from TTS API.")
        frames = decode_pcm16(pcm, PCM_CHANNELS)
        trace.enter(GenerationPhase.SUCCEEDED)
        return SpeechResult(
            sample_rate=PCM_SAMPLE_RATE,
            channels=PCM_CHANNELS,
            frame_count=frames.shape[1],
            samples=frames.tolist(),
            pcm_base64=encode_base64(pcm),
        )

    async def transcribe_audio(self, audio: bytes, filename: str) -> str:
        trace = _CallTrace("transcription", self._on_phase)
        text = await self._execute(trace, lambda sdk: gpt_client.transcribe(sdk, audio, filename))
        trace.enter(GenerationPhase.SUCCEEDED)
        return text

    # ─── Video ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _to_operation(video: Any) -> VideoOperation:
        status = str(getattr(video, "status", "queued"))
        error = getattr(video, "error", None)
        return VideoOperation(
            id=video.id,
            status=status,
            progress=getattr(video, "progress", None),
            done=status in ("completed", "failed"),
            error=getattr(error, "message", None) if error else None,
        )

    async def generate_video(
        self,
        prompt: str,
        image: Optional[VideoFrame] = None,
        aspect_ratio: str = "16:9",
    ) -> VideoOperation:
        reference: Optional[Tuple[bytes, str]] = None
        if image is not None:
            reference = (decode_base64(image.data), image.mime_type)
        trace = _CallTrace("video", self._on_phase)
        video = await self._execute(
            trace, lambda sdk: gpt_client.create_video(sdk, prompt, aspect_ratio, reference)
        )
        trace.enter(GenerationPhase.SUCCEEDED)
        return self._to_operation(video)

    async def check_video_operation(self, operation_id: str) -> VideoOperation:
        trace = _CallTrace("video_status", self._on_phase)
        video = await self._execute(trace, lambda sdk: gpt_client.retrieve_video(sdk, operation_id))
        trace.enter(GenerationPhase.SUCCEEDED)
        return self._to_operation(video)

    async def analyze_video_frames(self, frames: List[VideoFrame], prompt: str) -> str:
        images = [(frame.data, frame.mime_type) for frame in frames]
        trace = _CallTrace("video_analysis", self._on_phase)
        text = await self._execute(trace, lambda sdk: gpt_client.call_vision(sdk, images, prompt))
        trace.enter(GenerationPhase.SUCCEEDED)
        return text

    # ─── Grounded search ───────────────────────────────────────────────────────

    async def grounded_search(
        self,
        query: str,
        tool: str = "web",
        location: Optional[GeoLocation] = None,
    ) -> GroundedSearchResult:
        if tool == "maps":
            query = f"{query}\n\nCari tempat dan lokasi yang relevan"
            if location is not None:
                query += f" di sekitar koordinat {location.latitude}, {location.longitude}"
            query += ". Sertakan tautan peta untuk setiap tempat."
        trace = _CallTrace("grounded_search", self._on_phase)
        response = await self._execute(trace, lambda sdk: gpt_client.web_search(sdk, query))

        message = response.choices[0].message
        sources = []
        seen = set()
        for annotation in getattr(message, "annotations", None) or []:
            citation = getattr(annotation, "url_citation", None)
            if getattr(annotation, "type", None) != "url_citation" or citation is None:
                continue
            if citation.url in seen:
                continue
            seen.add(citation.url)
            sources.append(GroundingSource(uri=citation.url, title=getattr(citation, "title", "") or ""))
        trace.enter(GenerationPhase.SUCCEEDED)
        return GroundedSearchResult(text=message.content or "", sources=sources)
