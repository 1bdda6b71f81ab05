"""
Media Router: /media and /search

Image, speech, transcription, video and grounded search for the teacher's
media studio. Every call goes through the orchestrator and its retry policy.
"""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from generation.media import decode_base64
from generation.orchestrator import GenerationOrchestrator
from generation.schemas import (
    GroundedSearchRequest,
    GroundedSearchResult,
    ImageAnalysisRequest,
    ImageEditRequest,
    ImagePrompt,
    ImageResult,
    SpeechRequest,
    SpeechResult,
    TextResult,
    VideoFramesRequest,
    VideoOperation,
    VideoRequest,
)
from routers.dependencies import generation_http_error, get_orchestrator

router = APIRouter(tags=["media"])

log = logging.getLogger("generation.pipeline")


def _require_base64(value: str, field: str) -> None:
    try:
        decode_base64(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"{field} bukan data base64 yang valid.")


# ─── Images ────────────────────────────────────────────────────────────────────

@router.post("/media/image", response_model=ImageResult)
async def generate_image(
    request: ImagePrompt,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    try:
        data_url = await orchestrator.generate_image(request.prompt, request.size)
    except Exception as e:
        raise generation_http_error(e, "IMAGE")
    return ImageResult(data_url=data_url)


@router.post("/media/image/edit", response_model=ImageResult)
async def edit_image(
    request: ImageEditRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    _require_base64(request.image_base64, "image_base64")
    try:
        data_url = await orchestrator.edit_image(request.image_base64, request.mime_type, request.prompt)
    except Exception as e:
        raise generation_http_error(e, "IMAGE_EDIT")
    return ImageResult(data_url=data_url)


@router.post("/media/image/analyze", response_model=TextResult)
async def analyze_image(
    request: ImageAnalysisRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    _require_base64(request.image_base64, "image_base64")
    try:
        text = await orchestrator.analyze_image(request.image_base64, request.mime_type, request.prompt)
    except Exception as e:
        raise generation_http_error(e, "IMAGE_ANALYSIS")
    return TextResult(text=text)


# ─── Audio ─────────────────────────────────────────────────────────────────────

@router.post("/media/speech", response_model=SpeechResult)
async def text_to_speech(
    request: SpeechRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """
    Synthesize Indonesian speech.

    Returns the raw PCM (base64) plus the decoded float frames,
    24 kHz mono, ready for an AudioBuffer.
    """
    try:
        return await orchestrator.text_to_speech(request.text)
    except Exception as e:
        raise generation_http_error(e, "SPEECH")


@router.post("/media/transcribe", response_model=TextResult)
async def transcribe_audio(
    file: UploadFile = File(...),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    audio = await file.read()
    if not audio:
        raise HTTPException(status_code=400, detail="File audio kosong.")
    log.info(f"[TRANSCRIPTION] {file.filename} ({len(audio)} bytes)")
    try:
        text = await orchestrator.transcribe_audio(audio, file.filename or "audio.webm")
    except Exception as e:
        raise generation_http_error(e, "TRANSCRIPTION")
    return TextResult(text=text)


# ─── Video ─────────────────────────────────────────────────────────────────────

@router.post("/media/video", response_model=VideoOperation)
async def generate_video(
    request: VideoRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """Start a video job. Poll GET /media/video/{operation_id} until `done`."""
    if request.image is not None:
        _require_base64(request.image.data, "image")
    try:
        return await orchestrator.generate_video(request.prompt, request.image, request.aspect_ratio)
    except Exception as e:
        raise generation_http_error(e, "VIDEO")


@router.get("/media/video/{operation_id}", response_model=VideoOperation)
async def check_video_operation(
    operation_id: str,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    try:
        return await orchestrator.check_video_operation(operation_id)
    except Exception as e:
        raise generation_http_error(e, "VIDEO_STATUS")


@router.post("/media/video/analyze-frames", response_model=TextResult)
async def analyze_video_frames(
    request: VideoFramesRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    for frame in request.frames:
        _require_base64(frame.data, "frames")
    try:
        text = await orchestrator.analyze_video_frames(request.frames, request.prompt)
    except Exception as e:
        raise generation_http_error(e, "VIDEO_ANALYSIS")
    return TextResult(text=text)


# ─── Grounded search ───────────────────────────────────────────────────────────

@router.post("/search/grounded", response_model=GroundedSearchResult)
async def grounded_search(
    request: GroundedSearchRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    try:
        return await orchestrator.grounded_search(request.query, request.tool, request.location)
    except Exception as e:
        raise generation_http_error(e, "GROUNDED_SEARCH")
