"""
Shared OpenAI helper for the generation pipeline.

Used by:
  - orchestrator.py  (every outbound call, wrapped in the retry policy)

GenerationClient is passed explicitly instead of living in a module global.
The API key is read every time a logical call starts; when it changes the
SDK client is rebuilt, and a call already in flight keeps the client it
started with.

Models (override with env vars):
  GPT_MODEL            text + structured output  (gpt-4o-mini)
  GPT_REASONING_MODEL  extended reasoning mode   (o4-mini)
  IMAGE_MODEL          image generation/edit     (gpt-image-1)
  TTS_MODEL / TTS_VOICE speech synthesis         (gpt-4o-mini-tts / coral)
  TRANSCRIBE_MODEL     speech-to-text            (gpt-4o-mini-transcribe)
  VIDEO_MODEL          video generation          (sora-2)
  SEARCH_MODEL         web-grounded answers      (gpt-4o-mini-search-preview)
"""

import os
from typing import Any, Callable, Dict, List, Optional, Tuple

from openai import AsyncOpenAI

from generation.schemas import GenerationRequest

# ── Model config ───────────────────────────────────────────────────────────────
GPT_MODEL = os.getenv("GPT_MODEL", "gpt-4o-mini")
GPT_REASONING_MODEL = os.getenv("GPT_REASONING_MODEL", "o4-mini")
IMAGE_MODEL = os.getenv("IMAGE_MODEL", "gpt-image-1")
TTS_MODEL = os.getenv("TTS_MODEL", "gpt-4o-mini-tts")
TTS_VOICE = os.getenv("TTS_VOICE", "coral")
TRANSCRIBE_MODEL = os.getenv("TRANSCRIBE_MODEL", "gpt-4o-mini-transcribe")
VIDEO_MODEL = os.getenv("VIDEO_MODEL", "sora-2")
SEARCH_MODEL = os.getenv("SEARCH_MODEL", "gpt-4o-mini-search-preview")

DEFAULT_SYSTEM = (
    "You are an expert assistant for Indonesian teachers. Output only what is asked."
)

VIDEO_SIZES = {"16:9": "1280x720", "9:16": "720x1280"}


def _default_client_factory(api_key: str, base_url: Optional[str]) -> AsyncOpenAI:
    # Retries belong to RetryPolicy alone; the SDK sends each attempt once
    return AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0)


class GenerationClient:
    """Credential-aware provider of the async SDK client."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        client_factory: Optional[Callable[[str, Optional[str]], Any]] = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url or os.getenv("OPENAI_BASE_URL") or None
        self._factory = client_factory or _default_client_factory
        self._client: Any = None
        self._client_key: Optional[str] = None

    def set_api_key(self, api_key: Optional[str]) -> None:
        """Swap the credential. Takes effect for calls started afterwards."""
        self._api_key = api_key or None

    def resolve_api_key(self) -> str:
        api_key = self._api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise RuntimeError(
                "OPENAI_API_KEY is not set. Add it to your .env file."
            )
        return api_key

    def sdk(self) -> Any:
        """SDK client for the current credential (rebuilt when the key changed)."""
        api_key = self.resolve_api_key()
        if self._client is None or api_key != self._client_key:
            self._client = self._factory(api_key, self._base_url)
            self._client_key = api_key
        return self._client


# ─── Text / structured output ──────────────────────────────────────────────────

def build_completion_kwargs(request: GenerationRequest) -> Dict[str, Any]:
    """Chat Completions arguments for one GenerationRequest."""
    kwargs: Dict[str, Any] = {
        "model": request.model,
        "messages": [
            {"role": "system", "content": request.system or DEFAULT_SYSTEM},
            {"role": "user", "content": request.prompt},
        ],
    }
    if request.use_thinking:
        # Reasoning models take an effort level instead of a temperature; the
        # token budget has to cover the hidden reasoning as well.
        kwargs["reasoning_effort"] = "high"
        kwargs["max_completion_tokens"] = request.max_tokens + request.thinking_budget
    else:
        if request.temperature is not None:
            kwargs["temperature"] = request.temperature
        kwargs["max_completion_tokens"] = request.max_tokens
    if request.response_schema is not None:
        kwargs["response_format"] = {
            "type": "json_schema",
            "json_schema": {
                "name": f"{request.task}_sections",
                "schema": request.response_schema,
                "strict": True,
            },
        }
    return kwargs


async def call_gpt(sdk: Any, request: GenerationRequest) -> str:
    """Run one Chat Completions call and return the assistant message text."""
    response = await sdk.chat.completions.create(**build_completion_kwargs(request))
    return response.choices[0].message.content or ""


async def call_vision(
    sdk: Any,
    images: List[Tuple[str, str]],
    prompt: str,
    model: Optional[str] = None,
) -> str:
    """Prompt over one or more images given as (base64, mime_type) pairs."""
    parts: List[Dict[str, Any]] = [
        {"type": "image_url", "image_url": {"url": f"data:{mime};base64,{data}"}}
        for data, mime in images
    ]
    parts.append({"type": "text", "text": prompt})
    response = await sdk.chat.completions.create(
        model=model or GPT_MODEL,
        messages=[{"role": "user", "content": parts}],
    )
    return response.choices[0].message.content or ""


# ─── Images ────────────────────────────────────────────────────────────────────

async def create_image(sdk: Any, prompt: str, size: str = "1024x1024") -> Optional[str]:
    """Return the base64 PNG of the first generated image, or None."""
    response = await sdk.images.generate(model=IMAGE_MODEL, prompt=prompt, size=size, n=1)
    for item in response.data or []:
        if getattr(item, "b64_json", None):
            return item.b64_json
    return None


async def edit_image(sdk: Any, image: bytes, mime_type: str, prompt: str) -> Optional[str]:
    extension = mime_type.split("/")[-1] or "png"
    response = await sdk.images.edit(
        model=IMAGE_MODEL,
        image=(f"input.{extension}", image, mime_type),
        prompt=prompt,
    )
    for item in response.data or []:
        if getattr(item, "b64_json", None):
            return item.b64_json
    return None


# ─── Audio ─────────────────────────────────────────────────────────────────────

async def synthesize_speech(sdk: Any, text: str) -> bytes:
    """Raw 24 kHz mono 16-bit little-endian PCM."""
    response = await sdk.audio.speech.create(
        model=TTS_MODEL,
        voice=TTS_VOICE,
        input=text,
        instructions="Speak with a friendly and clear female Indonesian voice.",
        response_format="pcm",
    )
    return response.content


async def transcribe(sdk: Any, audio: bytes, filename: str) -> str:
    response = await sdk.audio.transcriptions.create(
        model=TRANSCRIBE_MODEL,
        file=(filename, audio),
    )
    return response.text


# ─── Video ─────────────────────────────────────────────────────────────────────

async def create_video(
    sdk: Any,
    prompt: str,
    aspect_ratio: str,
    reference: Optional[Tuple[bytes, str]] = None,
) -> Any:
    kwargs: Dict[str, Any] = {
        "model": VIDEO_MODEL,
        "prompt": prompt,
        "size": VIDEO_SIZES.get(aspect_ratio, VIDEO_SIZES["16:9"]),
    }
    if reference is not None:
        data, mime = reference
        kwargs["input_reference"] = (f"reference.{mime.split('/')[-1]}", data, mime)
    return await sdk.videos.create(**kwargs)


async def retrieve_video(sdk: Any, video_id: str) -> Any:
    return await sdk.videos.retrieve(video_id)


# ─── Grounded search ───────────────────────────────────────────────────────────

async def web_search(sdk: Any, query: str) -> Any:
    """Search-grounded completion. Citations arrive as message annotations."""
    return await sdk.chat.completions.create(
        model=SEARCH_MODEL,
        web_search_options={},
        messages=[{"role": "user", "content": query}],
    )
