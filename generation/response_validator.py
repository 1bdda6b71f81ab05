"""
Response Validator

Turns the raw text returned by the generative service into an ordered list of
section records. Accepted shapes:

  {"sections": [{"id": ..., "title": ..., "content": ...}, ...]}
  [{"title": ..., "content": ...}, ...]

Parsing order:
  1. strict json.loads of the whole text
  2. first bracket span ([...] or {...}) after stripping markdown fences
  3. json_repair on that span (truncated output)
  4. a single diagnostic section embedding the raw text

Nothing here raises: the caller always gets something it can render.
"""

import html
import json
import logging
import re
from typing import Any, List, Optional

import json_repair
from pydantic import TypeAdapter, ValidationError

from generation.schemas import (
    MalformedResponse,
    SectionRecord,
    SectionsEnvelope,
    ValidationResult,
    ValidResponse,
)

log = logging.getLogger("generation.pipeline")

DIAGNOSTIC_TITLE = "Gagal Memproses Respons AI"

_section_list = TypeAdapter(List[SectionRecord])


# ─── Shape matching ────────────────────────────────────────────────────────────

def _match_shape(data: Any) -> List[SectionRecord]:
    """Validate parsed JSON against either accepted shape. Raises ValueError."""
    if isinstance(data, dict):
        records = SectionsEnvelope.model_validate(data).sections
    elif isinstance(data, list):
        records = _section_list.validate_python(data)
    else:
        raise ValueError(f"expected object or array, got {type(data).__name__}")
    if not records:
        raise ValueError("payload contains no sections")
    return records


# ─── JSON extraction ───────────────────────────────────────────────────────────

def _strip_fences(raw: str) -> str:
    raw = raw.strip()
    raw = re.sub(r"^```(?:json)?\s*", "", raw, flags=re.MULTILINE)
    raw = re.sub(r"\s*```$", "", raw, flags=re.MULTILINE)
    return raw


def _bracket_spans(raw: str) -> List[str]:
    """Candidate spans, the kind whose opening bracket comes first tried first."""
    spans = []
    for open_ch, close_ch in (("[", "]"), ("{", "}")):
        start = raw.find(open_ch)
        if start == -1:
            continue
        end = raw.rfind(close_ch)
        # A truncated payload may have no closing bracket at all
        span = raw[start:end + 1] if end > start else raw[start:]
        spans.append((start, span))
    spans.sort(key=lambda item: item[0])
    return [span for _, span in spans]


def _diagnostic(raw: str, error: str) -> MalformedResponse:
    content = (
        "<p>Respons dari AI tidak dapat diproses sebagai dokumen terstruktur. "
        "Silakan generate ulang. Teks asli ditampilkan di bawah ini.</p>"
        f"<pre style=\"white-space: pre-wrap;\">{html.escape(raw)}</pre>"
    )
    record = SectionRecord(title=DIAGNOSTIC_TITLE, content=content)
    return MalformedResponse(sections=[record], raw=raw, error=error)


# ─── Main entry ────────────────────────────────────────────────────────────────

def parse_sections(raw: Optional[str]) -> ValidationResult:
    """
    Parse `raw` into a ValidResponse, or a MalformedResponse carrying one
    diagnostic section. Never raises.
    """
    raw = raw or ""
    errors: List[str] = []

    try:
        return ValidResponse(sections=_match_shape(json.loads(raw.strip())))
    except (ValueError, ValidationError, RecursionError) as e:
        errors.append(f"strict: {e}")

    for span in _bracket_spans(_strip_fences(raw)):
        try:
            return ValidResponse(sections=_match_shape(json.loads(span)))
        except (ValueError, ValidationError, RecursionError) as e:
            errors.append(f"span: {e}")
        try:
            return ValidResponse(sections=_match_shape(json_repair.loads(span)))
        except Exception as e:
            errors.append(f"repair: {e}")

    error = "; ".join(errors)[:500]
    log.warning(f"[VALIDATOR] malformed response ({len(raw)} chars): {error[:200]}")
    return _diagnostic(raw, error)


def sections_or_diagnostic(raw: Optional[str]) -> List[SectionRecord]:
    """Shortcut for callers that only need the list."""
    return parse_sections(raw).sections
