"""
Shared FastAPI dependencies for the generation routers.

One GenerationClient lives for the whole process so an API-key swap made
through /admin/api-key is seen by every call started afterwards.
"""

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException

from generation.error_messages import describe_generation_error
from generation.gpt_client import GenerationClient
from generation.orchestrator import GenerationOrchestrator

log = logging.getLogger("generation.pipeline")

_client = GenerationClient()


def get_generation_client() -> GenerationClient:
    return _client


def get_orchestrator(client: GenerationClient = Depends(get_generation_client)) -> GenerationOrchestrator:
    return GenerationOrchestrator(client)


def get_user_name(x_user_name: Optional[str] = Header(None)) -> Optional[str]:
    """Teacher name sent by the web client; activity is only logged when present."""
    if x_user_name is None:
        return None
    return x_user_name.strip() or None


def generation_http_error(error: Exception, tag: str) -> HTTPException:
    """Translate a failure that escaped the orchestrator into an HTTPException."""
    if isinstance(error, RuntimeError) and "OPENAI_API_KEY" in str(error):
        log.error(f"[{tag}] {error}")
        return HTTPException(status_code=500, detail=str(error))
    status_code, message = describe_generation_error(error)
    log.error(f"[{tag}] failed ({status_code}): {type(error).__name__}: {error}")
    return HTTPException(status_code=status_code, detail=message)
