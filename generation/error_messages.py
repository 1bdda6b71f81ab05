"""
Caller-side error classification for user-facing messages.

Separate from retry_policy.is_transient: this one decides what
the teacher reads after automatic retries are over, and it does not treat
rate limiting (429 / RESOURCE_EXHAUSTED) as "server busy".
"""

from typing import Tuple

MSG_PERMISSION = "Izin akses ditolak."
MSG_BUSY = (
    "Server AI sedang sibuk setelah beberapa kali percobaan otomatis. "
    "Mohon coba lagi nanti."
)
MSG_GENERIC = "Terjadi kesalahan saat generate. Silakan coba lagi."


def describe_generation_error(error: BaseException) -> Tuple[int, str]:
    """Map an error that escaped the retry policy to (HTTP status, message)."""
    text = f"{type(error).__name__}: {error}".lower()
    if "permission denied" in text:
        return 403, MSG_PERMISSION
    if "503" in text or "unavailable" in text:
        return 503, MSG_BUSY
    return 502, MSG_GENERIC
