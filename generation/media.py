"""
Binary payload helpers for the image, audio and video paths.

The service returns media as base64 strings. Images and videos are handed to
the browser as data URLs; speech comes back as raw 16-bit little-endian PCM
and is decoded into normalised float frames (sample / 32768).
"""

import base64
import binascii
import re
from typing import Tuple

import numpy as np

PCM_SAMPLE_RATE = 24000
PCM_CHANNELS = 1

_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


def decode_base64(data: str) -> bytes:
    """Decode a base64 string, tolerating missing padding and data-URL prefixes."""
    match = _DATA_URL.match(data.strip())
    if match:
        data = match.group("data")
    data = "".join(data.split())
    data += "=" * (-len(data) % 4)
    try:
        return base64.b64decode(data, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e


def encode_base64(payload: bytes) -> str:
    return base64.b64encode(payload).decode("ascii")


def to_data_url(b64_data: str, mime_type: str) -> str:
    return f"data:{mime_type};base64,{b64_data}"


def split_data_url(value: str, default_mime: str = "image/png") -> Tuple[str, str]:
    """Return (mime_type, base64_data). Plain base64 gets `default_mime`."""
    match = _DATA_URL.match(value.strip())
    if match:
        return match.group("mime"), match.group("data")
    return default_mime, value.strip()


def decode_pcm16(pcm: bytes, num_channels: int = PCM_CHANNELS) -> np.ndarray:
    """
    Decode interleaved 16-bit little-endian PCM into float32 frames.

    Returns an array of shape (num_channels, frame_count) with every sample
    divided by 32768.0, so values lie in [-1.0, 1.0). A trailing partial
    sample or partial frame is dropped.
    """
    if num_channels < 1:
        raise ValueError("num_channels must be >= 1")
    usable = len(pcm) - (len(pcm) % 2)
    samples = np.frombuffer(pcm[:usable], dtype="<i2")
    frame_count = len(samples) // num_channels
    samples = samples[: frame_count * num_channels]
    frames = samples.astype(np.float32) / 32768.0
    return frames.reshape(frame_count, num_channels).T
