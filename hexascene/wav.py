"""Loading WAV files as 48 kHz floating-point mono audio."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from pathlib import Path

import numpy as np

logger = logging.getLogger(__name__)

AUDIO_RATE = 48000

_FORMAT_PCM = 0x0001
_FORMAT_FLOAT = 0x0003
_FORMAT_EXTENSIBLE = 0xFFFE


@dataclass(frozen=True)
class _Format:
    tag: int
    channels: int
    rate: int
    bits: int


def _parse_format(body: bytes) -> _Format:
    if len(body) < 16:
        raise ValueError("format chunk is too short")
    tag, channels, rate, _byte_rate, _block_align, bits = struct.unpack_from("<HHIIHH", body)
    if tag == _FORMAT_EXTENSIBLE:
        if len(body) < 26:
            raise ValueError("extensible format chunk is too short")
        (tag,) = struct.unpack_from("<H", body, 24)
    return _Format(tag, channels, rate, bits)


def _split_chunks(raw: bytes) -> tuple[_Format, bytes]:
    if len(raw) < 12 or raw[:4] != b"RIFF" or raw[8:12] != b"WAVE":
        raise ValueError("not a RIFF/WAVE file")
    fmt = None
    data = None
    offset = 12
    while offset + 8 <= len(raw):
        chunk_id, size = struct.unpack_from("<4sI", raw, offset)
        body = raw[offset + 8: offset + 8 + size]
        if chunk_id == b"fmt ":
            fmt = _parse_format(body)
        elif chunk_id == b"data":
            data = body
        offset += 8 + size + (size & 1)
    if fmt is None:
        raise ValueError("missing format chunk")
    if data is None:
        raise ValueError("missing data chunk")
    return fmt, data


def _decode(fmt: _Format, payload: bytes) -> np.ndarray:
    if fmt.channels == 0:
        raise ValueError("zero channels")
    if fmt.rate == 0:
        raise ValueError("zero sample rate")
    if fmt.bits % 8 != 0 or fmt.bits == 0:
        raise ValueError(f"unsupported bit depth {fmt.bits}")
    frame = fmt.bits // 8 * fmt.channels
    payload = payload[: len(payload) - len(payload) % frame]

    if fmt.tag == _FORMAT_PCM:
        if fmt.bits == 8:
            samples = (np.frombuffer(payload, dtype=np.uint8).astype(np.float64) - 128.0) / 128.0
        elif fmt.bits == 16:
            samples = np.frombuffer(payload, dtype="<i2").astype(np.float64) / 32768.0
        elif fmt.bits == 24:
            triples = np.frombuffer(payload, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
            values = triples[:, 0] | (triples[:, 1] << 8) | (triples[:, 2] << 16)
            values = np.where(values >= 1 << 23, values - (1 << 24), values)
            samples = values.astype(np.float64) / float(1 << 23)
        elif fmt.bits == 32:
            samples = np.frombuffer(payload, dtype="<i4").astype(np.float64) / float(1 << 31)
        else:
            raise ValueError(f"unsupported PCM bit depth {fmt.bits}")
    elif fmt.tag == _FORMAT_FLOAT:
        if fmt.bits == 32:
            samples = np.frombuffer(payload, dtype="<f4").astype(np.float64)
        elif fmt.bits == 64:
            samples = np.frombuffer(payload, dtype="<f8").astype(np.float64)
        else:
            raise ValueError(f"unsupported float bit depth {fmt.bits}")
    else:
        raise ValueError(f"unsupported sample format {fmt.tag}")

    return samples.reshape(-1, fmt.channels).mean(axis=1)


def _resample(mono: np.ndarray, rate: int) -> np.ndarray:
    if rate == AUDIO_RATE or len(mono) == 0:
        return mono
    count = int(round(len(mono) * AUDIO_RATE / rate))
    times = np.arange(count) * (rate / AUDIO_RATE)
    return np.interp(times, np.arange(len(mono)), mono)


def load_wav(filename) -> np.ndarray:
    """Load a WAV file as 48 kHz float32 mono samples; raises ValueError on bad data."""
    raw = Path(filename).read_bytes()
    try:
        fmt, payload = _split_chunks(raw)
        mono = _decode(fmt, payload)
    except ValueError as err:
        raise ValueError(f"Failed to load WAV file '{filename}'; {err}") from err

    native = (
        fmt.tag == _FORMAT_FLOAT and fmt.bits == 32
        and fmt.channels == 1 and fmt.rate == AUDIO_RATE
    )
    if not native:
        logger.info(
            "WAV file '%s' didn't load as %d Hz, float32, mono; converting.",
            filename, AUDIO_RATE,
        )
    data = _resample(mono, fmt.rate).astype(np.float32)

    low = min(0.0, float(data.min())) if len(data) else 0.0
    high = max(0.0, float(data.max())) if len(data) else 0.0
    logger.info("Range: %g, %g", low, high)
    return data