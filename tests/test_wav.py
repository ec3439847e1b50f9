import struct
import wave

import numpy as np
import pytest

from hexascene.wav import AUDIO_RATE, load_wav


def _write_pcm16(path, rate, channels, frames):
    with wave.open(str(path), "wb") as w:
        w.setnchannels(channels)
        w.setsampwidth(2)
        w.setframerate(rate)
        w.writeframes(struct.pack(f"<{len(frames)}h", *frames))


def _riff(chunks):
    body = b"WAVE" + b"".join(
        struct.pack("<4sI", cid, len(data)) + data + (b"\0" if len(data) % 2 else b"")
        for cid, data in chunks
    )
    return b"RIFF" + struct.pack("<I", len(body)) + body


def _fmt(tag, channels, rate, bits):
    block = channels * bits // 8
    return struct.pack("<HHIIHH", tag, channels, rate, rate * block, block, bits)


def test_mono_16bit_at_native_rate(tmp_path):
    frames = [0, 16384, -16384, 32767]
    path = tmp_path / "mono.wav"
    _write_pcm16(path, AUDIO_RATE, 1, frames)
    data = load_wav(path)
    assert data.dtype == np.float32
    np.testing.assert_allclose(data, np.array(frames) / 32768.0, rtol=1e-6)


def test_stereo_is_averaged(tmp_path):
    path = tmp_path / "stereo.wav"
    _write_pcm16(path, AUDIO_RATE, 2, [1000, 3000, 2000, 4000])
    data = load_wav(path)
    expected = np.array([(1000 + 3000) / 2, (2000 + 4000) / 2]) / 32768.0
    np.testing.assert_allclose(data, expected, rtol=1e-6)


def test_lower_rate_is_resampled(tmp_path):
    path = tmp_path / "half.wav"
    frames = [100] * 50
    _write_pcm16(path, AUDIO_RATE // 2, 1, frames)
    data = load_wav(path)
    assert len(data) == 2 * len(frames)
    np.testing.assert_allclose(data, np.full(len(data), 100 / 32768.0), rtol=1e-6)


def test_eight_bit_midpoint_is_silence(tmp_path):
    path = tmp_path / "eight.wav"
    with wave.open(str(path), "wb") as w:
        w.setnchannels(1)
        w.setsampwidth(1)
        w.setframerate(AUDIO_RATE)
        w.writeframes(bytes([128, 128, 128]))
    np.testing.assert_array_equal(load_wav(path), np.zeros(3, dtype=np.float32))


def test_float32_round_trip(tmp_path):
    values = [0.25, -0.5, 0.75]
    payload = struct.pack("<3f", *values)
    path = tmp_path / "float.wav"
    path.write_bytes(_riff([(b"fmt ", _fmt(3, 1, AUDIO_RATE, 32)), (b"data", payload)]))
    np.testing.assert_array_equal(load_wav(path), np.array(values, dtype=np.float32))


def test_not_riff_raises(tmp_path):
    path = tmp_path / "bad.wav"
    path.write_bytes(b"this is not audio")
    with pytest.raises(ValueError, match="Failed to load WAV file"):
        load_wav(path)


def test_missing_data_chunk_raises(tmp_path):
    path = tmp_path / "nodata.wav"
    path.write_bytes(_riff([(b"fmt ", _fmt(1, 1, AUDIO_RATE, 16))]))
    with pytest.raises(ValueError, match="missing data chunk"):
        load_wav(path)


def test_unsupported_format_raises(tmp_path):
    path = tmp_path / "alaw.wav"
    path.write_bytes(_riff([(b"fmt ", _fmt(6, 1, AUDIO_RATE, 8)), (b"data", b"\0\0")]))
    with pytest.raises(ValueError, match="unsupported"):
        load_wav(path)