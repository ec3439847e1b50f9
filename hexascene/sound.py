"""Software audio mixer: mono samples panned in 2D or positioned in 3D around a listener."""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Generic, Optional, TypeVar

import numpy as np

from .vecmath import normalize
from .wav import load_wav

AUDIO_RATE = 48000
MIX_SAMPLES = 1024
RAMP_STEP = MIX_SAMPLES / AUDIO_RATE
DEFAULT_RAMP = 1.0 / 60.0
_PI = 3.1415926

T = TypeVar("T")


def _copy_value(value):
    if isinstance(value, (np.ndarray, list, tuple)):
        return np.array(value, dtype=float)
    return float(value)


@dataclass
class Ramp(Generic[T]):
    """A value that moves smoothly toward a target over ``ramp`` seconds."""

    value: T
    target: Optional[T] = None
    ramp: float = 0.0

    def __post_init__(self) -> None:
        self.value = _copy_value(self.value)
        self.target = _copy_value(self.value if self.target is None else self.target)

    def set(self, value: T, ramp: float) -> None:
        """Set a new target; a non-positive ramp time jumps there immediately."""
        if ramp <= 0.0:
            self.value = _copy_value(value)
            self.target = _copy_value(value)
            self.ramp = 0.0
        else:
            self.target = _copy_value(value)
            self.ramp = ramp


@dataclass
class Sample:
    """Mono 48 kHz floating-point audio."""

    data: np.ndarray

    def __post_init__(self) -> None:
        self.data = np.asarray(self.data, dtype=np.float32)

    @classmethod
    def from_file(cls, filename) -> Sample:
        """Load a sample from a '.wav' file."""
        if Path(filename).name.endswith(".wav"):
            return cls(load_wav(filename))
        raise ValueError(f"Sample '{filename}' doesn't end in \".wav\" -- unsure how to load.")


class PlayingSample:
    """Playback state of one sample; use the setters, which take the mixer's lock."""

    def __init__(
        self,
        sample: Sample,
        volume: float = 1.0,
        *,
        pan: float = math.nan,
        position=None,
        half_volume_radius: float = math.nan,
        loop: bool = False,
        lock: Optional[threading.RLock] = None,
    ) -> None:
        self.data = sample.data
        self.i = 0
        self.loop = loop
        self.stopping = False
        self.stopped = False
        self.volume: Ramp[float] = Ramp(volume)
        self.pan: Ramp[float] = Ramp(pan)
        self.position: Ramp[np.ndarray] = Ramp(
            np.full(3, math.nan) if position is None else position
        )
        self.half_volume_radius: Ramp[float] = Ramp(half_volume_radius)
        self._lock = lock if lock is not None else threading.RLock()

    @property
    def is_3d(self) -> bool:
        return math.isnan(self.pan.value)

    def set_volume(self, new_volume: float, ramp: float = DEFAULT_RAMP) -> None:
        with self._lock:
            if not self.stopping:
                self.volume.set(new_volume, ramp)

    def set_pan(self, new_pan: float, ramp: float = DEFAULT_RAMP) -> None:
        """Change panning; ignored for samples playing in 3D."""
        if self.is_3d:
            return
        with self._lock:
            self.pan.set(new_pan, ramp)

    def set_position(self, new_position, ramp: float = DEFAULT_RAMP) -> None:
        """Move the source; ignored for samples playing in 2D."""
        if not self.is_3d:
            return
        with self._lock:
            self.position.set(new_position, ramp)

    def set_half_volume_radius(self, new_radius: float, ramp: float = DEFAULT_RAMP) -> None:
        """Change the half-volume distance; ignored for samples playing in 2D."""
        if not self.is_3d:
            return
        with self._lock:
            self.half_volume_radius.set(new_radius, ramp)

    def stop(self, ramp: float = DEFAULT_RAMP) -> None:
        """Fade out over ``ramp`` seconds, then drop from the mixer."""
        with self._lock:
            if not (self.stopping or self.stopped):
                self.stopping = True
                self.volume.target = 0.0
                self.volume.ramp = ramp
            else:
                self.volume.ramp = min(self.volume.ramp, ramp)


class Listener:
    """Position and right-pointing unit vector used to pan 3D samples."""

    def __init__(self, lock: Optional[threading.RLock] = None) -> None:
        self.position: Ramp[np.ndarray] = Ramp(np.zeros(3))
        self.right: Ramp[np.ndarray] = Ramp(np.array([1.0, 0.0, 0.0]))
        self._lock = lock if lock is not None else threading.RLock()

    def set_position_right(self, new_position, new_right, ramp: float = DEFAULT_RAMP) -> None:
        with self._lock:
            self.position.set(new_position, ramp)
            right = np.asarray(new_right, dtype=float)
            if not right.any():
                self.right.set(np.array([1.0, 0.0, 0.0]), ramp)
            else:
                self.right.set(normalize(right), ramp)


def compute_pan_weights(pan: float) -> tuple[float, float]:
    """Equal-power (left, right) weights for pan in [-1, 1]."""
    pan = max(-1.0, min(1.0, pan))
    angle = 0.5 * _PI * (0.5 * (pan + 1.0))
    return math.cos(angle), math.sin(angle)


def compute_pan_from_listener_and_position(
    listener_position, listener_right, source_position, source_half_radius: float
) -> tuple[float, float]:
    """(left, right) weights for a source, including linear distance attenuation."""
    to = np.asarray(source_position, dtype=float) - np.asarray(listener_position, dtype=float)
    distance = float(np.linalg.norm(to))
    if distance == 0.0:
        return math.sqrt(2.0), math.sqrt(2.0)
    amount = float(np.dot(np.asarray(listener_right, dtype=float), to)) / distance
    angle = 0.5 * _PI * (0.5 * (amount + 1.0))
    attenuation = 1.0 / (1.0 + distance / source_half_radius)
    return math.cos(angle) * attenuation, math.sin(angle) * attenuation


def step_value_ramp(ramp: Ramp) -> None:
    """Advance a scalar ramp by one mix period."""
    if ramp.ramp < RAMP_STEP:
        ramp.value = ramp.target
        ramp.ramp = 0.0
    else:
        ramp.value += (RAMP_STEP / ramp.ramp) * (ramp.target - ramp.value)
        ramp.ramp -= RAMP_STEP


def step_position_ramp(ramp: Ramp) -> None:
    """Advance a position ramp by one mix period (linear interpolation)."""
    if ramp.ramp < RAMP_STEP:
        ramp.value = np.array(ramp.target, dtype=float)
        ramp.ramp = 0.0
    else:
        t = RAMP_STEP / ramp.ramp
        ramp.value = ramp.value * (1.0 - t) + ramp.target * t
        ramp.ramp -= RAMP_STEP


def step_direction_ramp(ramp: Ramp) -> None:
    """Advance a unit-direction ramp by one mix period, rotating toward the target."""
    if ramp.ramp < RAMP_STEP:
        ramp.value = np.array(ramp.target, dtype=float)
        ramp.ramp = 0.0
        return
    target = np.asarray(ramp.target, dtype=float)
    value = np.asarray(ramp.value, dtype=float)
    norm = np.cross(value, target)
    if not norm.any():
        if target[0] <= target[1] and target[0] <= target[2]:
            norm = np.array([1.0, 0.0, 0.0])
        elif target[1] <= target[2]:
            norm = np.array([0.0, 1.0, 0.0])
        else:
            norm = np.array([0.0, 0.0, 1.0])
        norm = norm - target * float(np.dot(target, norm))
    norm = normalize(norm)
    perp = np.cross(norm, target)
    angle = math.acos(max(-1.0, min(1.0, float(np.dot(value, target)))))
    angle *= (ramp.ramp - RAMP_STEP) / ramp.ramp
    ramp.value = target * math.cos(angle) + perp * math.sin(angle)
    ramp.ramp -= RAMP_STEP


class Mixer:
    """Mixes all playing samples into stereo blocks of MIX_SAMPLES frames."""

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.volume: Ramp[float] = Ramp(1.0)
        self.listener = Listener(self.lock)
        self.playing_samples: list[PlayingSample] = []

    def _add(self, playing: PlayingSample) -> PlayingSample:
        with self.lock:
            self.playing_samples.append(playing)
        return playing

    def play(self, sample: Sample, volume: float = 1.0, pan: float = 0.0) -> PlayingSample:
        """Play a sample once with 2D panning (-1 hard left, 1 hard right)."""
        return self._add(PlayingSample(sample, volume, pan=pan, lock=self.lock))

    def play_3d(self, sample: Sample, volume: float, position,
                half_volume_radius: float = math.inf) -> PlayingSample:
        """Play a sample once, panned by its position relative to the listener."""
        return self._add(PlayingSample(
            sample, volume, position=position,
            half_volume_radius=half_volume_radius, lock=self.lock,
        ))

    def loop(self, sample: Sample, volume: float = 1.0, pan: float = 0.0) -> PlayingSample:
        """Play a sample repeatedly with 2D panning."""
        return self._add(PlayingSample(sample, volume, pan=pan, loop=True, lock=self.lock))

    def loop_3d(self, sample: Sample, volume: float, position,
                half_volume_radius: float = math.inf) -> PlayingSample:
        """Play a sample repeatedly in 3D."""
        return self._add(PlayingSample(
            sample, volume, position=position,
            half_volume_radius=half_volume_radius, loop=True, lock=self.lock,
        ))

    def stop_all_samples(self) -> None:
        with self.lock:
            for playing in self.playing_samples:
                playing.stop()

    def set_volume(self, new_volume: float, ramp: float = DEFAULT_RAMP) -> None:
        with self.lock:
            self.volume.set(new_volume, ramp)

    def _weights(self, playing: PlayingSample, position, right) -> np.ndarray:
        if playing.is_3d:
            return np.array(compute_pan_from_listener_and_position(
                position, right, playing.position.value, playing.half_volume_radius.value
            ))
        return np.array(compute_pan_weights(playing.pan.value))

    def _mix_one(self, playing: PlayingSample, out: np.ndarray, start, end) -> bool:
        start_volume, start_position, start_right = start
        end_volume, end_position, end_right = end

        start_pan = self._weights(playing, start_position, start_right)
        if playing.is_3d:
            step_position_ramp(playing.position)
            step_value_ramp(playing.half_volume_radius)
        else:
            step_value_ramp(playing.pan)
        start_pan *= start_volume * playing.volume.value

        step_value_ramp(playing.volume)

        end_pan = self._weights(playing, end_position, end_right)
        end_pan *= end_volume * playing.volume.value

        length = len(playing.data)
        if length == 0 or playing.i >= length:
            return False
        if playing.loop:
            count = MIX_SAMPLES
            indices = (playing.i + np.arange(count)) % length
            next_i = (playing.i + count) % length
        else:
            count = min(MIX_SAMPLES, length - playing.i)
            indices = playing.i + np.arange(count)
            next_i = playing.i + count

        pan_step = (end_pan - start_pan) / MIX_SAMPLES
        pans = start_pan[None, :] + np.arange(count)[:, None] * pan_step[None, :]
        out[:count] += pans * playing.data[indices].astype(np.float64)[:, None]
        playing.i = next_i

        finished = playing.i >= length or (playing.stopping and playing.volume.value == 0.0)
        return not finished

    def mix(self) -> np.ndarray:
        """Produce the next block of stereo audio as a (MIX_SAMPLES, 2) float32 array."""
        out = np.zeros((MIX_SAMPLES, 2))
        with self.lock:
            start = (
                self.volume.value,
                np.array(self.listener.position.value, dtype=float),
                np.array(self.listener.right.value, dtype=float),
            )
            step_value_ramp(self.volume)
            step_position_ramp(self.listener.position)
            step_direction_ramp(self.listener.right)
            end = (
                self.volume.value,
                np.array(self.listener.position.value, dtype=float),
                np.array(self.listener.right.value, dtype=float),
            )
            remaining = []
            for playing in self.playing_samples:
                if self._mix_one(playing, out, start, end):
                    remaining.append(playing)
                else:
                    playing.stopped = True
            self.playing_samples[:] = remaining
        return out.astype(np.float32)