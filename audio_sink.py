"""
Clickonome - Audio Sink
Sample-accurate voice mixing against a frame-counting audio clock.

A sink exposes the monotonic clock capability (now / resume) and accepts
buffers scheduled to start at an exact future clock time.
"""

import threading
from typing import Optional

import numpy as np

from logging_utils import log_event
from tempo_clock import SystemClock


class Voice:
    __slots__ = ("samples", "start_frame", "pos", "gain")

    def __init__(self, samples: np.ndarray, start_frame: int, gain: float = 1.0):
        self.samples = samples
        self.start_frame = start_frame
        self.pos = 0
        self.gain = float(gain)


class VoiceMixer:
    """
    Polyphonic one-shot mixer. Time is the number of frames rendered so far,
    so a voice scheduled for time T starts exactly at frame T * sample_rate.
    render() runs on the audio thread; schedule() and now() on the caller's.
    """

    def __init__(self, sample_rate: int):
        self.sample_rate = int(sample_rate)
        self._frame = 0
        self._voices: list[Voice] = []
        self._lock = threading.Lock()

    def now(self) -> float:
        with self._lock:
            return self._frame / self.sample_rate

    @property
    def active_voices(self) -> int:
        with self._lock:
            return len(self._voices)

    def schedule(self, samples: np.ndarray, start_time: float, gain: float = 1.0) -> None:
        if samples is None or len(samples) == 0:
            return
        start_frame = int(round(start_time * self.sample_rate))
        voice = Voice(np.asarray(samples, dtype=np.float32), start_frame, gain)
        with self._lock:
            self._voices.append(voice)

    def cancel_unstarted(self) -> int:
        """Drop voices that have not produced a sample yet; returns how many."""
        with self._lock:
            keep = [v for v in self._voices if v.pos > 0]
            dropped = len(self._voices) - len(keep)
            self._voices = keep
        return dropped

    def render(self, frames: int) -> np.ndarray:
        mix = np.zeros(frames, dtype=np.float32)
        with self._lock:
            block_start = self._frame
            block_end = block_start + frames
            alive = []
            for v in self._voices:
                if v.start_frame >= block_end:
                    alive.append(v)
                    continue
                # Late voices (start already passed) begin at the top of the block
                offset = max(0, v.start_frame - block_start) if v.pos == 0 else 0
                take = min(frames - offset, len(v.samples) - v.pos)
                if take > 0:
                    mix[offset:offset + take] += v.samples[v.pos:v.pos + take] * v.gain
                    v.pos += take
                if v.pos < len(v.samples):
                    alive.append(v)
            self._voices = alive
            self._frame = block_end
        return mix


class NullAudioSink:
    """Silent sink on the system monotonic clock, used when no output device opens."""

    def __init__(self, sample_rate: int = 44100, clock: Optional[SystemClock] = None):
        self.sample_rate = int(sample_rate)
        self._clock = clock or SystemClock()
        self.scheduled_count = 0
        self.volume = 1.0

    def now(self) -> float:
        return self._clock.now()

    def resume(self) -> None:
        self._clock.resume()

    def schedule(self, samples: np.ndarray, start_time: float, gain: float = 1.0) -> None:
        self.scheduled_count += 1
        log_event("DEBUG", "NullSink", "Buffer dropped", start=f"{start_time:.3f}", frames=len(samples))

    def cancel_unstarted(self) -> int:
        return 0

    def set_volume(self, volume: float) -> None:
        self.volume = max(0.0, min(1.0, float(volume)))

    def close(self) -> None:
        pass
