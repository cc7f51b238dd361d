"""
Clickonome - Waveform Store
Decoded beat/accent sounds. Missing sounds are a valid state: the dispatcher
falls back to a synthesized click.
"""

import io
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import numpy as np
import soundfile as sf
from scipy.signal import resample_poly

from logging_utils import log_event, log_exception


class WaveformRole(Enum):
    BEAT = "beat"
    ACCENT = "accent"


class DecodeError(Exception):
    """Raised when raw bytes cannot be turned into a playable waveform."""


@dataclass
class Waveform:
    """Mono float32 samples already at the output sample rate"""
    samples: np.ndarray
    sample_rate: int
    name: str = ""

    @property
    def duration(self) -> float:
        return len(self.samples) / float(self.sample_rate)


def resample_to(samples: np.ndarray, src_sr: int, dst_sr: int) -> np.ndarray:
    if src_sr == dst_sr:
        return samples.astype(np.float32, copy=False)
    g = np.gcd(src_sr, dst_sr)
    return resample_poly(samples, dst_sr // g, src_sr // g).astype(np.float32)


def decode_audio(raw_bytes: bytes, target_rate: int, name: str = "") -> Waveform:
    """Decode an in-memory wav/ogg/flac/mp3 file to a mono Waveform at target_rate."""
    if not raw_bytes:
        raise DecodeError("empty audio data")
    try:
        data, sr = sf.read(io.BytesIO(bytes(raw_bytes)), dtype='float32', always_2d=False)
    except (sf.LibsndfileError, RuntimeError, TypeError, ValueError) as e:
        raise DecodeError(f"unsupported or corrupt audio: {e}") from e

    data = np.asarray(data, dtype=np.float32)
    if data.ndim == 2:
        data = data.mean(axis=1)
    if data.size == 0:
        raise DecodeError("audio contains no frames")

    return Waveform(resample_to(data, int(sr), int(target_rate)), int(target_rate), name)


class WaveformStore:
    """
    Holds at most one Waveform per role.
    Slots are written by load() (possibly on a decode thread) and read by the
    dispatcher at trigger time, so access goes through a lock.
    """

    def __init__(self, sample_rate: int,
                 decoder: Callable[[bytes, int, str], Waveform] = decode_audio):
        self.sample_rate = int(sample_rate)
        self._decoder = decoder
        self._slots: dict[WaveformRole, Optional[Waveform]] = {
            WaveformRole.BEAT: None,
            WaveformRole.ACCENT: None,
        }
        self._lock = threading.Lock()

    def get(self, role: WaveformRole) -> Optional[Waveform]:
        with self._lock:
            return self._slots[role]

    def has(self, role: WaveformRole) -> bool:
        return self.get(role) is not None

    def clear(self, role: WaveformRole) -> None:
        with self._lock:
            self._slots[role] = None
        log_event("INFO", "Waveforms", "Cleared", role=role.value)

    def load(self, role: WaveformRole, raw_bytes: bytes, name: Optional[str] = None) -> bool:
        """Decode and install a waveform. On failure the previous one stays; never raises."""
        try:
            waveform = self._decoder(raw_bytes, self.sample_rate, name or "")
        except DecodeError as e:
            log_event("WARN", "Waveforms", "Decode failed, keeping previous sound",
                      role=role.value, name=name, error=e)
            return False
        except Exception as e:
            log_exception("Waveforms", "Unexpected decode error", e, role=role.value, name=name)
            return False

        with self._lock:
            self._slots[role] = waveform
        log_event("INFO", "Waveforms", "Loaded", role=role.value, name=name,
                  duration=f"{waveform.duration:.3f}s")
        return True

    def load_async(self, role: WaveformRole, raw_bytes: bytes,
                   on_done: Optional[Callable[[WaveformRole, bool], None]] = None,
                   name: Optional[str] = None) -> threading.Thread:
        """Decode on a worker thread; on_done(role, ok) is called from that thread."""
        def worker():
            ok = self.load(role, raw_bytes, name)
            if on_done:
                on_done(role, ok)

        thread = threading.Thread(target=worker, name=f"decode-{role.value}", daemon=True)
        thread.start()
        return thread
