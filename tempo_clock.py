"""
Clickonome - Tempo Clock
Beat interval math plus the monotonic clock used when no audio device drives time.
"""

import math
import time

from config import NOTE_VALUES
from logging_utils import log_event


def seconds_per_beat(bpm: float, note_value: int) -> float:
    """Interval between beats. note_value 8 halves the quarter-note interval, 16 quarters it."""
    if not bpm > 0 or not math.isfinite(bpm):
        raise ValueError(f"bpm must be a positive number, got {bpm!r}")
    if not note_value > 0:
        raise ValueError(f"note value must be positive, got {note_value!r}")
    return (60.0 / bpm) * (4.0 / note_value)


class SystemClock:
    """Monotonic clock backed by time.perf_counter (seconds)."""

    def now(self) -> float:
        return time.perf_counter()

    def resume(self) -> None:
        # Always running
        pass


class TempoClock:
    """
    Holds bpm, beats per bar and note value.
    Setters reject invalid input and keep the last valid value; range clamping
    to 40-220 bpm is the caller's job, any positive bpm is accepted here.
    """

    def __init__(self, bpm: float = 120, beats_per_bar: int = 4, note_value: int = 4):
        self.bpm = 120.0
        self.beats_per_bar = 4
        self.note_value = 4
        self.set_bpm(bpm)
        self.set_beats_per_bar(beats_per_bar)
        self.set_note_value(note_value)

    @property
    def seconds_per_beat(self) -> float:
        return seconds_per_beat(self.bpm, self.note_value)

    def beat_time(self, origin: float, beat_number: int) -> float:
        """Absolute time of beat N counted from origin under the current tempo."""
        return origin + beat_number * self.seconds_per_beat

    def set_bpm(self, bpm) -> bool:
        try:
            value = float(bpm)
        except (TypeError, ValueError):
            value = float('nan')
        if not value > 0 or not math.isfinite(value):
            log_event("WARN", "TempoClock", "Rejected bpm", bpm=bpm, keeping=self.bpm)
            return False
        self.bpm = value
        return True

    def set_beats_per_bar(self, beats) -> bool:
        if isinstance(beats, bool) or not isinstance(beats, int) or beats < 1:
            log_event("WARN", "TempoClock", "Rejected beats per bar", beats=beats, keeping=self.beats_per_bar)
            return False
        self.beats_per_bar = beats
        return True

    def set_note_value(self, note_value) -> bool:
        if note_value not in NOTE_VALUES:
            log_event("WARN", "TempoClock", "Rejected note value", note_value=note_value, keeping=self.note_value)
            return False
        self.note_value = int(note_value)
        return True
