"""
Clickonome - Metronome Engine
Composition of tempo clock, accent pattern, waveform store, dispatcher,
scheduler and tap estimator. Constructed once by the application and passed
to whoever needs it.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

from accent_pattern import AccentPattern, Level
from beat_dispatcher import BeatCallback, BeatDispatcher
from config import BPM_MAX, BPM_MIN, BEATS_PER_BAR_MAX, Config
from logging_utils import log_event
from scheduler import LookaheadScheduler
from tap_tempo import TapTempoEstimator
from tempo_clock import TempoClock
from waveform_store import WaveformRole, WaveformStore


@dataclass(frozen=True)
class EngineState:
    bpm: float
    beats_per_bar: int
    note_value: int
    accent_pattern: tuple
    current_beat_index: int
    next_beat_time: float
    is_playing: bool


class MetronomeEngine:
    def __init__(self, sink, timers, config: Optional[Config] = None,
                 store: Optional[WaveformStore] = None):
        config = config or Config()
        met = config.metronome
        sched = config.scheduler

        self.sink = sink
        self.timers = timers
        self.tempo = TempoClock(met.bpm, met.beats_per_bar, met.note_value)
        self.pattern = AccentPattern(met.accent_pattern)
        self.pattern.set_size(self.tempo.beats_per_bar)
        self.store = store or WaveformStore(sink.sample_rate)
        self.dispatcher = BeatDispatcher(sink, self.store, timers)
        self.scheduler = LookaheadScheduler(
            sink, self.tempo, self.pattern, self.dispatcher, timers,
            poll_interval_s=sched.poll_interval_ms / 1000.0,
            schedule_ahead_s=sched.schedule_ahead_s,
            startup_offset_s=sched.startup_offset_s,
        )
        self.tap_estimator = TapTempoEstimator(
            max_taps=config.tap_tempo.max_taps,
            reset_ms=config.tap_tempo.reset_ms,
        )

    # --- Transport ---

    @property
    def is_playing(self) -> bool:
        return self.scheduler.is_playing

    def start(self) -> None:
        self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()

    def toggle(self) -> bool:
        """Start or stop; returns the new playing state."""
        if self.is_playing:
            self.stop()
        else:
            self.start()
        return self.is_playing

    def set_on_beat(self, callback: Optional[BeatCallback]) -> None:
        self.dispatcher.set_on_beat(callback)

    # --- Tempo / time signature ---

    def set_bpm(self, bpm) -> bool:
        return self.tempo.set_bpm(bpm)

    def set_beats_per_bar(self, beats) -> bool:
        """Change bar length; the accent pattern follows and the beat index is clamped."""
        if not self.tempo.set_beats_per_bar(beats):
            return False
        self.pattern.set_size(beats)
        self.scheduler.clamp_beat_index()
        return True

    def set_note_value(self, note_value) -> bool:
        return self.tempo.set_note_value(note_value)

    def tap(self, now_ms: Optional[float] = None) -> Optional[int]:
        """Feed a tap; applies and returns the estimated bpm once two taps are known."""
        if now_ms is None:
            now_ms = time.perf_counter() * 1000.0
        bpm = self.tap_estimator.tap(now_ms)
        if bpm is not None:
            self.tempo.set_bpm(bpm)
            log_event("DEBUG", "TapTempo", "Estimate", bpm=bpm, taps=len(self.tap_estimator.taps))
        return bpm

    # --- Accents ---

    def cycle_accent(self, index: int) -> Optional[Level]:
        try:
            return self.pattern.cycle(index)
        except IndexError:
            log_event("WARN", "Engine", "Accent index out of range", index=index, size=len(self.pattern))
            return None

    def set_accent_pattern(self, levels) -> None:
        """Replace all levels; the pattern is resized to the current bar length."""
        self.pattern.replace(levels)
        self.pattern.set_size(self.tempo.beats_per_bar)

    # --- Sounds ---

    def load_beat_sound(self, raw_bytes: bytes, name: Optional[str] = None) -> bool:
        return self.store.load(WaveformRole.BEAT, raw_bytes, name)

    def load_accent_sound(self, raw_bytes: bytes, name: Optional[str] = None) -> bool:
        return self.store.load(WaveformRole.ACCENT, raw_bytes, name)

    def load_sound_async(self, role: WaveformRole, raw_bytes: bytes,
                         on_done: Optional[Callable[[WaveformRole, bool], None]] = None,
                         name: Optional[str] = None):
        return self.store.load_async(role, raw_bytes, on_done, name)

    # --- Songs / config ---

    def apply_song(self, song) -> bool:
        """Apply a song's tempo preset. Values outside the supported range are clamped."""
        bpm = max(BPM_MIN, min(BPM_MAX, song.bpm))
        beats = max(1, min(BEATS_PER_BAR_MAX, int(song.beats_per_bar)))
        ok = self.set_bpm(bpm)
        ok = self.set_beats_per_bar(beats) and ok
        ok = self.set_note_value(song.note_value) and ok
        log_event("INFO", "Engine", "Song applied", title=song.title, bpm=bpm,
                  signature=f"{beats}/{song.note_value}")
        return ok

    def apply_config(self, config: Config) -> None:
        met = config.metronome
        self.set_bpm(met.bpm)
        self.set_beats_per_bar(met.beats_per_bar)
        self.set_note_value(met.note_value)
        self.set_accent_pattern(met.accent_pattern)

    def export_to_config(self, config: Config) -> None:
        met = config.metronome
        met.bpm = int(round(self.tempo.bpm))
        met.beats_per_bar = self.tempo.beats_per_bar
        met.note_value = self.tempo.note_value
        met.accent_pattern = self.pattern.to_list()

    def state(self) -> EngineState:
        return EngineState(
            bpm=self.tempo.bpm,
            beats_per_bar=self.tempo.beats_per_bar,
            note_value=self.tempo.note_value,
            accent_pattern=tuple(self.pattern),
            current_beat_index=self.scheduler.current_beat_index,
            next_beat_time=self.scheduler.next_beat_time,
            is_playing=self.is_playing,
        )
