"""
Clickonome - Beat Dispatcher
Turns one scheduled beat into an audio trigger on the sink plus a visual
notification aligned to the same clock time.
"""

from typing import Callable, Optional

from accent_pattern import Level, volume_for
from logging_utils import log_event, log_exception
from tone_synth import ACCENT_TONE_HZ, BEAT_TONE_HZ, change_rate, click_tone
from waveform_store import WaveformRole, WaveformStore

# Beat sound played faster/higher when an accent is due but no accent sound is loaded
SUBSTITUTE_ACCENT_RATE = 1.5

BeatCallback = Callable[[int, Level], None]


class BeatDispatcher:
    """
    dispatch() never raises: an audio failure is logged and the visual
    notification still fires for that beat.
    """

    def __init__(self, sink, store: WaveformStore, timers):
        self.sink = sink
        self.store = store
        self.timers = timers
        self._on_beat: Optional[BeatCallback] = None
        self._pending: set = set()
        self._tone_cache: dict[float, object] = {}
        self.audio_errors = 0

    def set_on_beat(self, callback: Optional[BeatCallback]) -> None:
        """Register the single visual callback (None unregisters)."""
        self._on_beat = callback

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def dispatch(self, beat_index: int, level: Level, trigger_time: float) -> None:
        if level != Level.MUTE:
            try:
                self._trigger_audio(level, trigger_time)
            except Exception as e:
                self.audio_errors += 1
                log_exception("Dispatcher", "Audio trigger failed, beat is silent", e,
                              beat=beat_index, level=int(level))

        if self._on_beat is not None:
            self._schedule_visual(beat_index, level, trigger_time)

    def _trigger_audio(self, level: Level, trigger_time: float) -> None:
        volume = volume_for(level)
        is_accent = level == Level.STRONG
        accent = self.store.get(WaveformRole.ACCENT) if is_accent else None
        beat = self.store.get(WaveformRole.BEAT)

        if accent is not None:
            self.sink.schedule(accent.samples, trigger_time, volume)
        elif beat is not None:
            samples = beat.samples
            if is_accent:
                samples = change_rate(samples, SUBSTITUTE_ACCENT_RATE)
            self.sink.schedule(samples, trigger_time, volume)
        else:
            freq = ACCENT_TONE_HZ if is_accent else BEAT_TONE_HZ
            self.sink.schedule(self._tone(freq), trigger_time, volume)

    def _tone(self, frequency: float):
        tone = self._tone_cache.get(frequency)
        if tone is None:
            tone = click_tone(frequency, self.sink.sample_rate)
            self._tone_cache[frequency] = tone
        return tone

    def _schedule_visual(self, beat_index: int, level: Level, trigger_time: float) -> None:
        delay = max(0.0, trigger_time - self.sink.now())
        holder = {}

        def fire():
            holder['fired'] = True
            self._pending.discard(holder.get('handle'))
            callback = self._on_beat
            if callback is None:
                return
            try:
                callback(beat_index, level)
            except Exception as e:
                log_exception("Dispatcher", "Beat callback raised", e, beat=beat_index)

        handle = self.timers.call_later(delay, fire)
        holder['handle'] = handle
        if not holder.get('fired'):
            self._pending.add(handle)

    def cancel_pending(self) -> None:
        """Cancel visual notifications not yet fired and audio not yet started."""
        cancelled = len(self._pending)
        for handle in list(self._pending):
            handle.cancel()
        self._pending.clear()
        dropped = self.sink.cancel_unstarted()
        if cancelled or dropped:
            log_event("DEBUG", "Dispatcher", "Cancelled pending beats", visual=cancelled, audio=dropped)
