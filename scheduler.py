"""
Clickonome - Lookahead Scheduler
Polls the audio clock on a short repeating timer and commits every beat that
falls inside the lookahead window to the dispatcher, timed against the clock
rather than against the (jittery) poll itself.
"""

from accent_pattern import AccentPattern
from logging_utils import log_event, log_exception
from tempo_clock import TempoClock


class LookaheadScheduler:
    """
    Stopped -> Running -> Stopped.

    All state is touched only from the timer service's thread (polls and UI
    setters interleave, never overlap), so no locking is needed here.
    """

    def __init__(self, clock, tempo: TempoClock, pattern: AccentPattern,
                 dispatcher, timers,
                 poll_interval_s: float = 0.025,
                 schedule_ahead_s: float = 0.1,
                 startup_offset_s: float = 0.05):
        if schedule_ahead_s <= poll_interval_s:
            raise ValueError(
                f"schedule_ahead_s ({schedule_ahead_s}) must exceed poll_interval_s ({poll_interval_s})"
            )
        self.clock = clock
        self.tempo = tempo
        self.pattern = pattern
        self.dispatcher = dispatcher
        self.timers = timers
        self.poll_interval_s = poll_interval_s
        self.schedule_ahead_s = schedule_ahead_s
        self.startup_offset_s = startup_offset_s

        self._playing = False
        self._timer = None
        self._beat_index = 0
        self._next_beat_time = 0.0
        self.dispatched_count = 0

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def current_beat_index(self) -> int:
        return self._beat_index

    @property
    def next_beat_time(self) -> float:
        return self._next_beat_time

    def start(self) -> None:
        if self._playing:
            return

        self.clock.resume()
        self._beat_index = 0
        self._next_beat_time = self.clock.now() + self.startup_offset_s
        self._playing = True
        log_event("INFO", "Scheduler", "Started",
                  bpm=f"{self.tempo.bpm:.1f}",
                  signature=f"{self.tempo.beats_per_bar}/{self.tempo.note_value}")

        self.poll()
        self._timer = self.timers.call_every(self.poll_interval_s, self.poll)

    def stop(self) -> None:
        """Stop polling and cancel anything already committed but not yet heard/seen.
        Position is not rewound here; start() always begins at beat 0."""
        if not self._playing and self._timer is None:
            return
        self._playing = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.dispatcher.cancel_pending()
        log_event("INFO", "Scheduler", "Stopped", dispatched=self.dispatched_count)

    def clamp_beat_index(self) -> None:
        """Called after beats per bar shrinks."""
        if self._beat_index >= self.tempo.beats_per_bar:
            self._beat_index = 0

    def poll(self) -> None:
        if not self._playing:
            return
        horizon = self.clock.now() + self.schedule_ahead_s
        while self._playing and self._next_beat_time < horizon:
            self._schedule_next()

    def _schedule_next(self) -> None:
        index = self._beat_index
        level = self.pattern.level_at(index)
        try:
            self.dispatcher.dispatch(index, level, self._next_beat_time)
            self.dispatched_count += 1
        except Exception as e:
            # Skip this beat rather than stall the timer chain
            log_exception("Scheduler", "Dispatch failed, beat skipped", e, beat=index)

        # Tempo read now: changes affect beats not yet scheduled, never earlier ones
        self._next_beat_time += self.tempo.seconds_per_beat
        self._beat_index = (index + 1) % self.tempo.beats_per_bar
