import unittest

import numpy as np

from accent_pattern import Level
from beat_dispatcher import BeatDispatcher
from waveform_store import Waveform, WaveformRole, WaveformStore


class FakeSink:
    def __init__(self, sample_rate=1000, fail=False):
        self.sample_rate = sample_rate
        self.t = 0.0
        self.fail = fail
        self.scheduled = []
        self.cancel_calls = 0

    def now(self):
        return self.t

    def schedule(self, samples, start_time, gain=1.0):
        if self.fail:
            raise OSError("device gone")
        self.scheduled.append((samples, start_time, gain))

    def cancel_unstarted(self):
        self.cancel_calls += 1
        return 0


class FakeHandle:
    def __init__(self, delay, fn):
        self.delay = delay
        self.fn = fn
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeTimers:
    def __init__(self):
        self.later = []

    def call_later(self, delay_s, fn):
        handle = FakeHandle(delay_s, fn)
        self.later.append(handle)
        return handle

    def fire_all(self):
        for handle in list(self.later):
            if not handle.cancelled:
                handle.fn()
        self.later.clear()


def _decoder(raw_bytes, sample_rate, name):
    return Waveform(np.full(len(raw_bytes), 0.5, dtype=np.float32), sample_rate, name)


def _make(fail=False):
    sink = FakeSink(fail=fail)
    store = WaveformStore(sink.sample_rate, decoder=_decoder)
    timers = FakeTimers()
    return BeatDispatcher(sink, store, timers), sink, store, timers


class TestBeatDispatcher(unittest.TestCase):
    def test_mute_beat_is_silent_but_visible(self):
        dispatcher, sink, _, timers = _make()
        seen = []
        dispatcher.set_on_beat(lambda i, level: seen.append((i, level)))

        dispatcher.dispatch(1, Level.MUTE, 0.5)
        timers.fire_all()

        self.assertEqual(sink.scheduled, [])
        self.assertEqual(seen, [(1, Level.MUTE)])

    def test_tone_fallback_without_sounds(self):
        dispatcher, sink, _, _ = _make()

        dispatcher.dispatch(0, Level.STRONG, 1.0)
        dispatcher.dispatch(1, Level.WEAK, 1.5)

        (accent, t0, g0), (beat, t1, g1) = sink.scheduled
        self.assertEqual((t0, g0), (1.0, 1.0))
        self.assertEqual((t1, g1), (1.5, 0.3))
        self.assertEqual(len(accent), 30)
        self.assertFalse(np.allclose(accent, beat))

    def test_tone_is_cached(self):
        dispatcher, sink, _, _ = _make()
        dispatcher.dispatch(1, Level.WEAK, 0.5)
        dispatcher.dispatch(2, Level.MEDIUM, 1.0)
        self.assertIs(sink.scheduled[0][0], sink.scheduled[1][0])
        self.assertEqual(sink.scheduled[1][2], 0.6)

    def test_accent_substitutes_faster_beat_sound(self):
        dispatcher, sink, store, _ = _make()
        store.load(WaveformRole.BEAT, b"x" * 150, "rim.wav")

        dispatcher.dispatch(0, Level.STRONG, 2.0)
        dispatcher.dispatch(1, Level.MEDIUM, 2.5)

        strong, medium = sink.scheduled
        self.assertEqual(len(strong[0]), 100)
        self.assertEqual(strong[2], 1.0)
        self.assertEqual(len(medium[0]), 150)
        self.assertEqual(medium[2], 0.6)

    def test_accent_sound_used_for_strong_only(self):
        dispatcher, sink, store, _ = _make()
        store.load(WaveformRole.ACCENT, b"a" * 40, "bell.wav")

        dispatcher.dispatch(0, Level.STRONG, 0.0)
        dispatcher.dispatch(1, Level.WEAK, 0.5)

        self.assertEqual(len(sink.scheduled[0][0]), 40)
        # Beat slot is empty, so weak beats still use the synthesized click
        self.assertEqual(len(sink.scheduled[1][0]), 30)

    def test_audio_failure_still_fires_visual(self):
        dispatcher, _, _, timers = _make(fail=True)
        seen = []
        dispatcher.set_on_beat(lambda i, level: seen.append(i))

        dispatcher.dispatch(3, Level.STRONG, 0.2)
        timers.fire_all()

        self.assertEqual(dispatcher.audio_errors, 1)
        self.assertEqual(seen, [3])

    def test_visual_delay_tracks_audio_clock(self):
        dispatcher, sink, _, timers = _make()
        sink.t = 10.0
        dispatcher.set_on_beat(lambda i, level: None)

        dispatcher.dispatch(0, Level.WEAK, 10.08)
        dispatcher.dispatch(1, Level.WEAK, 9.9)

        self.assertAlmostEqual(timers.later[0].delay, 0.08)
        self.assertEqual(timers.later[1].delay, 0.0)
        self.assertEqual(dispatcher.pending_count, 2)

        timers.fire_all()
        self.assertEqual(dispatcher.pending_count, 0)

    def test_no_callback_schedules_no_visual(self):
        dispatcher, _, _, timers = _make()
        dispatcher.dispatch(0, Level.STRONG, 1.0)
        self.assertEqual(timers.later, [])

    def test_callback_error_does_not_propagate(self):
        dispatcher, _, _, timers = _make()

        def boom(i, level):
            raise RuntimeError("widget deleted")

        dispatcher.set_on_beat(boom)
        dispatcher.dispatch(0, Level.STRONG, 1.0)
        timers.fire_all()
        self.assertEqual(dispatcher.pending_count, 0)

    def test_cancel_pending(self):
        dispatcher, sink, _, timers = _make()
        seen = []
        dispatcher.set_on_beat(lambda i, level: seen.append(i))
        dispatcher.dispatch(0, Level.STRONG, 1.0)
        dispatcher.dispatch(1, Level.WEAK, 1.5)

        dispatcher.cancel_pending()
        timers.fire_all()

        self.assertEqual(seen, [])
        self.assertEqual(dispatcher.pending_count, 0)
        self.assertEqual(sink.cancel_calls, 1)


if __name__ == "__main__":
    unittest.main()
