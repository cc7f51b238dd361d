import unittest

import numpy as np

from accent_pattern import Level
from config import Config
from metronome_engine import MetronomeEngine
from setlist_store import Song
from waveform_store import Waveform, WaveformRole, WaveformStore


class FakeSink:
    sample_rate = 1000

    def __init__(self):
        self.t = 0.0
        self.scheduled = []
        self.cancelled = 0

    def now(self):
        return self.t

    def resume(self):
        pass

    def schedule(self, samples, start_time, gain=1.0):
        self.scheduled.append((start_time, gain))

    def cancel_unstarted(self):
        self.cancelled += 1
        return 0


class FakeHandle:
    def __init__(self, fn=None):
        self.fn = fn
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeTimers:
    def __init__(self):
        self.every = []
        self.later = []

    def call_every(self, interval_s, fn):
        handle = FakeHandle(fn)
        self.every.append(handle)
        return handle

    def call_later(self, delay_s, fn):
        handle = FakeHandle(fn)
        self.later.append(handle)
        return handle


def _make(config=None):
    sink = FakeSink()
    timers = FakeTimers()
    return MetronomeEngine(sink, timers, config), sink, timers


class TestMetronomeEngine(unittest.TestCase):
    def test_builds_from_config(self):
        cfg = Config()
        cfg.metronome.bpm = 90
        cfg.metronome.beats_per_bar = 6
        cfg.metronome.note_value = 8
        cfg.metronome.accent_pattern = [3, 1]

        engine, _, _ = _make(cfg)
        state = engine.state()

        self.assertEqual(state.bpm, 90)
        self.assertEqual(state.beats_per_bar, 6)
        self.assertEqual(state.note_value, 8)
        self.assertEqual(state.accent_pattern, (3, 1, 1, 1, 1, 1))
        self.assertFalse(state.is_playing)

    def test_toggle_starts_and_stops(self):
        engine, sink, timers = _make()

        self.assertTrue(engine.toggle())
        self.assertEqual(len(timers.every), 1)
        self.assertEqual(sink.scheduled, [(0.05, 1.0)])

        self.assertFalse(engine.toggle())
        self.assertTrue(timers.every[0].cancelled)
        self.assertEqual(sink.cancelled, 1)

    def test_beat_callback_registered_on_dispatcher(self):
        engine, _, timers = _make()
        seen = []
        engine.set_on_beat(lambda i, level: seen.append((i, level)))
        engine.start()

        timers.later[0].fn()
        self.assertEqual(seen, [(0, Level.STRONG)])

    def test_set_beats_per_bar_resizes_pattern(self):
        engine, _, _ = _make()
        engine.cycle_accent(1)

        self.assertTrue(engine.set_beats_per_bar(2))
        self.assertEqual(engine.pattern.to_list(), [3, 0])
        self.assertTrue(engine.set_beats_per_bar(5))
        self.assertEqual(engine.pattern.to_list(), [3, 0, 1, 1, 1])
        self.assertFalse(engine.set_beats_per_bar(0))
        self.assertEqual(len(engine.pattern), 5)

    def test_cycle_accent_out_of_range(self):
        engine, _, _ = _make()
        self.assertIsNone(engine.cycle_accent(4))
        self.assertEqual(engine.cycle_accent(0), Level.MEDIUM)

    def test_set_accent_pattern_follows_bar_length(self):
        engine, _, _ = _make()
        engine.set_accent_pattern([0, 0, 0, 0, 3, 3])
        self.assertEqual(engine.pattern.to_list(), [0, 0, 0, 0])

    def test_tap_applies_estimate(self):
        engine, _, _ = _make()
        self.assertIsNone(engine.tap(1000))
        self.assertEqual(engine.tap(1400), 150)
        self.assertEqual(engine.tempo.bpm, 150)

    def test_invalid_note_value_rejected(self):
        engine, _, _ = _make()
        self.assertFalse(engine.set_note_value(3))
        self.assertEqual(engine.tempo.note_value, 4)

    def test_apply_song_clamps(self):
        engine, _, _ = _make()
        self.assertTrue(engine.apply_song(Song(1, "Blast", 300, 7, 8)))
        state = engine.state()
        self.assertEqual(state.bpm, 220)
        self.assertEqual(state.beats_per_bar, 7)
        self.assertEqual(state.note_value, 8)
        self.assertEqual(len(state.accent_pattern), 7)

    def test_export_and_apply_config(self):
        engine, _, _ = _make()
        engine.set_bpm(77.4)
        engine.set_beats_per_bar(3)
        cfg = Config()

        engine.export_to_config(cfg)
        self.assertEqual(cfg.metronome.bpm, 77)
        self.assertEqual(cfg.metronome.accent_pattern, [3, 1, 1])

        other, _, _ = _make()
        other.apply_config(cfg)
        self.assertEqual(other.state().beats_per_bar, 3)
        self.assertEqual(other.pattern.to_list(), [3, 1, 1])

    def test_sound_loading_uses_store(self):
        sink = FakeSink()

        def decoder(raw, sr, name):
            return Waveform(np.zeros(len(raw), dtype=np.float32), sr, name)

        store = WaveformStore(sink.sample_rate, decoder=decoder)
        engine = MetronomeEngine(sink, FakeTimers(), store=store)

        self.assertTrue(engine.load_accent_sound(b"abc", "bell.wav"))
        self.assertTrue(engine.load_beat_sound(b"abcd"))
        self.assertEqual(store.get(WaveformRole.ACCENT).name, "bell.wav")
        self.assertEqual(len(store.get(WaveformRole.BEAT).samples), 4)


if __name__ == "__main__":
    unittest.main()
