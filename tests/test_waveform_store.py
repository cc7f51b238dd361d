import io
import threading
import unittest

import numpy as np
import soundfile as sf

from waveform_store import DecodeError, WaveformRole, WaveformStore, decode_audio


def _wav_bytes(samples, sample_rate):
    buf = io.BytesIO()
    sf.write(buf, samples, sample_rate, format="WAV", subtype="FLOAT")
    return buf.getvalue()


class TestDecodeAudio(unittest.TestCase):
    def test_decode_mono_same_rate(self):
        samples = np.linspace(-0.5, 0.5, 441).astype(np.float32)
        waveform = decode_audio(_wav_bytes(samples, 44100), 44100, "ramp.wav")

        self.assertEqual(waveform.sample_rate, 44100)
        self.assertEqual(waveform.name, "ramp.wav")
        np.testing.assert_allclose(waveform.samples, samples, atol=1e-6)
        self.assertAlmostEqual(waveform.duration, 0.01)

    def test_decode_stereo_mixes_to_mono(self):
        stereo = np.zeros((100, 2), dtype=np.float32)
        stereo[:, 0] = 0.4
        stereo[:, 1] = 0.2
        waveform = decode_audio(_wav_bytes(stereo, 8000), 8000)

        self.assertEqual(waveform.samples.ndim, 1)
        np.testing.assert_allclose(waveform.samples, 0.3, atol=1e-6)

    def test_decode_resamples(self):
        samples = np.zeros(220, dtype=np.float32)
        waveform = decode_audio(_wav_bytes(samples, 22050), 44100)
        self.assertEqual(len(waveform.samples), 440)
        self.assertEqual(waveform.samples.dtype, np.float32)

    def test_decode_garbage_raises(self):
        with self.assertRaises(DecodeError):
            decode_audio(b"definitely not audio", 44100)
        with self.assertRaises(DecodeError):
            decode_audio(b"", 44100)


class TestWaveformStore(unittest.TestCase):
    def test_starts_empty(self):
        store = WaveformStore(44100)
        self.assertIsNone(store.get(WaveformRole.BEAT))
        self.assertFalse(store.has(WaveformRole.ACCENT))

    def test_failed_load_keeps_previous(self):
        store = WaveformStore(8000)
        good = _wav_bytes(np.full(80, 0.1, dtype=np.float32), 8000)

        self.assertTrue(store.load(WaveformRole.BEAT, good, "good.wav"))
        self.assertFalse(store.load(WaveformRole.BEAT, b"broken", "bad.wav"))

        self.assertEqual(store.get(WaveformRole.BEAT).name, "good.wav")
        self.assertIsNone(store.get(WaveformRole.ACCENT))

    def test_failed_load_leaves_other_role_untouched(self):
        store = WaveformStore(8000)
        accent_bytes = _wav_bytes(np.full(40, 0.5, dtype=np.float32), 8000)

        self.assertTrue(store.load(WaveformRole.ACCENT, accent_bytes, "bell.wav"))
        accent = store.get(WaveformRole.ACCENT)
        self.assertFalse(store.load(WaveformRole.BEAT, b"broken", "bad.wav"))

        self.assertIs(store.get(WaveformRole.ACCENT), accent)
        self.assertIsNone(store.get(WaveformRole.BEAT))

    def test_unexpected_decoder_error_is_contained(self):
        def decoder(raw, sr, name):
            raise RuntimeError("codec crashed")

        store = WaveformStore(8000, decoder=decoder)
        self.assertFalse(store.load(WaveformRole.ACCENT, b"x"))

    def test_clear(self):
        store = WaveformStore(8000)
        store.load(WaveformRole.ACCENT, _wav_bytes(np.zeros(10, dtype=np.float32), 8000))
        store.clear(WaveformRole.ACCENT)
        self.assertFalse(store.has(WaveformRole.ACCENT))

    def test_load_async_reports_result(self):
        store = WaveformStore(8000)
        done = threading.Event()
        results = []

        def on_done(role, ok):
            results.append((role, ok))
            done.set()

        thread = store.load_async(WaveformRole.ACCENT,
                                  _wav_bytes(np.zeros(10, dtype=np.float32), 8000),
                                  on_done, "click.wav")
        self.assertTrue(done.wait(5.0))
        thread.join(5.0)

        self.assertEqual(results, [(WaveformRole.ACCENT, True)])
        self.assertEqual(store.get(WaveformRole.ACCENT).name, "click.wav")


if __name__ == "__main__":
    unittest.main()
