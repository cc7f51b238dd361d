import unittest

from tap_tempo import TapTempoEstimator


class TestTapTempo(unittest.TestCase):
    def test_first_tap_has_no_estimate(self):
        tapper = TapTempoEstimator()
        self.assertIsNone(tapper.tap(0))

    def test_steady_taps(self):
        tapper = TapTempoEstimator()
        results = [tapper.tap(t) for t in (0, 500, 1000, 1500)]
        self.assertEqual(results, [None, 120, 120, 120])

    def test_long_gap_resets(self):
        tapper = TapTempoEstimator()
        tapper.tap(0)
        tapper.tap(500)
        self.assertIsNone(tapper.tap(3000))
        self.assertEqual(tapper.taps, (3000.0,))
        self.assertEqual(tapper.tap(3600), 100)

    def test_clamped_to_range(self):
        tapper = TapTempoEstimator()
        tapper.tap(0)
        self.assertEqual(tapper.tap(100), 220)

        slow = TapTempoEstimator()
        slow.tap(0)
        self.assertEqual(slow.tap(1900), 40)

    def test_window_keeps_most_recent_taps(self):
        tapper = TapTempoEstimator(max_taps=3)
        for t in (0, 1000, 1500, 2000):
            bpm = tapper.tap(t)
        self.assertEqual(len(tapper.taps), 3)
        self.assertEqual(bpm, 120)

    def test_half_up_rounding(self):
        tapper = TapTempoEstimator()
        tapper.tap(0)
        # 60000 / 320 = 187.5 exactly
        self.assertEqual(tapper.tap(320), 188)


if __name__ == "__main__":
    unittest.main()
