import math
from typing import Optional

from config import BPM_MAX, BPM_MIN


class TapTempoEstimator:
    """Estimates bpm from the mean interval of the most recent taps.

    No outlier rejection: a stray tap skews the estimate until it leaves the
    window or a long pause resets the session.
    """

    def __init__(self, max_taps: int = 8, reset_ms: float = 2000.0,
                 bpm_min: int = BPM_MIN, bpm_max: int = BPM_MAX):
        self.max_taps = max(2, int(max_taps))
        self.reset_ms = float(reset_ms)
        self.bpm_min = bpm_min
        self.bpm_max = bpm_max
        self._taps: list[float] = []

    @property
    def taps(self) -> tuple[float, ...]:
        return tuple(self._taps)

    def reset(self) -> None:
        self._taps.clear()

    def tap(self, now_ms: float) -> Optional[int]:
        """Record a tap; returns the new bpm, or None while fewer than two taps are held."""
        if self._taps and now_ms - self._taps[-1] > self.reset_ms:
            self._taps.clear()

        self._taps.append(float(now_ms))
        if len(self._taps) > self.max_taps:
            self._taps = self._taps[-self.max_taps:]

        if len(self._taps) < 2:
            return None

        mean_interval = (self._taps[-1] - self._taps[0]) / (len(self._taps) - 1)
        if mean_interval <= 0:
            return self.bpm_max
        # Half-up rounding, so 120.5 reads as 121
        bpm = int(math.floor(60000.0 / mean_interval + 0.5))
        return max(self.bpm_min, min(self.bpm_max, bpm))
