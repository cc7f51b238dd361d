import numpy as np

ACCENT_TONE_HZ = 1200.0
BEAT_TONE_HZ = 800.0
TONE_DURATION_S = 0.03
TONE_ATTACK_S = 0.001
TONE_DECAY_S = 0.02
TONE_FLOOR = 0.001


def click_tone(frequency: float, sample_rate: int,
               duration: float = TONE_DURATION_S,
               attack: float = TONE_ATTACK_S,
               decay: float = TONE_DECAY_S) -> np.ndarray:
    """Short sine blip: flat for the attack, exponential fall to TONE_FLOOR at
    `decay`, held at the floor until `duration`."""
    n = max(1, int(round(duration * sample_rate)))
    t = np.arange(n, dtype=np.float64) / float(sample_rate)

    env = np.ones(n, dtype=np.float64)
    ramp = (t > attack) & (t <= decay)
    # exp(k * (t - attack)) reaches TONE_FLOOR at t == decay
    k = np.log(TONE_FLOOR) / max(decay - attack, 1e-6)
    env[ramp] = np.exp(k * (t[ramp] - attack))
    env[t > decay] = TONE_FLOOR

    tone = np.sin(2.0 * np.pi * frequency * t) * env
    return tone.astype(np.float32)


def change_rate(samples: np.ndarray, rate: float) -> np.ndarray:
    """Resample by linear interpolation so playback runs `rate` times faster
    (pitch and speed both scale)."""
    if rate == 1.0 or len(samples) < 2:
        return samples
    new_len = max(1, int(len(samples) / rate))
    src_pos = np.arange(new_len, dtype=np.float64) * rate
    return np.interp(src_pos, np.arange(len(samples)), samples).astype(np.float32)
