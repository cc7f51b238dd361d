# Clickonome Configuration
# All default values and constants

import math
from dataclasses import dataclass, field, is_dataclass
from typing import List, Optional

from logging_utils import log_event


CURRENT_CONFIG_VERSION = 1

# Tempo / time signature limits enforced by the UI and the tap estimator
BPM_MIN = 40
BPM_MAX = 220
BEATS_PER_BAR_MIN = 1
BEATS_PER_BAR_MAX = 32
NOTE_VALUES = (4, 8, 16)    # Denominator: quarter, eighth, sixteenth

@dataclass
class MetronomeConfig:
    """Tempo, time signature and accent pattern restored at start-up"""
    bpm: int = 120
    beats_per_bar: int = 4
    note_value: int = 4               # 4 = quarter notes, 8 = eighths, 16 = sixteenths
    # One level per beat: 0=mute, 1=weak, 2=medium, 3=strong
    accent_pattern: List[int] = field(default_factory=lambda: [3, 1, 1, 1])

@dataclass
class SchedulerConfig:
    """Lookahead scheduler timing.
    schedule_ahead_s must stay larger than the poll interval or beats can fall
    between two polls."""
    poll_interval_ms: int = 25        # How often the scheduler polls the audio clock
    schedule_ahead_s: float = 0.1     # How far ahead beats are committed to the sink
    startup_offset_s: float = 0.05    # First beat lands this far after start()

@dataclass
class AudioConfig:
    """Audio output settings"""
    sample_rate: int = 44100
    channels: int = 2
    blocksize: int = 256              # Frames per callback; clock granularity is blocksize/sample_rate
    latency: str = "low"              # Passed through to sounddevice ('low', 'high' or seconds)
    # Device index - None means use system default
    device_index: Optional[int] = None
    volume: float = 1.0               # Master output volume (0.0-1.0)

@dataclass
class SoundConfig:
    """Custom click sounds chosen by the user (paths are reloaded on start-up)"""
    accent_sound_path: Optional[str] = None
    accent_sound_name: Optional[str] = None
    beat_sound_path: Optional[str] = None
    beat_sound_name: Optional[str] = None

@dataclass
class TapTempoConfig:
    max_taps: int = 8                 # Rolling window size
    reset_ms: int = 2000              # Gap that starts a new tapping session

@dataclass
class UiConfig:
    last_setlist: Optional[str] = None
    last_song_index: int = 0
    window_width: int = 420
    window_height: int = 720

@dataclass
class Config:
    """Master configuration"""
    version: int = 1                  # Schema version for persisted configs
    metronome: MetronomeConfig = field(default_factory=MetronomeConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    sound: SoundConfig = field(default_factory=SoundConfig)
    tap_tempo: TapTempoConfig = field(default_factory=TapTempoConfig)
    ui: UiConfig = field(default_factory=UiConfig)

    log_level: str = "INFO"           # Logging level (DEBUG/INFO/WARNING/ERROR)


# Keys written by the first (pre-versioned) release into a flat settings.json
LEGACY_SOUND_KEYS = {
    'accentSoundPath': 'accent_sound_path',
    'accentSoundName': 'accent_sound_name',
    'beatSoundPath': 'beat_sound_path',
    'beatSoundName': 'beat_sound_name',
}


def apply_dict_to_dataclass(target, data) -> None:
    """Recursively apply values from a dict onto a dataclass instance.
    Unknown keys are ignored, as are dicts offered for non-dataclass fields."""
    if not isinstance(data, dict):
        return

    for key, value in data.items():
        if not hasattr(target, key):
            continue

        current = getattr(target, key)

        if is_dataclass(current):
            if isinstance(value, dict):
                apply_dict_to_dataclass(current, value)
            else:
                log_event("WARN", "Config", "Expected a section, keeping defaults", key=key)
            continue

        setattr(target, key, value)


def clamp_bpm(value) -> int:
    try:
        bpm = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return MetronomeConfig.bpm
    return max(BPM_MIN, min(BPM_MAX, bpm))


def _coerce_number(value, default, cast=int, low=None, high=None):
    """cast(value) clamped to [low, high]; default when it is not a number."""
    if isinstance(value, bool):
        return default
    try:
        number = cast(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if isinstance(number, float) and not math.isfinite(number):
        return default
    if low is not None:
        number = max(low, number)
    if high is not None:
        number = min(high, number)
    return number


def _clamp_level(value) -> int:
    try:
        level = int(value)
    except (TypeError, ValueError):
        return 1
    return max(0, min(3, level))


def migrate_config(config: Config, loaded_version, raw: Optional[dict] = None) -> None:
    """Upgrade older config structures to the current schema.
    Version 0 is the flat settings.json of the first release; its sound keys
    move into config.sound. Metronome values are always clamped."""
    try:
        version = int(loaded_version) if loaded_version is not None else 0
    except (TypeError, ValueError):
        version = 0

    if version < 1 and isinstance(raw, dict):
        for legacy_key, attr in LEGACY_SOUND_KEYS.items():
            value = raw.get(legacy_key)
            if value and getattr(config.sound, attr) is None:
                setattr(config.sound, attr, str(value))

    met = config.metronome
    met.bpm = clamp_bpm(met.bpm)

    met.beats_per_bar = _coerce_number(met.beats_per_bar, 4, int, BEATS_PER_BAR_MIN, BEATS_PER_BAR_MAX)
    note_value = _coerce_number(met.note_value, 4)
    met.note_value = note_value if note_value in NOTE_VALUES else 4

    pattern = met.accent_pattern if isinstance(met.accent_pattern, list) else []
    pattern = [_clamp_level(v) for v in pattern[:met.beats_per_bar]]
    pattern.extend([1] * (met.beats_per_bar - len(pattern)))
    met.accent_pattern = pattern

    sched = config.scheduler
    defaults = SchedulerConfig()
    sched.poll_interval_ms = _coerce_number(sched.poll_interval_ms, defaults.poll_interval_ms, int, 1)
    sched.schedule_ahead_s = _coerce_number(sched.schedule_ahead_s, defaults.schedule_ahead_s, float, 0.0)
    sched.startup_offset_s = _coerce_number(sched.startup_offset_s, defaults.startup_offset_s, float, 0.0)
    if sched.schedule_ahead_s * 1000.0 <= sched.poll_interval_ms:
        log_event("WARN", "Config", "Lookahead not larger than poll interval, restoring defaults",
                  poll_ms=sched.poll_interval_ms, ahead_s=sched.schedule_ahead_s)
        config.scheduler = defaults

    tap = config.tap_tempo
    tap.max_taps = _coerce_number(tap.max_taps, TapTempoConfig.max_taps, int, 2)
    tap.reset_ms = _coerce_number(tap.reset_ms, TapTempoConfig.reset_ms, int, 1)

    audio = config.audio
    audio.sample_rate = _coerce_number(audio.sample_rate, AudioConfig.sample_rate, int, 8000)
    audio.channels = _coerce_number(audio.channels, AudioConfig.channels, int, 1)
    audio.blocksize = _coerce_number(audio.blocksize, AudioConfig.blocksize, int, 0)
    if audio.device_index is not None:
        audio.device_index = _coerce_number(audio.device_index, None, int, 0)
    audio.volume = _coerce_number(audio.volume, 1.0, float, 0.0, 1.0)

    ui = config.ui
    ui.last_song_index = _coerce_number(ui.last_song_index, 0, int, 0)
    ui.window_width = _coerce_number(ui.window_width, UiConfig.window_width, int, 200)
    ui.window_height = _coerce_number(ui.window_height, UiConfig.window_height, int, 200)
    if ui.last_setlist is not None and not isinstance(ui.last_setlist, str):
        ui.last_setlist = None

    for attr in LEGACY_SOUND_KEYS.values():
        if not isinstance(getattr(config.sound, attr), (str, type(None))):
            setattr(config.sound, attr, None)

    if not isinstance(config.log_level, str):
        config.log_level = "INFO"

    config.version = CURRENT_CONFIG_VERSION


# Default config instance
DEFAULT_CONFIG = Config()
