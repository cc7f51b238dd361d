from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from config import Config
from logging_utils import log_event
from waveform_store import WaveformRole

AUDIO_FILE_FILTER = "Audio (*.wav *.mp3 *.ogg *.flac)"

_ROLE_FIELDS = {
    WaveformRole.ACCENT: ('accent_sound_path', 'accent_sound_name'),
    WaveformRole.BEAT: ('beat_sound_path', 'beat_sound_name'),
}


@dataclass(frozen=True)
class AudioFile:
    name: str
    raw_bytes: bytes
    file_path: str


def read_audio_file(path) -> Optional[AudioFile]:
    """Read a user-selected sound file; None when it cannot be read."""
    p = Path(path)
    try:
        raw = p.read_bytes()
    except OSError as e:
        log_event("WARN", "Sounds", "Could not read sound file", path=p, error=e)
        return None
    return AudioFile(name=p.name, raw_bytes=raw, file_path=str(p))


def saved_sound(config: Config, role: WaveformRole) -> tuple[Optional[str], Optional[str]]:
    """(path, display name) remembered for a role."""
    path_attr, name_attr = _ROLE_FIELDS[role]
    return getattr(config.sound, path_attr), getattr(config.sound, name_attr)


def remember_sound(config: Config, role: WaveformRole, audio_file: AudioFile) -> None:
    path_attr, name_attr = _ROLE_FIELDS[role]
    setattr(config.sound, path_attr, audio_file.file_path)
    setattr(config.sound, name_attr, audio_file.name)


def forget_sound(config: Config, role: WaveformRole) -> None:
    path_attr, name_attr = _ROLE_FIELDS[role]
    setattr(config.sound, path_attr, None)
    setattr(config.sound, name_attr, None)


def start_sound_import(engine, role: WaveformRole, path,
                       on_done: Callable[[WaveformRole, bool, AudioFile], None]) -> Optional[AudioFile]:
    """Read a file and decode it on a worker thread; on_done(role, ok, audio_file)
    runs on that thread. Returns None (nothing started) when the file cannot be read."""
    audio_file = read_audio_file(path)
    if audio_file is None:
        return None
    engine.load_sound_async(
        role, audio_file.raw_bytes,
        on_done=lambda r, ok: on_done(r, ok, audio_file),
        name=audio_file.name,
    )
    return audio_file


def finish_sound_import(config: Config, role: WaveformRole, audio_file: AudioFile, ok: bool) -> bool:
    """Remember a decoded file in config; a failed decode leaves config untouched."""
    if ok:
        remember_sound(config, role, audio_file)
    return ok


def apply_volume(sink, config: Config, percent) -> float:
    """Set master volume from a 0-100 control value on both the sink and config."""
    volume = max(0.0, min(1.0, float(percent) / 100.0))
    config.audio.volume = volume
    sink.set_volume(volume)
    return volume


def restore_saved_sounds(engine, config: Config) -> dict[WaveformRole, bool]:
    """Reload sounds remembered from the last session. Missing files are skipped."""
    results: dict[WaveformRole, bool] = {}
    for role in (WaveformRole.ACCENT, WaveformRole.BEAT):
        path, _ = saved_sound(config, role)
        if not path:
            continue
        audio_file = read_audio_file(path)
        if audio_file is None:
            results[role] = False
            continue
        results[role] = engine.store.load(role, audio_file.raw_bytes, audio_file.name)
    return results
