from dataclasses import dataclass
from typing import Optional

from accent_pattern import Level
from audio_lifecycle import close_audio_sink


@dataclass(frozen=True)
class StartStopUiState:
    play_text: str
    show_progress: bool
    status_text: str


ACCENT_LABELS = {
    Level.MUTE: "–",
    Level.WEAK: "·",
    Level.MEDIUM: "•",
    Level.STRONG: "●",
}


def start_stop_ui_state(is_playing: bool) -> StartStopUiState:
    """Return UI state for the transport controls based on playing state."""
    if is_playing:
        return StartStopUiState(
            play_text="■ Stop",
            show_progress=True,
            status_text="Playing",
        )

    return StartStopUiState(
        play_text="▶ Play",
        show_progress=False,
        status_text="Stopped",
    )


def beat_progress(current_beat: int, beats_per_bar: int) -> float:
    """Fraction of the bar completed after `current_beat` (0-based); 0 when idle."""
    if current_beat < 0 or beats_per_bar <= 0:
        return 0.0
    return min(1.0, (current_beat + 1) / beats_per_bar)


def accent_label(level: int) -> str:
    return ACCENT_LABELS.get(level, "·")


def window_title(setlist_name: Optional[str]) -> str:
    return f"Clickonome — {setlist_name}" if setlist_name else "Clickonome"


def shutdown_runtime(engine, sink) -> None:
    """Stop the engine first, then release the audio device if present."""
    if engine is not None:
        engine.stop()
        engine.set_on_beat(None)
    close_audio_sink(sink)
