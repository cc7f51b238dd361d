from config import Config


def _require_window_attr(window, attr_name: str):
    try:
        return getattr(window, attr_name)
    except AttributeError as exc:
        raise AttributeError(
            f"persist_runtime_ui_to_config missing required control: {attr_name}"
        ) from exc


def persist_runtime_ui_to_config(window, config: Config) -> None:
    """Copy tempo controls, accent pattern and setlist position into config on shutdown."""
    bpm_slider = _require_window_attr(window, "bpm_slider")
    beats_spin = _require_window_attr(window, "beats_spin")
    note_combo = _require_window_attr(window, "note_combo")
    engine = _require_window_attr(window, "engine")
    cursor = _require_window_attr(window, "setlist_cursor")

    config.metronome.bpm = int(bpm_slider.value())
    config.metronome.beats_per_bar = int(beats_spin.value())
    config.metronome.note_value = int(note_combo.currentText())
    config.metronome.accent_pattern = engine.pattern.to_list()

    if cursor.setlist is not None:
        config.ui.last_setlist = cursor.setlist.name
        config.ui.last_song_index = cursor.index
    else:
        config.ui.last_setlist = None
        config.ui.last_song_index = 0

    size = window.size()
    config.ui.window_width = size.width()
    config.ui.window_height = size.height()
