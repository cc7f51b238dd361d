"""
Clickonome - Main Application
Qt GUI: tempo controls, accent editor / beat visualizer, setlists and sounds.
"""

import sys
from pathlib import Path
from typing import Optional

from PyQt6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QLabel, QSlider, QComboBox, QPushButton, QSpinBox, QLineEdit,
    QTabWidget, QListWidget, QListWidgetItem, QDialog, QDialogButtonBox,
    QMessageBox, QFileDialog, QGridLayout, QGroupBox,
)
from PyQt6.QtCore import Qt, QObject, QRectF, pyqtSignal
from PyQt6.QtGui import QBrush, QColor, QKeySequence, QPainter, QPen, QShortcut

from accent_pattern import Level
from audio_lifecycle import ensure_audio_sink
from close_persist_wiring import persist_runtime_ui_to_config
from config import BEATS_PER_BAR_MAX, BEATS_PER_BAR_MIN, BPM_MAX, BPM_MIN, NOTE_VALUES, Config
from config_facade import load_config, open_library, save_config
from logging_utils import log_event, set_log_level
from metronome_engine import MetronomeEngine
from qt_timers import QtTimerService
from setlist_store import SetlistStore, Setlist, Song, SongBank, is_valid_name
from setlist_wiring import (
    SetlistCursor,
    import_from_bank,
    move_song,
    new_song,
    remove_song,
    song_caption,
)
from sound_wiring import (
    AUDIO_FILE_FILTER,
    AudioFile,
    apply_volume,
    finish_sound_import,
    forget_sound,
    restore_saved_sounds,
    saved_sound,
    start_sound_import,
)
from transport_wiring import (
    accent_label,
    beat_progress,
    shutdown_runtime,
    start_stop_ui_state,
    window_title,
)
from waveform_store import WaveformRole


class SignalBridge(QObject):
    """Thread-safe signal bridge (decode threads -> GUI)"""
    sound_loaded = pyqtSignal(object, bool, object)  # role, ok, AudioFile


class BeatIndicator(QWidget):
    """
    One cell per beat. Fill height shows the accent level, the current beat
    lights up, and a thin bar underneath tracks progress through the bar.
    Clicking a cell asks for its accent to be cycled.
    """

    accent_clicked = pyqtSignal(int)

    LEVEL_FILL = {Level.MUTE: 0.0, Level.WEAK: 0.33, Level.MEDIUM: 0.66, Level.STRONG: 1.0}

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setMinimumHeight(90)
        self._levels: list[Level] = []
        self._current = -1
        self._show_progress = False

    def set_pattern(self, levels) -> None:
        self._levels = list(levels)
        if self._current >= len(self._levels):
            self._current = -1
        self.update()

    def set_current_beat(self, index: int) -> None:
        self._current = index
        self.update()

    def set_show_progress(self, show: bool) -> None:
        self._show_progress = show
        self.update()

    def _cell_rect(self, index: int) -> QRectF:
        count = max(1, len(self._levels))
        gap = 6.0
        width = (self.width() - gap * (count + 1)) / count
        height = self.height() - 22.0
        return QRectF(gap + index * (width + gap), 4.0, max(4.0, width), height)

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            pos = event.position()
            for i in range(len(self._levels)):
                if self._cell_rect(i).contains(pos):
                    self.accent_clicked.emit(i)
                    break
        super().mousePressEvent(event)

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        for i, level in enumerate(self._levels):
            rect = self._cell_rect(i)
            active = i == self._current
            border = QColor(0, 170, 255) if active else QColor(90, 90, 90)
            painter.setPen(QPen(border, 2 if active else 1))
            painter.setBrush(QBrush(QColor(45, 45, 45)))
            painter.drawRoundedRect(rect, 4, 4)

            fill = self.LEVEL_FILL.get(level, 0.33)
            if fill > 0:
                fill_rect = QRectF(rect.left() + 2, rect.bottom() - 2 - (rect.height() - 4) * fill,
                                   rect.width() - 4, (rect.height() - 4) * fill)
                color = QColor(0, 200, 255) if active else QColor(86, 93, 127)
                painter.setPen(Qt.PenStyle.NoPen)
                painter.setBrush(QBrush(color))
                painter.drawRoundedRect(fill_rect, 3, 3)

            painter.setPen(QPen(QColor(200, 200, 200)))
            painter.drawText(QRectF(rect.left(), rect.bottom() + 1, rect.width(), 16),
                             Qt.AlignmentFlag.AlignCenter, accent_label(level))

        if self._show_progress and self._levels:
            progress = beat_progress(self._current, len(self._levels))
            painter.setPen(Qt.PenStyle.NoPen)
            painter.setBrush(QBrush(QColor(0, 170, 255)))
            painter.drawRect(QRectF(0, self.height() - 3, self.width() * progress, 3))

        painter.end()


class SongForm(QWidget):
    """Title / bpm / signature inputs shared by the setlist and bank tabs"""

    def __init__(self, bpm: int, beats: int, note_value: int, parent=None):
        super().__init__(parent)
        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.title_edit = QLineEdit()
        self.title_edit.setPlaceholderText("Song title")
        self.bpm_spin = QSpinBox()
        self.bpm_spin.setRange(BPM_MIN, BPM_MAX)
        self.bpm_spin.setValue(bpm)
        self.beats_spin = QSpinBox()
        self.beats_spin.setRange(BEATS_PER_BAR_MIN, BEATS_PER_BAR_MAX)
        self.beats_spin.setValue(beats)
        self.note_combo = QComboBox()
        self.note_combo.addItems([str(v) for v in NOTE_VALUES])
        self.note_combo.setCurrentText(str(note_value))

        layout.addWidget(self.title_edit, 2)
        layout.addWidget(self.bpm_spin)
        layout.addWidget(self.beats_spin)
        layout.addWidget(QLabel("/"))
        layout.addWidget(self.note_combo)

    def build_song(self) -> Optional[Song]:
        return new_song(self.title_edit.text(), self.bpm_spin.value(),
                        self.beats_spin.value(), int(self.note_combo.currentText()))

    def clear_title(self) -> None:
        self.title_edit.clear()


class BankImportDialog(QDialog):
    """Checkable list of bank songs"""

    def __init__(self, bank_songs: list[Song], parent=None):
        super().__init__(parent)
        self.setWindowTitle("Import from Song Bank")
        self._songs = bank_songs
        layout = QVBoxLayout(self)

        self.list = QListWidget()
        for song in bank_songs:
            item = QListWidgetItem(f"{song.title}  ({song_caption(song)})")
            item.setFlags(item.flags() | Qt.ItemFlag.ItemIsUserCheckable)
            item.setCheckState(Qt.CheckState.Unchecked)
            self.list.addItem(item)
        layout.addWidget(self.list)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def selected_songs(self) -> list[Song]:
        return [
            self._songs[i] for i in range(self.list.count())
            if self.list.item(i).checkState() == Qt.CheckState.Checked
        ]


class SetlistDialog(QDialog):
    """Setlist browser + song bank editor. Emits song_selected(setlist, index) on Load."""

    song_selected = pyqtSignal(object, int)

    def __init__(self, store: SetlistStore, bank: SongBank,
                 bpm: int, beats: int, note_value: int, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Setlists")
        self.resize(520, 560)
        self.store = store
        self.bank = bank
        self.active: Optional[Setlist] = None
        self.bank_songs: list[Song] = bank.load()

        layout = QVBoxLayout(self)
        tabs = QTabWidget()
        tabs.addTab(self._build_setlists_tab(bpm, beats, note_value), "Setlists")
        tabs.addTab(self._build_bank_tab(bpm, beats, note_value), "Song Bank")
        layout.addWidget(tabs)

        self._refresh_setlists()
        self._refresh_bank()

    # --- Setlists tab ---

    def _build_setlists_tab(self, bpm, beats, note_value) -> QWidget:
        tab = QWidget()
        layout = QVBoxLayout(tab)

        create_row = QHBoxLayout()
        self.new_set_edit = QLineEdit()
        self.new_set_edit.setPlaceholderText("New setlist name")
        create_btn = QPushButton("Create")
        create_btn.clicked.connect(self._on_create_setlist)
        create_row.addWidget(self.new_set_edit)
        create_row.addWidget(create_btn)
        layout.addLayout(create_row)

        lists_row = QHBoxLayout()
        left = QVBoxLayout()
        self.setlist_list = QListWidget()
        self.setlist_list.currentTextChanged.connect(self._on_setlist_selected)
        delete_btn = QPushButton("Delete Setlist")
        delete_btn.clicked.connect(self._on_delete_setlist)
        left.addWidget(self.setlist_list)
        left.addWidget(delete_btn)

        right = QVBoxLayout()
        self.songs_list = QListWidget()
        self.songs_list.itemDoubleClicked.connect(lambda _item: self._on_load_song())
        move_row = QHBoxLayout()
        for text, handler in (("▲", lambda: self._on_move(-1)),
                              ("▼", lambda: self._on_move(1)),
                              ("Remove", self._on_remove_song),
                              ("Load", self._on_load_song)):
            btn = QPushButton(text)
            btn.clicked.connect(handler)
            move_row.addWidget(btn)
        right.addWidget(self.songs_list)
        right.addLayout(move_row)

        lists_row.addLayout(left, 1)
        lists_row.addLayout(right, 2)
        layout.addLayout(lists_row)

        self.set_song_form = SongForm(bpm, beats, note_value)
        add_row = QHBoxLayout()
        add_btn = QPushButton("Add to Setlist")
        add_btn.clicked.connect(self._on_add_song_to_set)
        import_btn = QPushButton("Import from Bank…")
        import_btn.clicked.connect(self._on_import_from_bank)
        add_row.addWidget(add_btn)
        add_row.addWidget(import_btn)
        layout.addWidget(self.set_song_form)
        layout.addLayout(add_row)
        return tab

    def _refresh_setlists(self) -> None:
        current = self.active.name if self.active else None
        self.setlist_list.blockSignals(True)
        self.setlist_list.clear()
        self.setlist_list.addItems(self.store.list())
        self.setlist_list.blockSignals(False)
        if current:
            matches = self.setlist_list.findItems(current, Qt.MatchFlag.MatchExactly)
            if matches:
                self.setlist_list.setCurrentItem(matches[0])
        self._refresh_songs()

    def _refresh_songs(self) -> None:
        self.songs_list.clear()
        if self.active is None:
            return
        for i, song in enumerate(self.active.songs):
            self.songs_list.addItem(f"{i + 1}. {song.title}  ({song_caption(song)})")

    def _update_active_songs(self, songs: list[Song]) -> None:
        if self.active is None:
            return
        row = self.songs_list.currentRow()
        self.active.songs = songs
        if not self.store.save_setlist(self.active):
            QMessageBox.warning(self, "Save Error", f"Could not save setlist \"{self.active.name}\".")
        self._refresh_songs()
        if 0 <= row < self.songs_list.count():
            self.songs_list.setCurrentRow(row)

    def _on_create_setlist(self) -> None:
        name = self.new_set_edit.text().strip()
        if not name:
            return
        if not is_valid_name(name):
            QMessageBox.warning(self, "Invalid Name", "Setlist names cannot contain path characters.")
            return
        setlist = Setlist(name=name)
        if not self.store.save_setlist(setlist):
            QMessageBox.warning(self, "Save Error", f"Could not create setlist \"{name}\".")
            return
        self.new_set_edit.clear()
        self.active = setlist
        self._refresh_setlists()

    def _on_setlist_selected(self, name: str) -> None:
        self.active = self.store.load_setlist(name) if name else None
        self._refresh_songs()

    def _on_delete_setlist(self) -> None:
        item = self.setlist_list.currentItem()
        if item is None:
            return
        name = item.text()
        answer = QMessageBox.question(self, "Delete Setlist", f"Delete setlist \"{name}\"?")
        if answer != QMessageBox.StandardButton.Yes:
            return
        self.store.delete(name)
        if self.active and self.active.name == name:
            self.active = None
        self._refresh_setlists()

    def _on_add_song_to_set(self) -> None:
        if self.active is None:
            return
        song = self.set_song_form.build_song()
        if song is None:
            return
        self._update_active_songs(self.active.songs + [song])
        self.set_song_form.clear_title()

    def _on_remove_song(self) -> None:
        if self.active is not None:
            self._update_active_songs(remove_song(self.active.songs, self.songs_list.currentRow()))

    def _on_move(self, direction: int) -> None:
        if self.active is None:
            return
        row = self.songs_list.currentRow()
        self._update_active_songs(move_song(self.active.songs, row, direction))
        target = row + direction
        if 0 <= target < self.songs_list.count():
            self.songs_list.setCurrentRow(target)

    def _on_import_from_bank(self) -> None:
        if self.active is None or not self.bank_songs:
            return
        dialog = BankImportDialog(self.bank_songs, self)
        if dialog.exec() == QDialog.DialogCode.Accepted:
            selected = dialog.selected_songs()
            if selected:
                self._update_active_songs(import_from_bank(self.active.songs, selected))

    def _on_load_song(self) -> None:
        row = self.songs_list.currentRow()
        if self.active is None or not 0 <= row < len(self.active.songs):
            return
        self.song_selected.emit(self.active, row)
        self.accept()

    # --- Bank tab ---

    def _build_bank_tab(self, bpm, beats, note_value) -> QWidget:
        tab = QWidget()
        layout = QVBoxLayout(tab)
        self.bank_list = QListWidget()
        layout.addWidget(self.bank_list)

        self.bank_song_form = SongForm(bpm, beats, note_value)
        layout.addWidget(self.bank_song_form)

        row = QHBoxLayout()
        add_btn = QPushButton("Add to Bank")
        add_btn.clicked.connect(self._on_add_to_bank)
        delete_btn = QPushButton("Delete from Bank")
        delete_btn.clicked.connect(self._on_delete_from_bank)
        row.addWidget(add_btn)
        row.addWidget(delete_btn)
        layout.addLayout(row)
        return tab

    def _refresh_bank(self) -> None:
        self.bank_list.clear()
        for song in self.bank_songs:
            self.bank_list.addItem(f"{song.title}  ({song_caption(song)})")

    def _save_bank(self) -> None:
        if not self.bank.save(self.bank_songs):
            QMessageBox.warning(self, "Save Error", "Could not save the song bank.")
        self._refresh_bank()

    def _on_add_to_bank(self) -> None:
        song = self.bank_song_form.build_song()
        if song is None:
            return
        self.bank_songs = self.bank_songs + [song]
        self._save_bank()
        self.bank_song_form.clear_title()

    def _on_delete_from_bank(self) -> None:
        row = self.bank_list.currentRow()
        if not 0 <= row < len(self.bank_songs):
            return
        answer = QMessageBox.question(self, "Delete Song", "Delete song from bank?")
        if answer != QMessageBox.StandardButton.Yes:
            return
        self.bank_songs = remove_song(self.bank_songs, row)
        self._save_bank()


class SoundSettingsDialog(QDialog):
    """Accent / beat sound pickers. Loading is delegated to the window (async decode)."""

    import_requested = pyqtSignal(object, str)   # role, path
    clear_requested = pyqtSignal(object)         # role
    volume_changed = pyqtSignal(int)             # 0-100

    ROLE_LABELS = {
        WaveformRole.ACCENT: "Accent Sound (Downbeat)",
        WaveformRole.BEAT: "Beat Sound",
    }

    def __init__(self, config: Config, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Sound Settings")
        self.config = config
        self._buttons: dict[WaveformRole, QPushButton] = {}

        layout = QVBoxLayout(self)
        group = QGroupBox("Sounds")
        grid = QGridLayout(group)
        for row, role in enumerate((WaveformRole.ACCENT, WaveformRole.BEAT)):
            grid.addWidget(QLabel(self.ROLE_LABELS[role]), row, 0)
            load_btn = QPushButton()
            load_btn.clicked.connect(lambda _checked=False, r=role: self._on_import(r))
            clear_btn = QPushButton("Clear")
            clear_btn.clicked.connect(lambda _checked=False, r=role: self.clear_requested.emit(r))
            grid.addWidget(load_btn, row, 1)
            grid.addWidget(clear_btn, row, 2)
            self._buttons[role] = load_btn
        layout.addWidget(group)

        volume_row = QHBoxLayout()
        volume_row.addWidget(QLabel("Volume"))
        self.volume_slider = QSlider(Qt.Orientation.Horizontal)
        self.volume_slider.setRange(0, 100)
        self.volume_slider.setValue(int(round(config.audio.volume * 100)))
        self.volume_slider.valueChanged.connect(self.volume_changed.emit)
        volume_row.addWidget(self.volume_slider)
        layout.addLayout(volume_row)

        hint = QLabel("Supports .wav, .mp3, .ogg, .flac")
        hint.setStyleSheet("color: #aaa;")
        layout.addWidget(hint)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Close)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)
        self.refresh()

    def refresh(self) -> None:
        for role, button in self._buttons.items():
            path, name = saved_sound(self.config, role)
            button.setText(name or ("Custom" if path else "Load File"))

    def _on_import(self, role: WaveformRole) -> None:
        path, _ = QFileDialog.getOpenFileName(self, self.ROLE_LABELS[role], "", AUDIO_FILE_FILTER)
        if path:
            self.import_requested.emit(role, path)


class ClickonomeWindow(QMainWindow):
    """Main application window"""

    def __init__(self, config: Optional[Config] = None, engine: Optional[MetronomeEngine] = None,
                 sink=None, timers: Optional[QtTimerService] = None,
                 library_dir: Optional[Path] = None):
        super().__init__()

        self.config = config or load_config()
        set_log_level(getattr(self.config, 'log_level', 'INFO'))
        self.signals = SignalBridge()

        self.timers = timers or QtTimerService(self)
        self.sink = sink or ensure_audio_sink(None, self.config)
        self.engine = engine or MetronomeEngine(self.sink, self.timers, self.config)

        self.setlist_store, self.song_bank = open_library(library_dir)
        self.setlist_cursor = SetlistCursor()
        self._sound_dialog: Optional[SoundSettingsDialog] = None

        self.setWindowTitle(window_title(None))
        self.setMinimumSize(360, 560)
        self.resize(self.config.ui.window_width, self.config.ui.window_height)
        self.setStyleSheet(self._get_stylesheet())

        self._setup_ui()
        self._apply_engine_to_ui()

        self.signals.sound_loaded.connect(self._on_sound_loaded)
        self.engine.set_on_beat(self._on_beat)

        restore_saved_sounds(self.engine, self.config)
        self._restore_last_setlist()

    def _get_stylesheet(self) -> str:
        return """
            QMainWindow, QWidget, QDialog {
                background-color: #3d3d3d;
                color: #e0e0e0;
            }

            QPushButton {
                background-color: #565d7f;
                color: #ffffff;
                border: none;
                border-radius: 4px;
                padding: 5px 15px;
            }

            QPushButton:hover {
                background-color: #6d6d8f;
            }

            QPushButton:pressed {
                background-color: #4a4d6f;
            }

            QPushButton:disabled {
                background-color: #424242;
                color: #757575;
            }

            QListWidget, QLineEdit, QSpinBox, QComboBox {
                background-color: #2d2d2d;
                border: 1px solid #5d5d5d;
                border-radius: 3px;
                color: #e0e0e0;
            }

            QListWidget::item:selected {
                background-color: #565d7f;
            }

            QSlider::groove:horizontal {
                height: 6px;
                background: #2d2d2d;
                border-radius: 3px;
            }

            QSlider::handle:horizontal {
                background: #00aaff;
                width: 16px;
                margin: -6px 0;
                border-radius: 8px;
            }
        """

    def _setup_ui(self) -> None:
        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)

        menu = self.menuBar()
        setlist_action = menu.addAction("Setlists")
        setlist_action.triggered.connect(self._on_open_setlists)
        sound_action = menu.addAction("Sound Settings")
        sound_action.triggered.connect(self._on_open_sound_settings)

        self.song_label = QLabel("")
        self.song_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.song_label.setStyleSheet("color: #aaa;")
        layout.addWidget(self.song_label)

        self.bpm_label = QLabel("120")
        self.bpm_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.bpm_label.setStyleSheet("font-size: 56px; font-weight: bold; color: #ffffff;")
        layout.addWidget(self.bpm_label)
        bpm_caption = QLabel("BPM")
        bpm_caption.setAlignment(Qt.AlignmentFlag.AlignCenter)
        bpm_caption.setStyleSheet("color: #0af;")
        layout.addWidget(bpm_caption)

        sig_row = QHBoxLayout()
        self.beats_spin = QSpinBox()
        self.beats_spin.setRange(BEATS_PER_BAR_MIN, BEATS_PER_BAR_MAX)
        self.beats_spin.valueChanged.connect(self._on_beats_changed)
        self.note_combo = QComboBox()
        self.note_combo.addItems([str(v) for v in NOTE_VALUES])
        self.note_combo.currentTextChanged.connect(self._on_note_value_changed)
        sig_row.addStretch()
        sig_row.addWidget(self.beats_spin)
        sig_row.addWidget(QLabel("/"))
        sig_row.addWidget(self.note_combo)
        sig_row.addStretch()
        layout.addLayout(sig_row)

        self.beat_indicator = BeatIndicator()
        self.beat_indicator.accent_clicked.connect(self._on_accent_clicked)
        layout.addWidget(self.beat_indicator)

        transport = QHBoxLayout()
        self.prev_btn = QPushButton("⏮")
        self.prev_btn.clicked.connect(self._on_prev_song)
        self.play_btn = QPushButton()
        self.play_btn.setMinimumHeight(44)
        self.play_btn.clicked.connect(self._on_toggle_play)
        self.next_btn = QPushButton("⏭")
        self.next_btn.clicked.connect(self._on_next_song)
        transport.addWidget(self.prev_btn)
        transport.addWidget(self.play_btn, 2)
        transport.addWidget(self.next_btn)
        layout.addLayout(transport)

        self.setlist_strip = QListWidget()
        self.setlist_strip.setMaximumHeight(140)
        self.setlist_strip.itemClicked.connect(lambda _item: self._on_jump_to_song(self.setlist_strip.currentRow()))
        layout.addWidget(self.setlist_strip)

        self.bpm_slider = QSlider(Qt.Orientation.Horizontal)
        self.bpm_slider.setRange(BPM_MIN, BPM_MAX)
        self.bpm_slider.valueChanged.connect(self._on_bpm_changed)
        layout.addWidget(self.bpm_slider)

        self.tap_btn = QPushButton("TAP")
        self.tap_btn.setMinimumHeight(40)
        self.tap_btn.clicked.connect(self._on_tap)
        layout.addWidget(self.tap_btn)

        self.status_label = QLabel("")
        self.status_label.setStyleSheet("color: #aaa;")
        layout.addWidget(self.status_label)

        QShortcut(QKeySequence("Space"), self).activated.connect(self._on_toggle_play)
        QShortcut(QKeySequence("T"), self).activated.connect(self._on_tap)

    # --- Engine <-> UI sync ---

    def _apply_engine_to_ui(self) -> None:
        state = self.engine.state()
        for widget in (self.bpm_slider, self.beats_spin, self.note_combo):
            widget.blockSignals(True)
        self.bpm_slider.setValue(int(round(state.bpm)))
        self.beats_spin.setValue(state.beats_per_bar)
        self.note_combo.setCurrentText(str(state.note_value))
        for widget in (self.bpm_slider, self.beats_spin, self.note_combo):
            widget.blockSignals(False)
        self.bpm_label.setText(str(int(round(state.bpm))))
        self.beat_indicator.set_pattern(state.accent_pattern)
        self._update_transport_ui()

    def _update_transport_ui(self) -> None:
        ui = start_stop_ui_state(self.engine.is_playing)
        self.play_btn.setText(ui.play_text)
        self.beat_indicator.set_show_progress(ui.show_progress)
        self.status_label.setText(ui.status_text)
        has_setlist = self.setlist_cursor.setlist is not None
        self.prev_btn.setEnabled(has_setlist)
        self.next_btn.setEnabled(has_setlist)

    def _on_beat(self, beat_index: int, level: Level) -> None:
        self.beat_indicator.set_current_beat(beat_index)

    def _on_toggle_play(self) -> None:
        playing = self.engine.toggle()
        if not playing:
            self.beat_indicator.set_current_beat(-1)
        self._update_transport_ui()

    def _on_bpm_changed(self, value: int) -> None:
        if self.engine.set_bpm(value):
            self.bpm_label.setText(str(value))

    def _on_tap(self) -> None:
        bpm = self.engine.tap()
        if bpm is not None:
            self.bpm_slider.setValue(bpm)

    def _on_beats_changed(self, value: int) -> None:
        if self.engine.set_beats_per_bar(value):
            self.beat_indicator.set_pattern(self.engine.pattern)

    def _on_note_value_changed(self, text: str) -> None:
        try:
            self.engine.set_note_value(int(text))
        except ValueError:
            log_event("WARN", "UI", "Ignoring note value", value=text)

    def _on_accent_clicked(self, index: int) -> None:
        self.engine.cycle_accent(index)
        self.beat_indicator.set_pattern(self.engine.pattern)

    # --- Setlists ---

    def _restore_last_setlist(self) -> None:
        name = self.config.ui.last_setlist
        if not name:
            return
        setlist = self.setlist_store.load_setlist(name)
        if setlist is None:
            log_event("INFO", "UI", "Last setlist no longer exists", name=name)
            return
        self._show_setlist(setlist, self.config.ui.last_song_index, apply=False)

    def _show_setlist(self, setlist: Setlist, index: int, apply: bool = True) -> None:
        song = self.setlist_cursor.load(setlist, index)
        self.setWindowTitle(window_title(setlist.name))
        self.setlist_strip.clear()
        for song_item in setlist.songs:
            self.setlist_strip.addItem(f"{song_item.title}  {song_caption(song_item)}")
        if apply and song is not None:
            self._play_song(song)
        else:
            self._highlight_song()
        self._update_transport_ui()

    def _play_song(self, song: Optional[Song]) -> None:
        if song is None:
            return
        self.engine.apply_song(song)
        self._apply_engine_to_ui()
        self._highlight_song()

    def _highlight_song(self) -> None:
        song = self.setlist_cursor.current
        self.song_label.setText(song.title if song else "")
        self.setlist_strip.setCurrentRow(self.setlist_cursor.index if song else -1)

    def _on_prev_song(self) -> None:
        self._play_song(self.setlist_cursor.prev())

    def _on_next_song(self) -> None:
        self._play_song(self.setlist_cursor.next())

    def _on_jump_to_song(self, index: int) -> None:
        self._play_song(self.setlist_cursor.jump(index))

    def _on_open_setlists(self) -> None:
        state = self.engine.state()
        dialog = SetlistDialog(self.setlist_store, self.song_bank,
                               int(round(state.bpm)), state.beats_per_bar, state.note_value, self)
        dialog.song_selected.connect(self._show_setlist)
        dialog.exec()

    # --- Sounds ---

    def _on_open_sound_settings(self) -> None:
        dialog = SoundSettingsDialog(self.config, self)
        dialog.import_requested.connect(self._on_import_sound)
        dialog.clear_requested.connect(self._on_clear_sound)
        dialog.volume_changed.connect(self._on_volume_changed)
        self._sound_dialog = dialog
        dialog.exec()
        self._sound_dialog = None
        save_config(self.config)

    def _on_volume_changed(self, percent: int) -> None:
        apply_volume(self.sink, self.config, percent)

    def _on_import_sound(self, role: WaveformRole, path: str) -> None:
        audio_file = start_sound_import(self.engine, role, path, self.signals.sound_loaded.emit)
        if audio_file is None:
            QMessageBox.warning(self, "Sound Error", f"Could not read {path}")
            return
        self.status_label.setText(f"Loading {audio_file.name}…")

    def _on_sound_loaded(self, role: WaveformRole, ok: bool, audio_file: AudioFile) -> None:
        self._update_transport_ui()
        if not finish_sound_import(self.config, role, audio_file, ok):
            QMessageBox.warning(self, "Sound Error",
                                f"Could not decode {audio_file.name}. The previous sound is kept.")
            return
        save_config(self.config)
        if self._sound_dialog is not None:
            self._sound_dialog.refresh()

    def _on_clear_sound(self, role: WaveformRole) -> None:
        self.engine.store.clear(role)
        forget_sound(self.config, role)
        save_config(self.config)
        if self._sound_dialog is not None:
            self._sound_dialog.refresh()

    def closeEvent(self, event):
        """Stop the engine and release audio before persisting UI state"""
        shutdown_runtime(self.engine, self.sink)
        self.timers.cancel_all()
        persist_runtime_ui_to_config(self, self.config)
        save_config(self.config)
        event.accept()


def main():
    """Main entry point - backup if not launched via run.py"""
    app = QApplication(sys.argv)
    app.setStyle('Fusion')
    window = ClickonomeWindow()
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
