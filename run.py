#!/usr/bin/env python3
"""
Clickonome - Lookahead Metronome

A sample-accurate metronome with accent patterns, tap tempo, custom click
sounds and setlists.
"""

import argparse
import cProfile
import signal
import sys
import time

from config import BEATS_PER_BAR_MAX, BEATS_PER_BAR_MIN, clamp_bpm
from logging_utils import log_event, set_log_level

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _build_engine(config, timers):
    from audio_lifecycle import ensure_audio_sink
    from metronome_engine import MetronomeEngine

    sink = ensure_audio_sink(None, config)
    engine = MetronomeEngine(sink, timers, config)
    return engine, sink


def apply_tempo_overrides(config, bpm=None, beats=None) -> None:
    """Copy --bpm / --beats into config, clamped to the ranges the UI offers."""
    if bpm is not None:
        config.metronome.bpm = clamp_bpm(bpm)
    if beats is not None:
        config.metronome.beats_per_bar = max(BEATS_PER_BAR_MIN, min(BEATS_PER_BAR_MAX, int(beats)))


def run_headless(app_argv: list[str], args) -> int:
    """Run the engine without a window; beats are reported through the log."""
    from PyQt6.QtCore import QCoreApplication, QTimer

    from config_facade import load_config
    from qt_timers import QtTimerService
    from sound_wiring import restore_saved_sounds
    from transport_wiring import shutdown_runtime

    app = QCoreApplication(app_argv)
    config = load_config()
    if args.log_level is None:
        set_log_level(config.log_level)
    apply_tempo_overrides(config, args.bpm, args.beats)

    timers = QtTimerService(app)
    engine, sink = _build_engine(config, timers)
    engine.apply_config(config)
    restore_saved_sounds(engine, config)
    engine.set_on_beat(lambda index, level: log_event("INFO", "Beat", "Tick", beat=index + 1, level=level.name))

    # Python signal handlers only run between Qt events
    signal.signal(signal.SIGINT, lambda *_: app.quit())
    keepalive = QTimer(app)
    keepalive.timeout.connect(lambda: None)
    keepalive.start(200)

    if args.duration:
        QTimer.singleShot(int(args.duration * 1000), app.quit)

    state = engine.state()
    print(f"[Headless] {state.bpm:g} BPM, {state.beats_per_bar}/{state.note_value}. Ctrl+C to stop.", flush=True)
    engine.start()
    exit_code = app.exec()
    shutdown_runtime(engine, sink)
    timers.cancel_all()
    return exit_code


def run_app(app_argv: list[str], args) -> int:
    t_pyqt = time.perf_counter()
    from PyQt6.QtWidgets import QApplication

    app = QApplication(app_argv)
    app.setStyle("Fusion")
    print(
        f"[Startup] GUI framework loaded (+{(time.perf_counter() - t_pyqt) * 1000:.0f} ms). "
        "Initializing application...",
        flush=True,
    )

    t_main = time.perf_counter()
    from config_facade import load_config
    from main import ClickonomeWindow

    print(
        f"[Startup] Loaded main module (+{(time.perf_counter() - t_main) * 1000:.0f} ms)",
        flush=True,
    )

    config = load_config()
    if args.log_level is not None:
        config.log_level = args.log_level

    print("[Startup] Creating main window...", flush=True)
    window = ClickonomeWindow(config=config)
    window.show()
    return app.exec()


def main() -> None:
    parser = argparse.ArgumentParser(description="Run Clickonome")
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default=None,
        help="Logging verbosity (default: value stored in settings)",
    )
    parser.add_argument(
        "--list-devices",
        action="store_true",
        help="Print audio output devices and exit",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run the metronome without a window",
    )
    parser.add_argument("--bpm", type=int, default=None, help="Tempo for --headless")
    parser.add_argument("--beats", type=int, default=None, help="Beats per bar for --headless")
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Stop --headless after this many seconds",
    )
    parser.add_argument(
        "--profile",
        action="store_true",
        help="Enable cProfile and save stats to --profile-out",
    )
    parser.add_argument(
        "--profile-out",
        default="profile.prof",
        help="Path to save cProfile stats (default: profile.prof)",
    )
    args = parser.parse_args()

    if args.log_level is not None:
        set_log_level(args.log_level)

    if args.list_devices:
        from list_audio_devices import print_output_devices
        print_output_devices()
        sys.exit(0)

    # Keep Qt argument list clean; avoid passing our flags downstream
    app_argv = [sys.argv[0]]
    runner = run_headless if args.headless else run_app

    if args.profile:
        profiler = cProfile.Profile()
        profiler.enable()
        exit_code = runner(app_argv, args)
        profiler.disable()
        profiler.dump_stats(args.profile_out)
    else:
        exit_code = runner(app_argv, args)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
