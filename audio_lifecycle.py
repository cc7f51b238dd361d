from typing import Callable, Optional

from audio_sink import NullAudioSink
from config import Config
from logging_utils import log_event


def _default_sink_factory(config: Config):
    # sounddevice loads PortAudio at import time, keep it out of module import
    from device_sink import SoundDeviceSink
    return SoundDeviceSink(config.audio)


def ensure_audio_sink(
    existing_sink,
    config: Config,
    *,
    force_new: bool = False,
    sink_factory: Optional[Callable[[Config], object]] = None,
):
    """Return a usable sink: the existing one, a new device sink, or a silent
    NullAudioSink when the output device cannot be opened."""
    if existing_sink is not None and not force_new:
        return existing_sink

    factory = sink_factory or _default_sink_factory
    try:
        sink = factory(config)
        sink.resume()
        return sink
    except Exception as e:
        # PortAudio failures surface as OSError or sd.PortAudioError
        log_event("ERROR", "AudioSink", "Output device unavailable, running silent", error=e)
        return NullAudioSink(config.audio.sample_rate)


def close_audio_sink(sink) -> None:
    if sink is not None:
        sink.close()
