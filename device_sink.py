"""
Clickonome - Sound Device Sink
Plays scheduled voices through a sounddevice output stream.
The stream's rendered-frame count is the engine's monotonic clock.
"""

from typing import Optional

import numpy as np
import sounddevice as sd

from audio_sink import VoiceMixer
from config import AudioConfig
from logging_utils import log_event


class SoundDeviceSink:
    """Output stream + VoiceMixer. The stream opens lazily on first resume()."""

    def __init__(self, audio_config: AudioConfig):
        self.config = audio_config
        self.sample_rate = int(audio_config.sample_rate)
        self.channels = max(1, int(audio_config.channels))
        self.volume = float(audio_config.volume)
        self.mixer = VoiceMixer(self.sample_rate)
        self.stream: Optional[sd.OutputStream] = None
        self.underflows = 0

    def now(self) -> float:
        return self.mixer.now()

    def resume(self) -> None:
        """Open the stream if needed and start it when suspended."""
        if self.stream is None:
            self.stream = sd.OutputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype='float32',
                blocksize=self.config.blocksize,
                latency=self.config.latency,
                device=self.config.device_index,
                callback=self._callback,
            )
            log_event("INFO", "AudioSink", "Output stream opened",
                      sample_rate=self.sample_rate, channels=self.channels,
                      blocksize=self.config.blocksize, latency=f"{self.stream.latency:.4f}")
        if not self.stream.active:
            self.stream.start()
            log_event("INFO", "AudioSink", "Output stream started")

    def schedule(self, samples: np.ndarray, start_time: float, gain: float = 1.0) -> None:
        self.mixer.schedule(samples, start_time, gain)

    def cancel_unstarted(self) -> int:
        return self.mixer.cancel_unstarted()

    def set_volume(self, volume: float) -> None:
        self.volume = max(0.0, min(1.0, float(volume)))

    def close(self) -> None:
        if self.stream is None:
            return
        try:
            self.stream.stop()
            self.stream.close()
        except sd.PortAudioError as e:
            log_event("WARN", "AudioSink", "Error closing stream", error=e)
        self.stream = None
        if self.underflows:
            log_event("INFO", "AudioSink", "Closed", underflows=self.underflows)
        else:
            log_event("INFO", "AudioSink", "Closed")

    def _callback(self, outdata, frames, time_info, status):
        if status.output_underflow:
            self.underflows += 1
        mix = self.mixer.render(frames)
        mix *= self.volume
        np.clip(mix, -1.0, 1.0, out=mix)
        outdata[:] = mix.reshape(-1, 1)


def list_output_devices() -> list[dict]:
    """Return output-capable devices as plain dicts."""
    devices = []
    for i, d in enumerate(sd.query_devices()):
        if d['max_output_channels'] <= 0:
            continue
        devices.append({
            'index': i,
            'name': d['name'],
            'channels': d['max_output_channels'],
            'default_samplerate': d['default_samplerate'],
        })
    return devices
