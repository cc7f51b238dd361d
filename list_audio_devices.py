#!/usr/bin/env python3
"""List audio output devices usable for the click (index goes in audio.device_index)"""
from device_sink import list_output_devices


def print_output_devices() -> None:
    print("Available Output Devices:\n")
    for d in list_output_devices():
        print(f"[{d['index']}] {d['name']}")
        print(f"    Output: {d['channels']} channels")
        print(f"    Default SR: {d['default_samplerate']} Hz")
        print()


if __name__ == "__main__":
    print_output_devices()
