import struct

import numpy as np
import pytest

from adstory.audio import (
    WAV_HEADER_SIZE,
    AudioPlaybackAdapter,
    pcm_to_wav,
    pcm_to_waveform,
    wav_to_pcm,
)


def test_wav_header_is_byte_exact():
    pcm = b"\x01\x00" * 50  # 100 bytes
    wav = pcm_to_wav(pcm, 24000)

    assert len(wav) == WAV_HEADER_SIZE + 100
    header = wav[:WAV_HEADER_SIZE]
    assert header[0:4] == b"RIFF"
    assert struct.unpack("<I", header[4:8])[0] == 136
    assert header[8:12] == b"WAVE"
    assert header[12:16] == b"fmt "
    assert struct.unpack("<I", header[16:20])[0] == 16
    assert struct.unpack("<H", header[20:22])[0] == 1
    assert struct.unpack("<H", header[22:24])[0] == 1
    assert struct.unpack("<I", header[24:28])[0] == 24000
    assert struct.unpack("<I", header[28:32])[0] == 48000
    assert struct.unpack("<H", header[32:34])[0] == 2
    assert struct.unpack("<H", header[34:36])[0] == 16
    assert header[36:40] == b"data"
    assert struct.unpack("<I", header[40:44])[0] == 100
    assert wav[WAV_HEADER_SIZE:] == pcm


def test_wav_round_trip():
    pcm = np.array([0, 1000, -1000, 32767, -32768], dtype="<i2").tobytes()
    frames, rate = wav_to_pcm(pcm_to_wav(pcm, 22050))
    assert frames == pcm
    assert rate == 22050


def test_empty_pcm_gives_header_only():
    wav = pcm_to_wav(b"")
    assert len(wav) == WAV_HEADER_SIZE
    assert struct.unpack("<I", wav[4:8])[0] == 36


def test_waveform_scaling():
    pcm = np.array([0, 16384, -32768], dtype="<i2").tobytes()
    wave = pcm_to_waveform(pcm)
    assert wave.dtype == np.float32
    assert wave.tolist() == [0.0, 0.5, -1.0]


def test_waveform_drops_odd_trailing_byte():
    pcm = np.array([16384], dtype="<i2").tobytes() + b"\x7f"
    assert pcm_to_waveform(pcm).tolist() == [0.5]


def test_playback_goes_to_sink():
    played = []
    adapter = AudioPlaybackAdapter(sink=lambda wave, rate: played.append((len(wave), rate)))
    adapter.play(b"\x00\x00" * 10)
    assert played == [(10, 24000)]


def test_playback_without_sink_still_decodes():
    adapter = AudioPlaybackAdapter()
    assert len(adapter.play(b"\x00\x00" * 4)) == 4
    assert adapter.duration(b"\x00\x00" * 24000) == pytest.approx(1.0)
