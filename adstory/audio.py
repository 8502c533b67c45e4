"""PCM16 speech payloads: playback waveform and WAV export.

Speech comes back from the provider as raw little-endian 16-bit signed PCM,
mono, at SAMPLE_RATE. Nothing here touches the network or the filesystem.
"""
from __future__ import annotations

import io
import logging
import struct
import wave
from typing import Callable

import numpy as np

from .config import SAMPLE_RATE

log = logging.getLogger(__name__)

WAV_HEADER_SIZE = 44

# Receives (waveform, sample_rate); the host decides how to play it.
PlaybackSink = Callable[[np.ndarray, int], None]


def pcm_to_waveform(pcm: bytes) -> np.ndarray:
    """Decode PCM16 into float32 samples in [-1.0, 1.0)."""
    if len(pcm) % 2:
        log.warning("PCM buffer has odd length %d, dropping last byte", len(pcm))
        pcm = pcm[:-1]
    samples = np.frombuffer(pcm, dtype="<i2")
    return samples.astype(np.float32) / 32768.0


def pcm_to_wav(pcm: bytes, sample_rate: int = SAMPLE_RATE) -> bytes:
    """Wrap PCM16 mono in a canonical 44-byte RIFF/WAVE header."""
    length = len(pcm)
    header = struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        36 + length,
        b"WAVE",
        b"fmt ",
        16,               # fmt chunk size
        1,                # PCM
        1,                # mono
        sample_rate,
        sample_rate * 2,  # byte rate
        2,                # block align
        16,               # bits per sample
        b"data",
        length,
    )
    return header + pcm


def wav_to_pcm(data: bytes) -> tuple[bytes, int]:
    """Extract the raw PCM frames and sample rate from a WAV file."""
    with wave.open(io.BytesIO(data), "rb") as wf:
        if wf.getsampwidth() != 2:
            raise ValueError(f"Expected 16-bit samples, got {wf.getsampwidth() * 8}-bit")
        return wf.readframes(wf.getnframes()), wf.getframerate()


class AudioPlaybackAdapter:
    """Turns speech payloads into something the host can play or save."""

    def __init__(self, sink: PlaybackSink | None = None, sample_rate: int = SAMPLE_RATE) -> None:
        self.sink = sink
        self.sample_rate = sample_rate

    def play(self, pcm: bytes) -> np.ndarray:
        waveform = pcm_to_waveform(pcm)
        if self.sink is None:
            log.info("No playback sink configured, skipping playback (%d samples)", len(waveform))
        else:
            self.sink(waveform, self.sample_rate)
        return waveform

    def export(self, pcm: bytes) -> bytes:
        return pcm_to_wav(pcm, self.sample_rate)

    def duration(self, pcm: bytes) -> float:
        return len(pcm) / 2 / self.sample_rate
