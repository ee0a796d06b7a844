from __future__ import annotations

import io
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

from pydub import AudioSegment

from .merger import WavFormat, detect_audio_format
from .phonemes import PhonemeData

logger = logging.getLogger(__name__)

__all__ = [
    "MockTtsEngine",
    "SynthesisError",
    "SynthesisResult",
    "TtsEngine",
]

SUPPORTED_FORMATS = ("wav", "mp3")


class SynthesisError(RuntimeError):
    """Raised by an engine when a single synthesis request fails."""


@dataclass
class SynthesisResult:
    audio: bytes
    phonemes: Optional[PhonemeData] = None


class TtsEngine(ABC):
    """
    Thin abstraction over a text-to-speech backend returning encoded audio bytes.
    """

    def __init__(
        self,
        *,
        expected_sample_rate: Optional[int] = None,
        expected_channels: Optional[int] = None,
        expected_sample_width: Optional[int] = None,
    ) -> None:
        self.expected_sample_rate = expected_sample_rate
        self.expected_channels = expected_channels
        self.expected_sample_width = expected_sample_width

    @abstractmethod
    def synthesize(
        self,
        text: str,
        *,
        output_format: str = "wav",
        include_phonemes: bool = False,
    ) -> SynthesisResult:
        """
        Convert one chunk of text into a WAV or MP3 buffer, optionally with phoneme timings.
        """

    def descriptor(self) -> str:
        return self.__class__.__name__

    def _validate_wav(self, audio: bytes) -> bytes:
        """
        Ensures WAV output sticks to the expected format.

        The first call establishes the reference format unless the engine was initialised
        with explicit expectations. Subsequent calls must match.
        """
        if detect_audio_format(audio) != "wav":
            raise SynthesisError(f"Engine {self.descriptor()} returned non-WAV data for a WAV request")

        wav_format = WavFormat.from_header(audio)
        sample_width = wav_format.bits_per_sample // 8

        if self.expected_sample_rate is None:
            self.expected_sample_rate = wav_format.sample_rate
        elif wav_format.sample_rate != self.expected_sample_rate:
            raise SynthesisError(
                f"Engine {self.descriptor()} returned sample rate {wav_format.sample_rate}, "
                f"expected {self.expected_sample_rate}"
            )

        if self.expected_channels is None:
            self.expected_channels = wav_format.channels
        elif wav_format.channels != self.expected_channels:
            raise SynthesisError(
                f"Engine {self.descriptor()} returned channels {wav_format.channels}, "
                f"expected {self.expected_channels}"
            )

        if self.expected_sample_width is None:
            self.expected_sample_width = sample_width
        elif sample_width != self.expected_sample_width:
            raise SynthesisError(
                f"Engine {self.descriptor()} returned sample width {sample_width}, "
                f"expected {self.expected_sample_width}"
            )

        return audio


class MockTtsEngine(TtsEngine):
    """
    Lightweight mock for tests and dry runs. Generates silent audio of predictable length.

    ``failures`` maps a chunk text to the number of times its synthesis should
    fail before succeeding. ``clock_offset_seconds`` is added to every phoneme
    start time to imitate a backend that reports times on its own clock.
    """

    def __init__(
        self,
        *,
        base_duration_ms: int = 200,
        per_char_ms: int = 50,
        sample_rate: int = 22050,
        channels: int = 1,
        sample_width: int = 2,
        clock_offset_seconds: float = 0.0,
        failures: Optional[Dict[str, int]] = None,
    ) -> None:
        super().__init__(
            expected_sample_rate=sample_rate,
            expected_channels=channels,
            expected_sample_width=sample_width,
        )
        self._base_duration_ms = base_duration_ms
        self._per_char_ms = per_char_ms
        self._clock_offset_seconds = clock_offset_seconds
        self._failures = dict(failures or {})
        self._lock = threading.Lock()
        self.requests: List[str] = []

    def synthesize(
        self,
        text: str,
        *,
        output_format: str = "wav",
        include_phonemes: bool = False,
    ) -> SynthesisResult:
        fmt = output_format.lower()
        if fmt not in SUPPORTED_FORMATS:
            raise SynthesisError(f"Unsupported output format: {output_format}")

        with self._lock:
            self.requests.append(text)
            remaining = self._failures.get(text, 0)
            if remaining:
                self._failures[text] = remaining - 1
                raise SynthesisError(f"Scripted failure for {text!r}")

        duration_ms = self.duration_for(text)
        if fmt == "wav":
            audio = self._validate_wav(self._silent_wav(duration_ms))
        else:
            audio = self._fake_mp3(duration_ms)

        phonemes = self._fake_phonemes(text) if include_phonemes else None
        logger.debug("Mock synthesized %d chars into %d %s bytes.", len(text), len(audio), fmt)
        return SynthesisResult(audio=audio, phonemes=phonemes)

    def duration_for(self, text: str) -> int:
        return self._base_duration_ms + len(text) * self._per_char_ms

    def _silent_wav(self, duration_ms: int) -> bytes:
        segment = AudioSegment.silent(duration=duration_ms, frame_rate=self.expected_sample_rate)  # type: ignore[arg-type]
        segment = segment.set_channels(self.expected_channels or 1)
        segment = segment.set_sample_width(self.expected_sample_width or 2)
        buffer = io.BytesIO()
        segment.export(buffer, format="wav")
        return buffer.getvalue()

    @staticmethod
    def _fake_mp3(duration_ms: int) -> bytes:
        # ID3v2.4 header with an empty tag, followed by one zeroed MPEG-1 Layer III
        # frame (128 kbps, 44.1 kHz, 417 bytes) per ~26 ms of audio.
        tag = b"ID3\x04\x00\x00\x00\x00\x00\x00"
        frame = b"\xff\xfb\x90\x00" + b"\x00" * 413
        frames = max(1, duration_ms // 26)
        return tag + frame * frames

    def _fake_phonemes(self, text: str) -> PhonemeData:
        symbols = [char for char in text if not char.isspace()]
        step = self._per_char_ms / 1000.0
        lead = self._base_duration_ms / 1000.0 / 2
        return PhonemeData(
            symbols=symbols,
            durations_seconds=[step] * len(symbols),
            start_times_seconds=[self._clock_offset_seconds + lead + i * step for i in range(len(symbols))],
        )
