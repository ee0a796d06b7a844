from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from .constants import DEFAULT_MAX_TEXT_LENGTH, MAX_PARALLEL_WORKERS
from .merger import merge_audio_binary, remove_mp3_header
from .phonemes import PhonemeData, merge_phoneme_data
from .pronunciation import apply_pronunciation_dictionary
from .split_text import chunk_text
from .tts_engine import SynthesisResult, TtsEngine

logger = logging.getLogger(__name__)

__all__ = [
    "ChunkSynthesis",
    "LongTextResult",
    "LongTextSynthesizer",
    "SynthesisConfig",
]


@dataclass
class SynthesisConfig:
    """
    Configuration describing how long text is chunked, synthesized and merged.
    """

    max_text_length: int = DEFAULT_MAX_TEXT_LENGTH
    output_format: str = "wav"
    include_phonemes: bool = False
    max_workers: int = 1
    max_retries: int = 3
    initial_retry_delay: float = 0.5
    retry_backoff_factor: float = 2.0
    strip_mp3_tags: bool = True

    def __post_init__(self) -> None:
        self.output_format = self.output_format.lower()
        if self.output_format not in ("wav", "mp3"):
            raise ValueError(f"Unsupported output format: {self.output_format}")
        if self.max_text_length <= 0:
            raise ValueError("max_text_length must be positive.")
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1.")
        self.max_workers = min(max(1, self.max_workers), MAX_PARALLEL_WORKERS)


@dataclass
class ChunkSynthesis:
    index: int
    text: str
    audio_bytes: int
    retries: int
    phoneme_count: int


@dataclass
class LongTextResult:
    audio: bytes
    output_format: str
    phonemes: Optional[PhonemeData] = None
    chunks: List[ChunkSynthesis] = field(default_factory=list)

    @property
    def total_retries(self) -> int:
        return sum(chunk.retries for chunk in self.chunks)


class LongTextSynthesizer:
    """
    Runs text through pronunciation substitution and chunking, synthesizes each
    chunk with retries and reassembles one audio buffer and one phoneme timeline.

    Chunks may be synthesized concurrently but results are always merged in
    chunk order.
    """

    def __init__(self, engine: TtsEngine, config: Optional[SynthesisConfig] = None) -> None:
        self.engine = engine
        self.config = config or SynthesisConfig()

    def synthesize(self, text: str, pronunciation_dictionary: Optional[Any] = None) -> LongTextResult:
        prepared = apply_pronunciation_dictionary(text, pronunciation_dictionary)
        chunks = chunk_text(prepared, self.config.max_text_length)
        logger.info(
            "Synthesizing %d chars as %d chunk(s) (max_length=%d, format=%s).",
            len(prepared),
            len(chunks),
            self.config.max_text_length,
            self.config.output_format,
        )

        results = self._synthesize_chunks(chunks)
        records = [
            ChunkSynthesis(
                index=idx,
                text=chunk,
                audio_bytes=len(result.audio),
                retries=retries,
                phoneme_count=len(result.phonemes) if result.phonemes else 0,
            )
            for idx, (chunk, (result, retries)) in enumerate(zip(chunks, results))
        ]
        synthesized = [result for result, _ in results]

        if len(synthesized) == 1:
            only = synthesized[0]
            return LongTextResult(
                audio=only.audio,
                output_format=self.config.output_format,
                phonemes=only.phonemes,
                chunks=records,
            )

        audio = merge_audio_binary(self._prepare_audio(synthesized), self.config.output_format)
        phonemes = None
        if self.config.include_phonemes:
            phonemes = merge_phoneme_data(result.phonemes for result in synthesized)

        logger.info("Merged %d chunks into %d bytes.", len(synthesized), len(audio))
        return LongTextResult(
            audio=audio,
            output_format=self.config.output_format,
            phonemes=phonemes,
            chunks=records,
        )

    def _synthesize_chunks(self, chunks: Sequence[str]) -> List[tuple[SynthesisResult, int]]:
        if self.config.max_workers <= 1 or len(chunks) <= 1:
            return [self._synthesize_with_retry(chunk) for chunk in chunks]

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            # map() yields in submission order regardless of completion order.
            return list(executor.map(self._synthesize_with_retry, chunks))

    def _prepare_audio(self, results: Sequence[SynthesisResult]) -> List[bytes]:
        audio = [result.audio for result in results]
        if self.config.output_format == "mp3" and self.config.strip_mp3_tags:
            audio = [audio[0]] + [remove_mp3_header(chunk) for chunk in audio[1:]]
        return audio

    def _synthesize_with_retry(self, text: str) -> tuple[SynthesisResult, int]:
        delay = self.config.initial_retry_delay
        attempt = 0
        retries = 0
        while True:
            try:
                result = self.engine.synthesize(
                    text,
                    output_format=self.config.output_format,
                    include_phonemes=self.config.include_phonemes,
                )
                return result, retries
            except Exception:
                attempt += 1
                if attempt >= self.config.max_retries:
                    logger.error("Synthesis permanently failed after %d attempts.", attempt)
                    raise
                retries += 1
                logger.warning(
                    "Synthesis failed (attempt %d/%d). Retrying in %.2fs.",
                    attempt,
                    self.config.max_retries,
                    delay,
                )
                time.sleep(delay)
                delay *= self.config.retry_backoff_factor
