"""
Long-text TTS utilities.

This package exposes the building blocks used to send text longer than a
backend's request limit and stitch the answers back together:

- Multilingual sentence-aware text chunking (`split_text`).
- Pronunciation dictionary substitution (`pronunciation`).
- WAV/MP3 binary merging and header helpers (`merger`).
- Phoneme timeline merging (`phonemes`).
- JSON/NDJSON response decoding (`responses`).
- Engine abstractions (`tts_engine`) and the chunk-synthesize-merge driver (`synthesizer`).
- Metadata helpers (`metadata`).
"""

from .constants import DEFAULT_MAX_TEXT_LENGTH
from .split_text import (
    chunk_text,
    split_by_characters,
    split_by_words,
    split_oversized_chunk,
)
from .pronunciation import (
    PronunciationDictionaryValidationError,
    PronunciationRule,
    apply_pronunciation_dictionary,
    load_pronunciation_dictionary,
    validate_pronunciation_dictionary,
)
from .merger import (
    WavFormat,
    WavFormatError,
    detect_audio_format,
    merge_audio_binary,
    merge_mp3_binary,
    merge_wav_binary,
    remove_mp3_header,
    remove_wav_header,
)
from .phonemes import (
    PhonemeData,
    adjust_phoneme_timing,
    create_empty_phoneme_data,
    merge_phoneme_data,
)
from .responses import (
    extract_audio_from_ndjson,
    extract_audio_from_response,
    extract_audio_from_responses,
    extract_phonemes_from_ndjson,
)
from .tts_engine import MockTtsEngine, SynthesisError, SynthesisResult, TtsEngine
from .synthesizer import LongTextResult, LongTextSynthesizer, SynthesisConfig
from .metadata import MetadataBuilder

__all__ = [
    "DEFAULT_MAX_TEXT_LENGTH",
    "chunk_text",
    "split_by_characters",
    "split_by_words",
    "split_oversized_chunk",
    "PronunciationDictionaryValidationError",
    "PronunciationRule",
    "apply_pronunciation_dictionary",
    "load_pronunciation_dictionary",
    "validate_pronunciation_dictionary",
    "WavFormat",
    "WavFormatError",
    "detect_audio_format",
    "merge_audio_binary",
    "merge_mp3_binary",
    "merge_wav_binary",
    "remove_mp3_header",
    "remove_wav_header",
    "PhonemeData",
    "adjust_phoneme_timing",
    "create_empty_phoneme_data",
    "merge_phoneme_data",
    "extract_audio_from_ndjson",
    "extract_audio_from_response",
    "extract_audio_from_responses",
    "extract_phonemes_from_ndjson",
    "TtsEngine",
    "MockTtsEngine",
    "SynthesisError",
    "SynthesisResult",
    "LongTextResult",
    "LongTextSynthesizer",
    "SynthesisConfig",
    "MetadataBuilder",
]
