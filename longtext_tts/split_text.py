from __future__ import annotations

import logging
import re
from typing import List

from .constants import DEFAULT_MAX_TEXT_LENGTH

logger = logging.getLogger(__name__)

__all__ = [
    "SENTENCE_PUNCTUATION",
    "chunk_text",
    "has_spaces",
    "split_by_characters",
    "split_by_words",
    "split_oversized_chunk",
]

# ASCII basics, ellipsis (U+2026, U+2025), CJK fullwidth, Arabic/Urdu,
# Devanagari danda/double danda and the Greek question mark (U+037E).
SENTENCE_PUNCTUATION = ".!?;:\u2026\u2025。！？；：｡、؟؛۔،।॥\u037e"
SENTENCE_SPLIT_PATTERN = re.compile(f"([{re.escape(SENTENCE_PUNCTUATION)}]+\\s*)")
WORD_SPLIT_PATTERN = re.compile(r"(\s+)")
_WHITESPACE_PATTERN = re.compile(r"\s")


def chunk_text(text: str, max_length: int = DEFAULT_MAX_TEXT_LENGTH) -> List[str]:
    """
    Split input text into chunks no longer than ``max_length`` characters.

    Sentence boundaries are preferred: the text is cut after runs of sentence
    punctuation (multilingual, see ``SENTENCE_PUNCTUATION``) and consecutive
    sentences are packed greedily. A sentence that is still too long falls back
    to word packing when it contains whitespace, or to fixed-size character
    slices for scripts written without spaces (Japanese, Chinese, Thai).

    Text that already fits is returned untouched as a single chunk, even when
    it contains several sentences.
    """
    if len(text) <= max_length:
        return [text]

    if max_length <= 0:
        raise ValueError(f"max_length must be positive, got {max_length}")

    fragments = SENTENCE_SPLIT_PATTERN.split(text)

    preliminary: List[str] = []
    current = ""
    for fragment in fragments:
        if len(current) + len(fragment) <= max_length:
            current += fragment
            continue
        if current:
            preliminary.append(current)
        current = fragment

    if current:
        preliminary.append(current)

    chunks: List[str] = []
    for chunk in preliminary:
        if len(chunk) <= max_length:
            chunks.append(chunk)
        else:
            logger.debug(
                "Sentence of %d chars exceeds max_length=%d, splitting further.",
                len(chunk),
                max_length,
            )
            chunks.extend(split_oversized_chunk(chunk, max_length))

    result = [chunk for chunk in chunks if chunk]
    logger.debug("Split %d chars into %d chunks (max_length=%d).", len(text), len(result), max_length)
    return result


def has_spaces(text: str) -> bool:
    return bool(_WHITESPACE_PATTERN.search(text))


def split_oversized_chunk(chunk: str, max_length: int) -> List[str]:
    """
    Split a chunk that exceeds ``max_length``.

    Word packing is used when the chunk contains whitespace, character slicing
    otherwise.
    """
    if len(chunk) <= max_length:
        return [chunk]

    if has_spaces(chunk):
        return split_by_words(chunk, max_length)

    return split_by_characters(chunk, max_length)


def split_by_words(text: str, max_length: int) -> List[str]:
    """
    Pack whitespace-separated words greedily into chunks of at most ``max_length``.

    Whitespace runs are kept as separate tokens so spacing inside a chunk is
    preserved verbatim; only the edges of each emitted chunk are stripped. A
    single word longer than the limit is sliced by characters.
    """
    chunks: List[str] = []
    current = ""

    for word in WORD_SPLIT_PATTERN.split(text):
        if len(current) + len(word) <= max_length:
            current += word
            continue

        if current.strip():
            chunks.append(current.strip())

        stripped = word.strip()
        if len(stripped) > max_length:
            chunks.extend(split_by_characters(stripped, max_length))
            current = ""
        else:
            current = word

    if current.strip():
        chunks.append(current.strip())

    return chunks


def split_by_characters(text: str, max_length: int) -> List[str]:
    if max_length <= 0:
        raise ValueError(f"max_length must be positive, got {max_length}")
    return [text[start : start + max_length] for start in range(0, len(text), max_length)]
