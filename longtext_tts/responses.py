from __future__ import annotations

import base64
import binascii
import json
import logging
from collections.abc import Mapping
from typing import Any, Iterable, Iterator, List, Optional

from .phonemes import PhonemeData, merge_phoneme_data

logger = logging.getLogger(__name__)

__all__ = [
    "extract_audio_from_ndjson",
    "extract_audio_from_response",
    "extract_audio_from_responses",
    "extract_phonemes_from_ndjson",
]


def extract_audio_from_ndjson(payload: str) -> bytes:
    """
    Decode ``audio_base64`` fields from a JSON or NDJSON response body.

    A body holding a single JSON object is decoded directly; otherwise each
    line is parsed on its own and the decoded pieces are joined in order.
    Lines that are not valid JSON or carry undecodable base64 are skipped.
    """
    pieces: List[bytes] = []
    for index, record in enumerate(_iter_records(payload)):
        encoded = record.get("audio_base64")
        if not encoded:
            continue
        try:
            pieces.append(base64.b64decode(encoded))
        except (binascii.Error, TypeError) as exc:
            logger.warning("Skipping record %d with undecodable audio: %s", index, exc)
    return b"".join(pieces)


def extract_phonemes_from_ndjson(payload: str) -> PhonemeData:
    """
    Collect ``phonemes`` objects from a JSON or NDJSON body into one timeline.
    """
    return merge_phoneme_data(
        record["phonemes"] for record in _iter_records(payload) if isinstance(record.get("phonemes"), Mapping)
    )


def extract_audio_from_response(response: Any) -> bytes:
    """
    Pull raw audio bytes out of whatever a transport handed back.

    Accepts bytes-like objects, file-like objects, iterables of byte chunks and
    objects or mappings exposing ``content`` or ``data`` bytes. Anything else
    yields empty bytes.
    """
    if isinstance(response, (bytes, bytearray, memoryview)):
        return bytes(response)

    if hasattr(response, "read"):
        return bytes(response.read())

    if isinstance(response, Mapping):
        for key in ("content", "data"):
            value = response.get(key)
            if isinstance(value, (bytes, bytearray)):
                return bytes(value)
        return b""

    for attr in ("content", "data"):
        value = getattr(response, attr, None)
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)

    if isinstance(response, Iterable) and not isinstance(response, str):
        return b"".join(bytes(piece) for piece in response)

    logger.warning("Unrecognised response type %s; no audio extracted.", type(response).__name__)
    return b""


def extract_audio_from_responses(responses: Iterable[Any]) -> List[bytes]:
    return [extract_audio_from_response(response) for response in responses]


def _iter_records(payload: str) -> Iterator[dict]:
    single = _parse_json(payload)
    if isinstance(single, dict):
        yield single
        return

    for line in payload.strip().splitlines():
        if not line.strip():
            continue
        record = _parse_json(line)
        if isinstance(record, dict):
            yield record


def _parse_json(text: str) -> Optional[Any]:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None
