from __future__ import annotations

import io
import logging
import struct
from dataclasses import dataclass
from typing import List, Sequence

from pydub import AudioSegment

from .constants import (
    MP3_ID3V1_TAG_SIZE,
    MP3_ID3V2_HEADER_SIZE,
    WAV_CHUNK_HEADER_SIZE,
    WAV_FORMAT_PCM,
    WAV_HEADER_SIZE,
    WAV_PCM_FMT_CHUNK_SIZE,
    WAV_RIFF_HEADER_SIZE,
)

logger = logging.getLogger(__name__)

__all__ = [
    "WavFormat",
    "WavFormatError",
    "detect_audio_format",
    "merge_audio_binary",
    "merge_mp3_binary",
    "merge_wav_binary",
    "remove_mp3_header",
    "remove_wav_header",
    "wav_duration_ms",
]

_CANONICAL_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


class WavFormatError(ValueError):
    """Raised when WAV data is too short to carry the fields being read."""


@dataclass(frozen=True)
class WavFormat:
    """
    PCM format fields of a canonical WAV header.
    """

    channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int

    @classmethod
    def from_header(cls, data: bytes) -> "WavFormat":
        """
        Read the format fields at their canonical offsets (22..35).
        """
        if len(data) < WAV_HEADER_SIZE:
            raise WavFormatError(
                f"Invalid WAV data: need at least {WAV_HEADER_SIZE} bytes, got {len(data)}"
            )
        return cls(
            channels=_read_uint16_le(data, 22),
            sample_rate=_read_uint32_le(data, 24),
            byte_rate=_read_uint32_le(data, 28),
            block_align=_read_uint16_le(data, 32),
            bits_per_sample=_read_uint16_le(data, 34),
        )

    def build_header(self, data_length: int) -> bytes:
        """
        Build a 44-byte PCM header announcing ``data_length`` payload bytes.
        """
        return _CANONICAL_HEADER.pack(
            b"RIFF",
            data_length + WAV_RIFF_HEADER_SIZE,
            b"WAVE",
            b"fmt ",
            WAV_PCM_FMT_CHUNK_SIZE,
            WAV_FORMAT_PCM,
            self.channels,
            self.sample_rate,
            self.byte_rate,
            self.block_align,
            self.bits_per_sample,
            b"data",
            data_length,
        )


def merge_wav_binary(chunks: Sequence[bytes]) -> bytes:
    """
    Merge WAV buffers into a single WAV file.

    The format fields of the first chunk are written into a fresh 44-byte
    header; every chunk contributes only the payload of its ``data``
    sub-chunk. Chunks that are not RIFF containers are taken as raw PCM.
    Subsequent chunks are not checked against the first chunk's format.
    """
    if not chunks:
        return b""

    first = chunks[0]
    if not first or len(first) < WAV_HEADER_SIZE:
        raise WavFormatError("Invalid WAV data: first chunk is too small")

    wav_format = WavFormat.from_header(first)
    payloads: List[bytes] = [_extract_wav_payload(chunk, idx) for idx, chunk in enumerate(chunks)]
    merged_payload = b"".join(payloads)

    logger.debug(
        "Merged %d WAV chunks (%d payload bytes, %d Hz, %d ch, %d bit).",
        len(chunks),
        len(merged_payload),
        wav_format.sample_rate,
        wav_format.channels,
        wav_format.bits_per_sample,
    )
    return wav_format.build_header(len(merged_payload)) + merged_payload


def merge_mp3_binary(chunks: Sequence[bytes]) -> bytes:
    """
    Concatenate MP3 buffers in order.

    No frame-level validation or tag stripping is done here; callers that need
    it run ``remove_mp3_header`` on the intermediate chunks first.
    """
    if not chunks:
        return b""
    return b"".join(chunks)


def merge_audio_binary(chunks: Sequence[bytes], output_format: str) -> bytes:
    fmt = (output_format or "").lower()
    if fmt == "wav":
        return merge_wav_binary(chunks)
    if fmt == "mp3":
        return merge_mp3_binary(chunks)
    raise ValueError(f"Unsupported output format for merging: {output_format}")


def remove_wav_header(data: bytes) -> bytes:
    """
    Return the bytes following the first ``data`` sub-chunk header.

    Input that is not a RIFF container is returned unchanged.
    """
    if len(data) >= WAV_HEADER_SIZE and data.startswith(b"RIFF"):
        data_pos = data.find(b"data", 12)
        if data_pos > 0:
            return data[data_pos + WAV_CHUNK_HEADER_SIZE :]
    return data


def remove_mp3_header(data: bytes) -> bytes:
    """
    Strip a leading ID3v2 tag and a trailing ID3v1 tag from MP3 data.
    """
    if len(data) >= MP3_ID3V2_HEADER_SIZE and data.startswith(b"ID3"):
        # Tag size is a 28-bit synchsafe integer (7 significant bits per byte).
        size = (
            (data[6] & 0x7F) << 21
            | (data[7] & 0x7F) << 14
            | (data[8] & 0x7F) << 7
            | (data[9] & 0x7F)
        )
        header_size = MP3_ID3V2_HEADER_SIZE
        if data[5] & 0x10:
            header_size += MP3_ID3V2_HEADER_SIZE  # footer present
        data = data[header_size + size :]

    if len(data) >= MP3_ID3V1_TAG_SIZE and data[-MP3_ID3V1_TAG_SIZE : -MP3_ID3V1_TAG_SIZE + 3] == b"TAG":
        data = data[:-MP3_ID3V1_TAG_SIZE]

    return data


def detect_audio_format(data: bytes) -> str:
    if len(data) >= 4 and data.startswith(b"RIFF"):
        return "wav"
    if len(data) >= 3 and data.startswith(b"ID3"):
        return "mp3"
    if len(data) >= 2 and data[0] == 0xFF and data[1] in (0xFB, 0xFA):
        return "mp3"
    return "unknown"


def wav_duration_ms(data: bytes) -> int:
    """
    Duration of a PCM WAV buffer in milliseconds.
    """
    segment = AudioSegment.from_file(io.BytesIO(data), format="wav")
    return len(segment)


def _extract_wav_payload(chunk: bytes, index: int) -> bytes:
    if len(chunk) < WAV_HEADER_SIZE or not chunk.startswith(b"RIFF"):
        return chunk

    pos = WAV_RIFF_HEADER_SIZE
    while pos + WAV_CHUNK_HEADER_SIZE <= len(chunk):
        chunk_id = chunk[pos : pos + 4]
        chunk_size = _read_uint32_le(chunk, pos + 4)
        body_start = pos + WAV_CHUNK_HEADER_SIZE
        if chunk_id == b"data":
            return chunk[body_start : body_start + chunk_size]
        # RIFF sub-chunks are word aligned.
        pos = body_start + chunk_size + (chunk_size & 1)

    logger.warning("WAV chunk %d has no data sub-chunk; using it as raw payload.", index)
    return chunk


def _read_uint16_le(data: bytes, offset: int) -> int:
    try:
        return struct.unpack_from("<H", data, offset)[0]
    except struct.error as exc:
        raise WavFormatError(f"Buffer overflow: trying to read at offset {offset}") from exc


def _read_uint32_le(data: bytes, offset: int) -> int:
    try:
        return struct.unpack_from("<I", data, offset)[0]
    except struct.error as exc:
        raise WavFormatError(f"Buffer overflow: trying to read at offset {offset}") from exc
