from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union

logger = logging.getLogger(__name__)

__all__ = [
    "PhonemeData",
    "adjust_phoneme_timing",
    "create_empty_phoneme_data",
    "merge_phoneme_data",
]


@dataclass
class PhonemeData:
    """
    Phoneme timing data: three parallel lists of equal length.
    """

    symbols: List[str] = field(default_factory=list)
    durations_seconds: List[float] = field(default_factory=list)
    start_times_seconds: List[float] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, raw: Union["PhonemeData", Mapping, None]) -> "PhonemeData":
        """
        Build from a response-shaped mapping. Missing or null keys become empty lists.
        """
        if raw is None:
            return cls()
        if isinstance(raw, PhonemeData):
            return cls(list(raw.symbols), list(raw.durations_seconds), list(raw.start_times_seconds))
        return cls(
            symbols=list(raw.get("symbols") or []),
            durations_seconds=list(raw.get("durations_seconds") or []),
            start_times_seconds=list(raw.get("start_times_seconds") or []),
        )

    def to_dict(self) -> Dict[str, list]:
        return {
            "symbols": list(self.symbols),
            "durations_seconds": list(self.durations_seconds),
            "start_times_seconds": list(self.start_times_seconds),
        }

    def __len__(self) -> int:
        return len(self.symbols)


PhonemeInput = Union[PhonemeData, Mapping, None]


def create_empty_phoneme_data() -> PhonemeData:
    return PhonemeData()


def merge_phoneme_data(chunks: Optional[Iterable[PhonemeInput]]) -> PhonemeData:
    """
    Merge per-chunk phoneme data into one continuous timeline.

    Symbols and durations are concatenated unchanged. Each chunk's start times
    are rebased on that chunk's own first start time and then shifted by the
    summed durations of every chunk before it, so the result starts at 0
    whatever clock each chunk was timed against.

    A chunk without start times adds its symbols and durations but no start
    times; its durations still count towards the offset of later chunks.
    """
    merged = PhonemeData()
    if not chunks:
        return merged

    time_offset = 0.0
    for index, chunk in enumerate(chunks):
        if chunk is None:
            continue
        data = PhonemeData.from_mapping(chunk)

        merged.symbols.extend(data.symbols)
        merged.durations_seconds.extend(data.durations_seconds)

        if data.start_times_seconds:
            local_zero = data.start_times_seconds[0]
            merged.start_times_seconds.extend(
                t - local_zero + time_offset for t in data.start_times_seconds
            )
        elif data.durations_seconds:
            logger.debug("Phoneme chunk %d has durations but no start times.", index)

        time_offset += sum(data.durations_seconds)

    return merged


def adjust_phoneme_timing(data: PhonemeInput, offset: float) -> PhonemeData:
    """
    Return a copy of ``data`` with every start time shifted by ``offset`` seconds.
    """
    adjusted = PhonemeData.from_mapping(data)
    adjusted.start_times_seconds = [t + offset for t in adjusted.start_times_seconds]
    return adjusted
