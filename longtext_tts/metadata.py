from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from .merger import WavFormat, wav_duration_ms
from .synthesizer import LongTextResult, SynthesisConfig
from .tts_engine import TtsEngine

logger = logging.getLogger(__name__)

__all__ = ["MetadataBuilder"]


@dataclass
class MetadataBuilder:
    engine: TtsEngine
    config: SynthesisConfig
    output_path: Path

    def build_metadata(
        self,
        *,
        result: LongTextResult,
        final_output: Path,
        options: Dict[str, object],
    ) -> Dict[str, object]:
        retries_by_chunk = {str(chunk.index): chunk.retries for chunk in result.chunks if chunk.retries}

        metadata = {
            "created_at": datetime.now(timezone.utc).isoformat(),
            "engine": self.engine.descriptor(),
            "format": result.output_format,
            "input_path": str(options.get("input_path")) if options.get("input_path") else None,
            "dictionary_path": str(options.get("dictionary_path")) if options.get("dictionary_path") else None,
            "max_text_length": self.config.max_text_length,
            "chunks": [
                {
                    "index": chunk.index,
                    "chars": len(chunk.text),
                    "bytes": chunk.audio_bytes,
                    "phonemes": chunk.phoneme_count,
                    "retries": chunk.retries,
                }
                for chunk in result.chunks
            ],
            "final_output": str(final_output),
            "final_bytes": len(result.audio),
            "final_ms": self._final_duration_ms(result),
            "phonemes": len(result.phonemes) if result.phonemes else 0,
            "retries": {"total": result.total_retries, "by_chunk": retries_by_chunk},
            "config": {
                "max_workers": self.config.max_workers,
                "max_retries": self.config.max_retries,
                "include_phonemes": self.config.include_phonemes,
            },
        }

        if result.output_format == "wav" and result.audio:
            wav_format = WavFormat.from_header(result.audio)
            metadata["sample_rate"] = wav_format.sample_rate
            metadata["channels"] = wav_format.channels
            metadata["bits_per_sample"] = wav_format.bits_per_sample

        return metadata

    def write_metadata(self, metadata: Dict[str, object]) -> None:
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        with self.output_path.open("w", encoding="utf-8") as f:
            json.dump(metadata, f, ensure_ascii=False, indent=2)

    @staticmethod
    def _final_duration_ms(result: LongTextResult) -> Optional[int]:
        # MP3 duration would need a decoder; only PCM WAV is measured.
        if result.output_format != "wav" or not result.audio:
            return None
        return wav_duration_ms(result.audio)
