#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from longtext_tts.constants import DEFAULT_MAX_TEXT_LENGTH, MAX_PARALLEL_WORKERS
from longtext_tts.metadata import MetadataBuilder
from longtext_tts.pronunciation import (
    PronunciationRule,
    apply_pronunciation_dictionary,
    load_pronunciation_dictionary,
)
from longtext_tts.split_text import chunk_text
from longtext_tts.synthesizer import LongTextSynthesizer, SynthesisConfig
from longtext_tts.tts_engine import MockTtsEngine, TtsEngine

logger = logging.getLogger(__name__)


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chunked long-text TTS synthesis and audio reassembly.")
    parser.add_argument("--input", required=True, help="Input text file path.")
    parser.add_argument("--input-encoding", default="utf-8", help="Encoding used for input file.")
    parser.add_argument("--max-length", type=int, default=DEFAULT_MAX_TEXT_LENGTH, help="Maximum characters per request chunk.")
    parser.add_argument("--dictionary", help="JSON pronunciation dictionary (list of {text, pronunciation, partial_match}).")
    parser.add_argument("--format", default="wav", choices=("wav", "mp3"), help="Output audio format.")
    parser.add_argument("--engine", default="mock", help="TTS engine to use (mock).")
    parser.add_argument("--sample-rate", type=int, default=22050, help="Sample rate for WAV output.")
    parser.add_argument("--phonemes", action="store_true", help="Request and merge phoneme timing data.")
    parser.add_argument("--phoneme-output", default="./output/phonemes.json", help="Path for merged phoneme JSON.")
    parser.add_argument("--merge-output", help="Path for merged output audio (defaults to ./output/final_merged.<format>).")
    parser.add_argument("--metadata-output", default="./output/metadata.json", help="Path for metadata JSON output.")
    parser.add_argument("--max-retries", type=int, default=3, help="Maximum synthesis attempts per chunk.")
    parser.add_argument("--retry-initial-delay", type=float, default=0.5, help="Initial retry delay in seconds.")
    parser.add_argument("--retry-backoff", type=float, default=2.0, help="Multiplier for retry backoff.")
    parser.add_argument("--concurrency", type=int, default=1, help=f"Parallel chunk requests (capped at {MAX_PARALLEL_WORKERS}).")
    parser.add_argument("--chunks-only", action="store_true", help="Print the request chunks as JSON and exit.")
    parser.add_argument("--debug", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def configure_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )


def load_input_text(path: Path, encoding: str) -> str:
    if not path.exists():
        raise FileNotFoundError(f"Input file does not exist: {path}")
    return path.read_text(encoding=encoding)


def create_engine(args: argparse.Namespace) -> TtsEngine:
    engine_name = (args.engine or "").lower()
    if engine_name in {"mock", "dummy"}:
        return MockTtsEngine(sample_rate=args.sample_rate)
    raise ValueError(f"Unsupported engine: {args.engine}")


def build_metadata_options(args: argparse.Namespace, input_path: Path) -> dict:
    return {
        "input_path": input_path,
        "dictionary_path": args.dictionary,
        "engine": args.engine,
        "format": args.format,
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    configure_logging(args.debug)

    if args.max_length <= 0:
        raise ValueError("--max-length must be positive.")

    input_path = Path(args.input)
    text = load_input_text(input_path, args.input_encoding)
    if not text.strip():
        logger.warning("Input is empty. Nothing to synthesize.")
        return 0

    rules: List[PronunciationRule] = []
    if args.dictionary:
        rules = load_pronunciation_dictionary(Path(args.dictionary))

    if args.chunks_only:
        chunks = chunk_text(apply_pronunciation_dictionary(text, rules), args.max_length)
        print(json.dumps(chunks, ensure_ascii=False, indent=2))
        return 0

    engine = create_engine(args)
    config = SynthesisConfig(
        max_text_length=args.max_length,
        output_format=args.format,
        include_phonemes=args.phonemes,
        max_workers=args.concurrency,
        max_retries=args.max_retries,
        initial_retry_delay=args.retry_initial_delay,
        retry_backoff_factor=args.retry_backoff,
    )
    if args.concurrency > config.max_workers:
        logger.warning(
            "Concurrency %d exceeds the supported maximum; using %d workers.",
            args.concurrency,
            config.max_workers,
        )

    result = LongTextSynthesizer(engine, config).synthesize(text, rules)

    merge_output_path = Path(args.merge_output or f"./output/final_merged.{config.output_format}")
    merge_output_path.parent.mkdir(parents=True, exist_ok=True)
    merge_output_path.write_bytes(result.audio)

    if result.phonemes is not None:
        phoneme_path = Path(args.phoneme_output)
        phoneme_path.parent.mkdir(parents=True, exist_ok=True)
        with phoneme_path.open("w", encoding="utf-8") as f:
            json.dump(result.phonemes.to_dict(), f, ensure_ascii=False, indent=2)
        logger.info("Phoneme timeline written to %s", phoneme_path)

    metadata_builder = MetadataBuilder(
        engine=engine,
        config=config,
        output_path=Path(args.metadata_output),
    )
    metadata = metadata_builder.build_metadata(
        result=result,
        final_output=merge_output_path,
        options=build_metadata_options(args, input_path),
    )
    metadata_builder.write_metadata(metadata)
    logger.info("Metadata written to %s", metadata_builder.output_path)

    logger.info("Synthesis complete. Final audio saved to %s", merge_output_path)
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.error("Interrupted by user.")
        sys.exit(1)
    except Exception as exc:
        logger.exception("Fatal error: %s", exc)
        sys.exit(1)
