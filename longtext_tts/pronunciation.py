"""
Pronunciation dictionary substitution.

Rules are applied in input order:

- ``partial_match=True``: every literal substring occurrence is replaced.
- ``partial_match=False``: only whole-word occurrences are replaced, a word
  character being a Unicode letter, a Unicode digit or an underscore.

Replaced spans are masked with opaque placeholder tokens while the remaining
rules run, and only expanded to their pronunciations at the very end. A later
rule therefore never matches inside text inserted by an earlier one.
"""

from __future__ import annotations

import functools
import json
import logging
import re
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)

__all__ = [
    "PronunciationDictionaryValidationError",
    "PronunciationRule",
    "apply_pronunciation_dictionary",
    "load_pronunciation_dictionary",
    "validate_pronunciation_dictionary",
]

REQUIRED_FIELDS = ("text", "pronunciation", "partial_match")

# Private Use Area delimiters keep placeholders out of the way of real text.
TOKEN_OPEN = "\ue000"
TOKEN_CLOSE = "\ue001"
TOKEN_SEPARATOR = "\ue002"
TOKEN_DIGIT_BASE = 0xE010


class PronunciationDictionaryValidationError(ValueError):
    """Raised when a pronunciation dictionary or its input text is malformed."""


@dataclass(frozen=True)
class PronunciationRule:
    text: str
    pronunciation: str
    partial_match: bool

    @classmethod
    def from_mapping(cls, raw: Any, index: int) -> "PronunciationRule":
        if isinstance(raw, PronunciationRule):
            raw = raw.to_dict()

        if not isinstance(raw, Mapping):
            raise PronunciationDictionaryValidationError(
                f"pronunciation_dictionary[{index}] must be an object, got {_type_name(raw)}"
            )

        missing = [name for name in REQUIRED_FIELDS if name not in raw]
        if missing:
            raise PronunciationDictionaryValidationError(
                f"pronunciation_dictionary[{index}] missing required field(s): {', '.join(missing)}"
            )

        text = raw["text"]
        pronunciation = raw["pronunciation"]
        partial_match = raw["partial_match"]

        if not isinstance(text, str):
            raise PronunciationDictionaryValidationError(
                f"pronunciation_dictionary[{index}].text must be string, got {_type_name(text)}"
            )
        if not isinstance(pronunciation, str):
            raise PronunciationDictionaryValidationError(
                f"pronunciation_dictionary[{index}].pronunciation must be string, "
                f"got {_type_name(pronunciation)}"
            )
        if not isinstance(partial_match, bool):
            raise PronunciationDictionaryValidationError(
                f"pronunciation_dictionary[{index}].partial_match must be boolean, "
                f"got {_type_name(partial_match)}"
            )
        if not text:
            raise PronunciationDictionaryValidationError(
                f"pronunciation_dictionary[{index}].text must not be empty"
            )
        if not pronunciation:
            raise PronunciationDictionaryValidationError(
                f"pronunciation_dictionary[{index}].pronunciation must not be empty"
            )

        return cls(text=text, pronunciation=pronunciation, partial_match=partial_match)

    def to_dict(self) -> Dict[str, object]:
        return {
            "text": self.text,
            "pronunciation": self.pronunciation,
            "partial_match": self.partial_match,
        }


def validate_pronunciation_dictionary(rules: Any) -> List[PronunciationRule]:
    """
    Validate every entry of ``rules`` and return them as ``PronunciationRule``.

    ``None`` is treated as an empty dictionary. Strings, mappings and other
    non-list containers are rejected.
    """
    if rules is None:
        return []
    if isinstance(rules, (str, bytes, Mapping)) or not isinstance(rules, Sequence):
        raise PronunciationDictionaryValidationError(
            "`pronunciation_dictionary` must be an array of objects"
        )
    return [PronunciationRule.from_mapping(raw, idx) for idx, raw in enumerate(rules)]


def apply_pronunciation_dictionary(text: str, pronunciation_dictionary: Optional[Any] = None) -> str:
    """
    Rewrite ``text`` according to ``pronunciation_dictionary``.

    Returns ``text`` unchanged when the dictionary is ``None`` or empty. Raises
    ``PronunciationDictionaryValidationError`` before touching the text when
    any entry is malformed.
    """
    if pronunciation_dictionary is None or (
        isinstance(pronunciation_dictionary, (list, tuple)) and not pronunciation_dictionary
    ):
        return text

    if not isinstance(text, str):
        raise PronunciationDictionaryValidationError(f"`text` must be string, got {_type_name(text)}")

    rules = validate_pronunciation_dictionary(pronunciation_dictionary)
    working, tokens = _mask_matches(text, rules)
    return _expand_tokens(working, tokens)


def load_pronunciation_dictionary(path: Path, encoding: str = "utf-8") -> List[PronunciationRule]:
    """
    Read a JSON file containing a list of rule objects and validate it.
    """
    if not path.exists():
        raise FileNotFoundError(f"Pronunciation dictionary does not exist: {path}")
    with path.open("r", encoding=encoding) as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as exc:
            raise PronunciationDictionaryValidationError(
                f"Pronunciation dictionary {path} is not valid JSON: {exc}"
            ) from exc
    rules = validate_pronunciation_dictionary(raw)
    logger.info("Loaded %d pronunciation rules from %s", len(rules), path)
    return rules


def _mask_matches(text: str, rules: Sequence[PronunciationRule]) -> tuple[str, Dict[str, str]]:
    tokens: Dict[str, str] = {}
    working = text

    for idx, rule in enumerate(rules):
        token = _make_unique_token(idx, working, tokens)

        if rule.partial_match:
            replaced, count = re.subn(re.escape(rule.text), lambda _m: token, working)
        else:
            replaced, count = _whole_word_pattern(rule.text).subn(
                lambda m: m.group(1) + token, working
            )

        if not count:
            continue

        logger.debug("Rule %d (%r) matched %d time(s).", idx, rule.text, count)
        tokens[token] = rule.pronunciation
        working = replaced

    return working, tokens


def _expand_tokens(working: str, tokens: Dict[str, str]) -> str:
    for token, pronunciation in tokens.items():
        working = working.replace(token, pronunciation)
    return working


@functools.lru_cache(maxsize=256)
def _whole_word_pattern(src: str) -> re.Pattern:
    # \w on str patterns is Unicode aware: letters, digits and underscore.
    return re.compile(rf"(^|[^\w])({re.escape(src)})(?=[^\w]|$)")


def _make_unique_token(idx: int, working: str, existing: Mapping[str, str]) -> str:
    base = f"{TOKEN_OPEN}{_private_use(str(idx))}{TOKEN_CLOSE}"
    if base not in working and base not in existing:
        return base

    while True:
        suffix = _private_use(uuid.uuid4().hex)
        token = f"{TOKEN_OPEN}{_private_use(str(idx))}{TOKEN_SEPARATOR}{suffix}{TOKEN_CLOSE}"
        if token not in working and token not in existing:
            return token


def _private_use(digits: str) -> str:
    # Tokens are spelled entirely in the Private Use Area so no rule made of
    # ordinary characters can match inside one.
    return "".join(chr(TOKEN_DIGIT_BASE + int(d, 16)) for d in digits)


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__
