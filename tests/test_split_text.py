import re

import pytest

from longtext_tts.split_text import (
    chunk_text,
    split_by_characters,
    split_by_words,
    split_oversized_chunk,
)


def _without_whitespace(text):
    return re.sub(r"\s+", "", text)


def test_chunk_text_returns_short_text_unchanged():
    text = "Hello. World! This is one request."
    assert chunk_text(text, len(text)) == [text]


def test_chunk_text_splits_on_sentence_punctuation():
    assert chunk_text("Hello. World!", 8) == ["Hello. ", "World!"]


@pytest.mark.parametrize(
    "text, max_length, expected",
    [
        ("안...반가… 네.", 4, ["안...", "반가… ", "네."]),
        ("こんにちは。元気ですか？はい！", 6, ["こんにちは。", "元気ですか？", "はい！"]),
        ("مر؟ نعم۔", 5, ["مر؟ ", "نعم۔"]),
        (
            "हाँ। नहीं॥",
            6,
            ["हाँ। ", "नहीं॥"],
        ),
        ("Γεια;Καλά.", 5, ["Γεια;", "Καλά."]),
    ],
)
def test_chunk_text_multilingual_punctuation(text, max_length, expected):
    assert chunk_text(text, max_length) == expected


def test_chunk_text_falls_back_to_words_for_long_sentence():
    assert chunk_text("alpha beta gamma delta epsilon", 12) == ["alpha beta", "gamma delta", "epsilon"]


def test_chunk_text_slices_text_without_spaces():
    assert chunk_text("a" * 25, 10) == ["a" * 10, "a" * 10, "a" * 5]


def test_chunk_text_respects_limit_and_keeps_content():
    text = (
        "Real-time streaming speech plays a crucial role in modern applications. "
        "It is indispensable in conversational services, live broadcasting and translation! "
        "Supercalifragilisticexpialidocious words are sliced when needed; "
        "長い日本語の文章は空白がないので文字単位で分割されます。"
        "Short one?"
    )

    chunks = chunk_text(text, 20)

    assert len(chunks) > 1
    assert all(0 < len(chunk) <= 20 for chunk in chunks)
    assert _without_whitespace("".join(chunks)) == _without_whitespace(text)


def test_chunk_text_is_deterministic():
    text = "One. Two three four five six seven. Eight nine ten!" * 3
    assert chunk_text(text, 15) == chunk_text(text, 15)


def test_chunk_text_rejects_non_positive_limit():
    with pytest.raises(ValueError):
        chunk_text("some text", 0)


def test_split_by_words_slices_oversized_word():
    chunks = split_by_words("tiny supercalifragilistic end", 8)
    assert chunks == ["tiny", "supercal", "ifragili", "stic", "end"]


def test_split_oversized_chunk_picks_strategy():
    assert split_oversized_chunk("short", 10) == ["short"]
    assert split_oversized_chunk("一二三四五六七", 3) == ["一二三", "四五六", "七"]
    assert split_oversized_chunk("ab cd ef", 5) == ["ab cd", "ef"]


def test_split_by_characters():
    assert split_by_characters("abcdefg", 3) == ["abc", "def", "g"]
    assert split_by_characters("", 3) == []
