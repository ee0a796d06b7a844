import json

import pytest

from longtext_tts.pronunciation import (
    PronunciationDictionaryValidationError,
    PronunciationRule,
    apply_pronunciation_dictionary,
    load_pronunciation_dictionary,
    validate_pronunciation_dictionary,
)


def rule(text, pronunciation, partial_match=False):
    return {"text": text, "pronunciation": pronunciation, "partial_match": partial_match}


def test_missing_or_empty_dictionary_returns_text():
    assert apply_pronunciation_dictionary("hello", None) == "hello"
    assert apply_pronunciation_dictionary("hello", []) == "hello"


def test_no_match_returns_text_unchanged():
    text = "Nothing to replace here."
    assert apply_pronunciation_dictionary(text, [rule("absent", "x"), rule("zz", "y", True)]) == text


def test_exact_match_respects_punctuation_boundaries():
    assert apply_pronunciation_dictionary("This is Supertone.", [rule("Supertone", "super tone")]) == "This is super tone."
    assert (
        apply_pronunciation_dictionary('He said, "Supertone", (Supertone)!', [rule("Supertone", "super tone")])
        == 'He said, "super tone", (super tone)!'
    )


def test_exact_match_underscore_and_digits_block_boundary():
    assert (
        apply_pronunciation_dictionary("API_test API test_API", [rule("API", "A P I")])
        == "API_test A P I test_API"
    )
    assert (
        apply_pronunciation_dictionary("C++ is old, C++11 is newer.", [rule("C++", "cplusplus")])
        == "cplusplus is old, C++11 is newer."
    )


def test_exact_match_uses_unicode_word_characters():
    assert apply_pronunciation_dictionary("한국어와 한국 음식", [rule("한국", "Korea")]) == "한국어와 Korea 음식"


def test_partial_match_replaces_substrings():
    assert (
        apply_pronunciation_dictionary("K-TTS is different from TTSAPI.", [rule("TTS", "text to speech", True)])
        == "K-text to speech is different from text to speechAPI."
    )
    assert (
        apply_pronunciation_dictionary("TTS와 TTSAPI는 다릅니다.", [rule("TTS", "text to speech", True)])
        == "text to speech와 text to speechAPI는 다릅니다."
    )


def test_partial_match_escapes_regex_metacharacters():
    assert apply_pronunciation_dictionary("a(b)c a(b)c", [rule("a(b)c", "X", True)]) == "X X"
    assert apply_pronunciation_dictionary("a.c abc", [rule("a.c", "X", True)]) == "X abc"


def test_partial_match_is_non_overlapping_left_to_right():
    assert apply_pronunciation_dictionary("aaaa", [rule("aa", "b", True)]) == "bb"
    assert apply_pronunciation_dictionary("aaa", [rule("aa", "b", True)]) == "ba"


def test_rule_order_decides_overlapping_matches():
    forward = [rule("AA", "B", True), rule("A", "C", True)]
    assert apply_pronunciation_dictionary("AAAA", forward) == "BB"
    assert apply_pronunciation_dictionary("AAAA", list(reversed(forward))) == "CCCC"

    text = "이번 APEC 은 한국에서 열립니다"
    assert (
        apply_pronunciation_dictionary(text, [rule("AP", "에이피", True), rule("APEC", "에이팩", True)])
        == "이번 에이피EC 은 한국에서 열립니다"
    )
    assert (
        apply_pronunciation_dictionary(text, [rule("APEC", "에이팩", True), rule("AP", "에이피", True)])
        == "이번 에이팩 은 한국에서 열립니다"
    )


def test_inserted_pronunciation_is_never_rewritten():
    assert (
        apply_pronunciation_dictionary("NY is not New Jersey.", [rule("NY", "New York"), rule("New", "Old")])
        == "New York is not Old Jersey."
    )
    assert (
        apply_pronunciation_dictionary("Supertone tone", [rule("Supertone", "super tone"), rule("tone", "TONE")])
        == "super tone TONE"
    )


def test_placeholder_collision_with_input_text():
    # Same code points as the first placeholder the substituter would allocate.
    placeholder = "\ue000\ue010\ue001"
    text = placeholder + " x"
    assert apply_pronunciation_dictionary(text, [rule("x", "y", True)]) == placeholder + " y"


def test_rule_objects_are_accepted():
    rules = [PronunciationRule(text="SQL", pronunciation="sequel", partial_match=False)]
    assert apply_pronunciation_dictionary("SQL rocks", rules) == "sequel rocks"


@pytest.mark.parametrize(
    "dictionary",
    [
        "not a list",
        {"text": "a", "pronunciation": "b", "partial_match": True},
        42,
        ["entry"],
        [None],
        [["a", "b", True]],
        [{"text": "a", "pronunciation": "b"}],
        [{"pronunciation": "b", "partial_match": True}],
        [{"text": 1, "pronunciation": "b", "partial_match": True}],
        [{"text": "a", "pronunciation": None, "partial_match": True}],
        [{"text": "a", "pronunciation": "b", "partial_match": 1}],
        [{"text": "a", "pronunciation": "b", "partial_match": "yes"}],
        [{"text": "", "pronunciation": "b", "partial_match": True}],
        [{"text": "a", "pronunciation": "", "partial_match": True}],
    ],
)
def test_invalid_dictionaries_raise(dictionary):
    with pytest.raises(PronunciationDictionaryValidationError):
        apply_pronunciation_dictionary("a text", dictionary)


def test_later_invalid_entry_fails_before_substitution():
    with pytest.raises(PronunciationDictionaryValidationError, match=r"\[1\]"):
        apply_pronunciation_dictionary("a b", [rule("a", "x", True), {"text": "b"}])


def test_non_string_text_raises():
    with pytest.raises(PronunciationDictionaryValidationError):
        apply_pronunciation_dictionary(123, [rule("a", "b")])


def test_validate_returns_rules():
    rules = validate_pronunciation_dictionary((rule("a", "b"), rule("c", "d", True)))
    assert rules == [PronunciationRule("a", "b", False), PronunciationRule("c", "d", True)]
    assert validate_pronunciation_dictionary(None) == []


def test_load_pronunciation_dictionary(tmp_path):
    path = tmp_path / "dictionary.json"
    path.write_text(json.dumps([rule("TTS", "text to speech", True)]), encoding="utf-8")

    rules = load_pronunciation_dictionary(path)

    assert rules == [PronunciationRule("TTS", "text to speech", True)]
    assert apply_pronunciation_dictionary("TTS demo", rules) == "text to speech demo"


def test_load_pronunciation_dictionary_rejects_bad_json(tmp_path):
    path = tmp_path / "dictionary.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(PronunciationDictionaryValidationError):
        load_pronunciation_dictionary(path)
