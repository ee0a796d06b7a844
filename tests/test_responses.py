import base64
import io
import json

import pytest

from longtext_tts.responses import (
    extract_audio_from_ndjson,
    extract_audio_from_response,
    extract_audio_from_responses,
    extract_phonemes_from_ndjson,
)


def b64(data):
    return base64.b64encode(data).decode("ascii")


def test_extract_audio_from_single_json_object():
    assert extract_audio_from_ndjson(json.dumps({"audio_base64": b64(b"abc")})) == b"abc"


def test_extract_audio_from_ndjson_lines_skips_noise():
    payload = "\n".join(
        [
            json.dumps({"audio_base64": b64(b"one-")}),
            "not json at all",
            "",
            json.dumps({"event": "progress"}),
            json.dumps({"audio_base64": b64(b"two")}),
        ]
    )
    assert extract_audio_from_ndjson(payload) == b"one-two"


def test_extract_audio_from_ndjson_skips_bad_base64_lines():
    payload = "\n".join(
        [
            json.dumps({"audio_base64": b64(b"keep-")}),
            json.dumps({"audio_base64": "abc"}),
            json.dumps({"audio_base64": 123}),
            json.dumps({"audio_base64": b64(b"this")}),
        ]
    )
    assert extract_audio_from_ndjson(payload) == b"keep-this"


def test_extract_audio_from_single_object_with_bad_base64_is_empty():
    assert extract_audio_from_ndjson(json.dumps({"audio_base64": "abc"})) == b""


def test_extract_phonemes_from_ndjson_merges_lines():
    lines = [
        {"audio_base64": b64(b"a"), "phonemes": {"symbols": ["a"], "durations_seconds": [0.2], "start_times_seconds": [0.1]}},
        {"audio_base64": b64(b"b"), "phonemes": {"symbols": ["b"], "durations_seconds": [0.3], "start_times_seconds": [0.0]}},
    ]
    phonemes = extract_phonemes_from_ndjson("\n".join(json.dumps(line) for line in lines))

    assert phonemes.symbols == ["a", "b"]
    assert phonemes.start_times_seconds == pytest.approx([0.0, 0.2])


class _Payload:
    def __init__(self, content):
        self.content = content


@pytest.mark.parametrize(
    "response, expected",
    [
        (b"raw", b"raw"),
        (bytearray(b"raw"), b"raw"),
        (io.BytesIO(b"stream"), b"stream"),
        ({"content": b"mapped"}, b"mapped"),
        ({"data": b"mapped"}, b"mapped"),
        ({"other": b"x"}, b""),
        (_Payload(b"attr"), b"attr"),
        ([b"ch", b"unk", b"ed"], b"chunked"),
        (42, b""),
    ],
)
def test_extract_audio_from_response(response, expected):
    assert extract_audio_from_response(response) == expected


def test_extract_audio_from_responses_keeps_order():
    assert extract_audio_from_responses([b"1", io.BytesIO(b"2"), {"content": b"3"}]) == [b"1", b"2", b"3"]
