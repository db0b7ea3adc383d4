"""Tests for decoding/decoder.py — envelope decoding and the string-wrapped data form."""
from __future__ import annotations

import json

import pytest

from build_notifier.core.constants import BuildStatus
from build_notifier.core.exceptions import DecodeError
from build_notifier.core.types import BuildRecord
from build_notifier.decoding.decoder import EnvelopeDecoder, describe_shape


@pytest.fixture
def decoder() -> EnvelopeDecoder:
    return EnvelopeDecoder()


# ---------------------------------------------------------------------------
# Inline object form
# ---------------------------------------------------------------------------


def test_decode_inline_object(decoder, make_payload, make_envelope) -> None:
    body = json.dumps(make_envelope(make_payload())).encode()
    envelope = decoder.decode(body)

    build = envelope.build
    assert build.id == "b1"
    assert build.project_id == "p1"
    assert build.status == BuildStatus.SUCCESS
    assert build.build_trigger_id == "t1"
    assert build.finish_time == "2020-01-01T00:05:00Z"
    assert build.log_url == "http://x"
    assert build.branch_name == "main"
    assert build.commit_sha == "abc123"
    assert build.repo_name == "myrepo"
    assert envelope.message.attributes.build_id == "b1"
    assert envelope.message.attributes.status == BuildStatus.SUCCESS


def test_decode_accepts_str_body(decoder, make_payload, make_envelope) -> None:
    envelope = decoder.decode(json.dumps(make_envelope(make_payload())))
    assert envelope.build.id == "b1"


def test_inline_round_trip(decoder, make_build, make_envelope) -> None:
    record = make_build(startTime=None, status="FAILURE")
    body = json.dumps(make_envelope(record.to_wire()))
    assert decoder.decode(body).build == record


def test_unknown_fields_are_ignored(decoder, make_payload, make_envelope) -> None:
    payload = make_payload(images=["gcr.io/p1/app"], timing={"BUILD": {}})
    envelope = make_envelope(payload)
    envelope["message"]["messageId"] = "42"
    envelope["message"]["publishTime"] = "2020-01-01T00:05:01Z"
    envelope["subscription"] = "projects/p1/subscriptions/cloud-builds"

    decoded = decoder.decode(json.dumps(envelope))
    assert decoded.message.message_id == "42"
    assert decoded.subscription == "projects/p1/subscriptions/cloud-builds"


def test_optional_times_may_be_absent(decoder, make_payload, make_envelope) -> None:
    payload = make_payload(status="QUEUED")
    del payload["startTime"]
    del payload["finishTime"]
    build = decoder.decode(json.dumps(make_envelope(payload))).build
    assert build.start_time is None
    assert build.finish_time is None


# ---------------------------------------------------------------------------
# String-wrapped form
# ---------------------------------------------------------------------------


def test_base64_string_matches_inline(decoder, make_payload, make_envelope, base64_wrap) -> None:
    payload = make_payload()
    inline = decoder.decode(json.dumps(make_envelope(payload)))
    wrapped = decoder.decode(json.dumps(make_envelope(base64_wrap(payload))))
    assert wrapped == inline


def test_json_text_string_matches_inline(decoder, make_payload, make_envelope) -> None:
    payload = make_payload()
    inline = decoder.decode(json.dumps(make_envelope(payload)))
    wrapped = decoder.decode(json.dumps(make_envelope(json.dumps(payload))))
    assert wrapped == inline


def test_decode_build_string_form(decoder, make_payload, base64_wrap) -> None:
    build = decoder.decode_build(base64_wrap(make_payload(id="b9")))
    assert isinstance(build, BuildRecord)
    assert build.id == "b9"


def test_string_wrapping_non_object_fails(decoder, make_envelope) -> None:
    with pytest.raises(DecodeError, match="does not contain a JSON object"):
        decoder.decode(json.dumps(make_envelope(json.dumps([1, 2]))))


def test_string_wrapping_garbage_fails(decoder, make_envelope) -> None:
    with pytest.raises(DecodeError, match="Malformed JSON in message.data"):
        decoder.decode(json.dumps(make_envelope("not json at all")))


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


def test_malformed_json(decoder) -> None:
    with pytest.raises(DecodeError, match="Malformed JSON in request body") as exc_info:
        decoder.decode(b"{not json")
    assert "not JSON" in exc_info.value.shape


def test_non_utf8_body(decoder) -> None:
    with pytest.raises(DecodeError, match="not valid UTF-8"):
        decoder.decode(b"\xff\xfe\x00")


def test_top_level_array_fails(decoder) -> None:
    with pytest.raises(DecodeError, match="must be a JSON object") as exc_info:
        decoder.decode(b"[]")
    assert exc_info.value.shape == "array"


def test_missing_message_fails(decoder) -> None:
    with pytest.raises(DecodeError, match="no 'message' object"):
        decoder.decode(b'{"subscription": "s"}')


def test_missing_data_fails(decoder) -> None:
    body = {"message": {"attributes": {"buildId": "b1", "status": "SUCCESS"}}}
    with pytest.raises(DecodeError, match="message.data: Field required"):
        decoder.decode(json.dumps(body))


@pytest.mark.parametrize("data", [None, 42, [1], True])
def test_data_of_wrong_type_fails(decoder, make_envelope, data) -> None:
    with pytest.raises(DecodeError, match="must be a JSON object or a string"):
        decoder.decode(json.dumps(make_envelope(data, status="SUCCESS")))


def test_misspelled_substitution_key_fails(decoder, make_payload, make_envelope) -> None:
    payload = make_payload(
        substitutions={"branch_name": "main", "COMMIT_SHA": "abc123", "REPO_NAME": "myrepo"}
    )
    with pytest.raises(DecodeError, match="BRANCH_NAME") as exc_info:
        decoder.decode(json.dumps(make_envelope(payload)))
    assert "branch_name" in exc_info.value.shape["message"]["data"]["substitutions"]


def test_missing_substitution_in_string_form_fails(
    decoder, make_payload, make_envelope, base64_wrap
) -> None:
    payload = make_payload(substitutions={"BRANCH_NAME": "main", "COMMIT_SHA": "abc123"})
    with pytest.raises(DecodeError, match="REPO_NAME"):
        decoder.decode(json.dumps(make_envelope(base64_wrap(payload))))


def test_python_field_names_are_not_accepted(decoder, make_payload, make_envelope) -> None:
    payload = make_payload()
    payload["project_id"] = payload.pop("projectId")
    with pytest.raises(DecodeError, match="projectId"):
        decoder.decode(json.dumps(make_envelope(payload)))


def test_unknown_status_fails(decoder, make_payload, make_envelope) -> None:
    with pytest.raises(DecodeError, match="status"):
        decoder.decode(json.dumps(make_envelope(make_payload(status="EXPLODED"))))


def test_unknown_attribute_status_fails(decoder, make_payload, make_envelope) -> None:
    body = make_envelope(make_payload(), status="NOPE")
    with pytest.raises(DecodeError, match="message.attributes.status"):
        decoder.decode(json.dumps(body))


def test_missing_attributes_fails(decoder, make_payload) -> None:
    body = {"message": {"data": make_payload()}}
    with pytest.raises(DecodeError, match="message.attributes"):
        decoder.decode(json.dumps(body))


def test_bare_unknown_status_is_accepted(decoder, make_payload, make_envelope) -> None:
    envelope = decoder.decode(json.dumps(make_envelope(make_payload(status="UNKNOWN"))))
    assert envelope.build.status == BuildStatus.UNKNOWN


def test_decode_error_shape_has_no_values(decoder, make_payload, make_envelope) -> None:
    payload = make_payload(status="EXPLODED", logUrl="https://secret.example/logs")
    with pytest.raises(DecodeError) as exc_info:
        decoder.decode(json.dumps(make_envelope(payload)))
    shape = exc_info.value.shape
    assert shape["message"]["data"]["logUrl"] == "string"
    assert "secret" not in json.dumps(shape)


# ---------------------------------------------------------------------------
# describe_shape
# ---------------------------------------------------------------------------


def test_describe_shape_scalars() -> None:
    assert describe_shape({"a": 1, "b": "x", "c": None, "d": True, "e": 1.5}) == {
        "a": "number",
        "b": "string",
        "c": "null",
        "d": "boolean",
        "e": "number",
    }


def test_describe_shape_lists() -> None:
    assert describe_shape([]) == "array"
    assert describe_shape([{"k": "v"}, 2]) == [{"k": "string"}]


def test_describe_shape_depth_is_bounded() -> None:
    nested: dict = {}
    current = nested
    for _ in range(10):
        current["n"] = {}
        current = current["n"]
    text = json.dumps(describe_shape(nested))
    assert text.count("{") <= 6
    assert '"object"' in text
