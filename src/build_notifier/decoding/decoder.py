"""Delivery envelope decoding.

The ``message.data`` field arrives in one of two forms depending on the
producer:

* an inline JSON object with the build record's shape, or
* a JSON string holding the encoded record. Push delivery base64-encodes
  the payload bytes; some producers embed the JSON text itself.

Decoding is done in two explicit phases: parse the envelope as plain JSON,
peek at the JSON type found at ``message.data`` and recover the build record
from it, then validate the envelope structure with the recovered record in
place. Nothing is registered globally; every other field goes through
ordinary pydantic validation.
"""
from __future__ import annotations

import base64
import binascii
import json
from typing import Any

import structlog
from pydantic import ValidationError

from build_notifier.core.exceptions import DecodeError
from build_notifier.core.types import BuildRecord, DeliveryEnvelope

logger = structlog.get_logger(__name__)

_MAX_SHAPE_DEPTH = 5
_MAX_SHAPE_KEYS = 50
_MAX_REPORTED_ERRORS = 5


def describe_shape(value: Any, depth: int = 0) -> Any:
    """Return the structure of a decoded JSON value with the values removed.

    Objects keep their keys, arrays are represented by their first element,
    and scalars become their JSON type name. Used for diagnostics so that
    payload contents (tokens, URLs) never end up in logs.
    """
    if isinstance(value, dict):
        if depth >= _MAX_SHAPE_DEPTH:
            return "object"
        keys = list(value)[:_MAX_SHAPE_KEYS]
        return {str(k): describe_shape(value[k], depth + 1) for k in keys}
    if isinstance(value, list):
        if depth >= _MAX_SHAPE_DEPTH or not value:
            return "array"
        return [describe_shape(value[0], depth + 1)]
    if isinstance(value, str):
        return "string"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if value is None:
        return "null"
    return type(value).__name__


def _load_json(payload: bytes | str, what: str) -> Any:
    if isinstance(payload, bytes):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(
                f"{what} is not valid UTF-8",
                details={"shape": f"<{len(payload)} bytes, not UTF-8>"},
            ) from exc
    try:
        return json.loads(payload)
    except json.JSONDecodeError as exc:
        raise DecodeError(
            f"Malformed JSON in {what}: {exc.msg} (line {exc.lineno} column {exc.colno})",
            details={"shape": f"<{len(payload)} chars, not JSON>"},
        ) from exc


def _summarize(exc: ValidationError, prefix: str) -> str:
    parts: list[str] = []
    for error in exc.errors()[:_MAX_REPORTED_ERRORS]:
        loc = ".".join(str(p) for p in (prefix, *error["loc"]) if p != "")
        parts.append(f"{loc}: {error['msg']}")
    if exc.error_count() > _MAX_REPORTED_ERRORS:
        parts.append(f"... {exc.error_count() - _MAX_REPORTED_ERRORS} more")
    return "Invalid build notification: " + "; ".join(parts)


def _unwrap_string(data: str) -> Any:
    """Recover the JSON document carried by a string-typed ``data`` field."""
    try:
        payload = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        # Not base64: the string is the JSON text itself.
        payload = data.encode("utf-8")
    return _load_json(payload, "message.data")


class EnvelopeDecoder:
    """Turns raw request bodies into :class:`DeliveryEnvelope` instances."""

    def decode_build(self, data: Any) -> BuildRecord:
        """Decode the value found at ``message.data``.

        Raises:
            DecodeError: If the value is neither an object nor a string
                wrapping one, or if the record violates the schema.
        """
        if isinstance(data, str):
            inner = _unwrap_string(data)
            encoding = "string"
        elif isinstance(data, dict):
            inner = data
            encoding = "object"
        else:
            raise DecodeError(
                "message.data must be a JSON object or a string wrapping one",
                details={"shape": describe_shape(data)},
            )

        if not isinstance(inner, dict):
            raise DecodeError(
                "message.data does not contain a JSON object",
                details={"shape": describe_shape(inner)},
            )

        try:
            build = BuildRecord.model_validate(inner)
        except ValidationError as exc:
            raise DecodeError(
                _summarize(exc, "message.data"),
                details={"shape": describe_shape(inner)},
            ) from exc

        logger.debug("build_record_decoded", build_id=build.id, encoding=encoding)
        return build

    def decode(self, body: bytes | str) -> DeliveryEnvelope:
        """Decode one request body.

        Raises:
            DecodeError: On malformed JSON, missing or misspelled fields, or
                an unrecognised status. ``details["shape"]`` always describes
                the whole body.
        """
        raw = _load_json(body, "request body")
        if not isinstance(raw, dict):
            raise DecodeError(
                "Delivery envelope must be a JSON object",
                details={"shape": describe_shape(raw)},
            )

        message = raw.get("message")
        if not isinstance(message, dict):
            raise DecodeError(
                "Delivery envelope has no 'message' object",
                details={"shape": describe_shape(raw)},
            )
        if "data" not in message:
            raise DecodeError(
                "message.data: Field required",
                details={"shape": describe_shape(raw)},
            )

        try:
            build = self.decode_build(message["data"])
        except DecodeError as exc:
            raise DecodeError(
                str(exc),
                details={"shape": describe_shape(raw), "data_shape": exc.shape},
            ) from exc

        try:
            return DeliveryEnvelope.model_validate(
                {**raw, "message": {**message, "data": build}}
            )
        except ValidationError as exc:
            raise DecodeError(
                _summarize(exc, ""),
                details={"shape": describe_shape(raw)},
            ) from exc
