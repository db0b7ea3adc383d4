"""Delivery envelope decoding."""
from __future__ import annotations

from build_notifier.decoding.decoder import EnvelopeDecoder, describe_shape

__all__ = ["EnvelopeDecoder", "describe_shape"]
