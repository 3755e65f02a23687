"""Encoders for runtime metrics."""

from restopulse.core.encoding.ndjson import encode_samples
from restopulse.core.encoding.prometheus import encode_snapshot

__all__ = ["encode_samples", "encode_snapshot"]
