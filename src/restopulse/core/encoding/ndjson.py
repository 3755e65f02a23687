"""NDJSON encoder for request samples."""

import json
from collections.abc import Iterable

from restopulse.core.models import RequestSample


def encode_samples(samples: Iterable[RequestSample]) -> str:
    """Encode request samples to newline-delimited JSON.

    Args:
        samples: An iterable of RequestSample objects.

    Returns:
        NDJSON string with one JSON object per line.
        Empty string if no samples.
    """
    lines = []
    for sample in samples:
        obj = {
            "timestamp": sample.timestamp,
            "method": sample.method,
            "path": sample.path,
            "status": sample.status,
            "duration_ms": sample.duration_ms,
        }
        lines.append(json.dumps(obj))

    if not lines:
        return ""

    return "\n".join(lines) + "\n"
