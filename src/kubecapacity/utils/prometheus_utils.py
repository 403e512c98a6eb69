import math
import re
from typing import Any, Sequence

from ..core.exceptions import MalformedSampleError

# Plain base-10 float literal, plus the special values Prometheus emits.
_FLOAT_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$|^[+-]?(Inf|NaN)$")


def parse_sample(sample: Sequence[Any]) -> float:
    """
    Extract the numeric value from a Prometheus instant sample.

    A sample is the `[<unix timestamp>, "<value>"]` pair found under
    `data.result[].value`. The value is always transmitted as a string.

    Raises:
        MalformedSampleError: if the sample has fewer than two elements, the value
            is not a string, is not a base-10 number, or is not finite.
    """
    if not isinstance(sample, (list, tuple)) or len(sample) < 2:
        raise MalformedSampleError(f"unexpected value format: {sample!r}")

    raw = sample[1]
    if not isinstance(raw, str):
        raise MalformedSampleError(f"value is not a string: {raw!r}")

    if not _FLOAT_RE.fullmatch(raw):
        raise MalformedSampleError(f"value is not a number: {raw!r}")

    value = float(raw)
    # NaN and +/-Inf cannot be turned into a quantity
    if not math.isfinite(value):
        raise MalformedSampleError(f"value is not finite: {raw!r}")
    return value
