"""
Pixel FX — Parameter Schema
Declared bounds/defaults for each effect and the clamping applied before
any value reaches a generator.
"""

import logging
import math
from typing import NamedTuple

logger = logging.getLogger(__name__)


class Param(NamedTuple):
    label: str
    min: float
    max: float
    default: float
    step: float = 0.01


def clamp_param(spec: Param, value) -> float:
    """Clamp one value to spec bounds.

    Missing or non-numeric values fall back to the default (never zero);
    NaN clamps to the minimum; infinities clamp to the nearest bound.
    """
    if value is None or isinstance(value, bool):
        return spec.default
    try:
        v = float(value)
    except (TypeError, ValueError):
        return spec.default
    if math.isnan(v):
        return spec.min
    return min(spec.max, max(spec.min, v))


def schema_defaults(schema: dict) -> dict:
    return {key: spec.default for key, spec in schema.items()}


def resolve_params(schema: dict, values: dict | None = None) -> dict:
    """Build a complete, clamped parameter map for a schema.

    Unknown keys in `values` are ignored.
    """
    values = values or {}
    unknown = set(values) - set(schema)
    if unknown:
        logger.debug("Ignoring unknown parameters: %s", ", ".join(sorted(unknown)))
    return {key: clamp_param(spec, values.get(key)) for key, spec in schema.items()}
