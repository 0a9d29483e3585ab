"""
Shared scoring utilities.

Small helpers used by the trait extractor and the fit scorer:
- `clamp100`: keep values within 0..100 so every score stays comparable
- `closeness`: `100 - |a - b|`, the similarity measure used by every distance-based dimension
- `normalize_weights`: convert arbitrary non-negative weights into a 1.0-summing distribution
"""

from __future__ import annotations


def clamp100(x: float) -> float:
    """Clamp a number into the [0.0, 100.0] range."""
    return max(0.0, min(100.0, float(x)))


def closeness(a: float, b: float) -> float:
    """Similarity of two 0..100 scores (100 = identical)."""
    return clamp100(100.0 - abs(float(a) - float(b)))


def normalize_weights(weights: dict[str, float]) -> dict[str, float]:
    """Normalize a dict of weights so they sum to 1.0 (non-negative)."""
    cleaned = {k: max(0.0, float(v)) for k, v in weights.items()}
    total = sum(cleaned.values())
    if total <= 0:
        return {k: 1.0 / len(weights) for k in weights}
    return {k: v / total for k, v in cleaned.items()}
