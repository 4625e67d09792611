"""
entropy.py — Entropy quality scoring for byte buffers

Scores any non-empty buffer (not only 32-byte seeds) with three numbers:

  - Shannon entropy over the 256-bin byte histogram, in bits (0-8)
  - Uniformity: chi-square against the flat expectation n/256, normalized to
    0-100 with 100 * (1 - chi2 / (255 * n)) and clamped at 0
  - Quality: round((entropy / 8 * 100 + uniformity) / 2), an integer 0-100

A 32-byte buffer can reach at most log2(32) = 5 bits of entropy, so short
seeds top out around "Good"; large samples from a sound generator approach
8 bits and "Excellent".
"""

from __future__ import annotations
import math
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict

from .errors import InvalidInputLengthError

LABEL_THRESHOLDS = (
    (90, "Excellent"),
    (75, "Good"),
    (60, "Acceptable"),
)
LOW_LABEL = "Low"


@dataclass(frozen=True)
class EntropyReport:
    shannon_entropy: float
    uniformity: float
    quality_score: int
    label: str
    sample_size: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shannon_entropy": round(self.shannon_entropy, 4),
            "uniformity": round(self.uniformity, 2),
            "quality_score": self.quality_score,
            "label": self.label,
            "sample_size": self.sample_size,
        }


def shannon_entropy(data: bytes) -> float:
    n = len(data)
    if n == 0:
        raise InvalidInputLengthError("cannot compute entropy of an empty buffer")
    entropy = 0.0
    for count in Counter(data).values():
        p = count / n
        entropy -= p * math.log2(p)
    # -0.0 for single-valued buffers
    return abs(entropy)


def chi_square(data: bytes) -> float:
    n = len(data)
    if n == 0:
        raise InvalidInputLengthError("cannot compute chi-square of an empty buffer")
    expected = n / 256
    counts = Counter(data)
    return sum((counts.get(b, 0) - expected) ** 2 / expected for b in range(256))


def uniformity_score(data: bytes) -> float:
    """Chi-square uniformity as a 0-100 percentage."""
    max_chi2 = 255 * len(data)
    return max(0.0, 100.0 * (1.0 - chi_square(data) / max_chi2))


def quality_label(score: int) -> str:
    for threshold, label in LABEL_THRESHOLDS:
        if score >= threshold:
            return label
    return LOW_LABEL


def analyze(data: bytes) -> EntropyReport:
    """Score the randomness quality of ``data``.

    Raises:
        InvalidInputLengthError: If ``data`` is empty.
    """
    data = bytes(data)
    if not data:
        raise InvalidInputLengthError("entropy analysis requires a non-empty buffer")

    entropy = shannon_entropy(data)
    uniformity = uniformity_score(data)
    # half-up, not banker's rounding
    score = math.floor((entropy / 8 * 100 + uniformity) / 2 + 0.5)
    score = min(100, max(0, score))

    return EntropyReport(
        shannon_entropy=entropy,
        uniformity=uniformity,
        quality_score=score,
        label=quality_label(score),
        sample_size=len(data),
    )
