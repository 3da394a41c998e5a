"""Fingerprinting activity tracking.

Accumulates per-technique counts of suspicious browser-API usage
reported by the page instrumentation and turns them into a
detection verdict plus confidence using per-technique thresholds.

A technique raises a page alert exactly once, the first time its
count reaches the threshold; further signals keep refining the
confidence without alerting again.  Canvas operations are only
counted for canvases larger than a small icon, and raw pixel data
may corroborate canvas fingerprinting through its colour entropy.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Sequence

from privacygrade.models import detection
from privacygrade.utils import logger

log = logger.create_logger("Fingerprint")

# Signals required before a technique counts as detected.
THRESHOLDS: dict[str, int] = {
    "canvas": 2,
    "webgl": 3,
    "audio": 1,
    "fonts": 10,
    "navigator": 5,
    "screen": 3,
    "timezone": 2,
}
DEFAULT_THRESHOLD = 1

# Techniques that identify a device on their own.
STRONG_TECHNIQUES: tuple[str, ...] = ("canvas", "webgl", "audio")
MODERATE_TECHNIQUES: tuple[str, ...] = ("fonts", "navigator", "screen", "timezone")

# Edge of the top-left square region sampled for entropy.
_SAMPLE_EDGE = 100


def threshold_for(technique: str) -> int:
    """Return the detection threshold for *technique* (1 when unknown)."""
    return THRESHOLDS.get(technique, DEFAULT_THRESHOLD)


def confidence_for(count: int, threshold: int) -> float:
    """``min(count / threshold, 1.0)``."""
    if threshold <= 0:
        return 1.0 if count > 0 else 0.0
    return min(count / threshold, 1.0)


def passes_canvas_gate(width: int, height: int, min_dimension: int = 16) -> bool:
    """True when a canvas is large enough for its reads to be suspicious."""
    return width > min_dimension and height > min_dimension


def calculate_entropy(pixels: bytes | Sequence[int], width: int | None = None) -> float:
    """Normalised Shannon entropy of RGBA pixel data.

    Pixels are read as RGB triples (alpha ignored).  The entropy is
    divided by ``log2(sample_count)`` so a canvas where every pixel
    has a distinct colour scores 1.0 and a flat fill scores 0.0.

    Args:
        pixels: Flat RGBA byte sequence, as returned by
            ``getImageData().data``.
        width: Canvas width in pixels.  When given, only the top-left
            region of at most 100x100 pixels is sampled; without it the
            first 10,000 pixels in row order are.

    Returns:
        Entropy in ``[0, 1]``; 0.0 when fewer than two pixels exist.
    """
    pixel_count = len(pixels) // 4
    if width:
        columns = min(width, _SAMPLE_EDGE)
        rows = min(-(-pixel_count // width), _SAMPLE_EDGE)
        indices = [
            index
            for row in range(rows)
            for index in range(row * width, min(row * width + columns, pixel_count))
        ]
    else:
        indices = list(range(min(pixel_count, _SAMPLE_EDGE * _SAMPLE_EDGE)))

    total = len(indices)
    if total <= 1:
        return 0.0

    frequency = Counter(tuple(pixels[i * 4 : i * 4 + 3]) for i in indices)
    entropy = 0.0
    for count in frequency.values():
        p = count / total
        entropy -= p * math.log2(p)
    return min(entropy / math.log2(total), 1.0)


def risk_level(technique: str, confidence: float) -> detection.RiskLevel:
    """Risk of a detected technique given its confidence."""
    if technique in STRONG_TECHNIQUES and confidence > 0.7:
        return "high"
    if confidence > 0.5:
        return "medium"
    return "low"


class FingerprintActivityTracker:
    """Per-page fingerprinting evidence.

    Not thread-safe; the page registry serialises access.
    """

    def __init__(self, entropy_threshold: float = 0.5) -> None:
        self._counts: dict[str, int] = {}
        self._alerted: list[str] = []
        self._entropy: dict[str, float] = {}
        self._entropy_threshold = entropy_threshold

    @property
    def counts(self) -> dict[str, int]:
        """Copy of the technique → occurrence count mapping."""
        return dict(self._counts)

    @property
    def alerts(self) -> list[str]:
        """Techniques that have alerted, in alert order."""
        return list(self._alerted)

    def count(self, technique: str) -> int:
        return self._counts.get(technique, 0)

    def record_signal(self, technique: str) -> int:
        """Count one occurrence of *technique* and return the new count."""
        technique = technique.strip().lower()
        if technique not in THRESHOLDS:
            log.debug("Unknown fingerprint technique, using default threshold", {"technique": technique})
        self._counts[technique] = self._counts.get(technique, 0) + 1
        return self._counts[technique]

    def record_canvas_operation(
        self,
        width: int,
        height: int,
        pixels: bytes | Sequence[int] | None = None,
        min_dimension: int = 16,
    ) -> bool:
        """Record a canvas draw/read if the canvas passes the size gate.

        Returns:
            ``True`` when the operation was counted.
        """
        if not passes_canvas_gate(width, height, min_dimension):
            log.debug("Canvas below size gate ignored", {"width": width, "height": height})
            return False

        self.record_signal("canvas")
        if pixels is not None:
            entropy = calculate_entropy(pixels, width)
            # Keep the strongest evidence seen on this page.
            self._entropy["canvas"] = max(entropy, self._entropy.get("canvas", 0.0))
            log.debug("Canvas entropy measured", {"entropy": round(entropy, 3)})
        return True

    def evaluate(self, technique: str) -> detection.FingerprintEvaluation:
        """Current detection verdict for *technique*."""
        count = self.count(technique)
        threshold = threshold_for(technique)
        confidence = confidence_for(count, threshold)
        detected = count >= threshold

        entropy = self._entropy.get(technique, 0.0)
        if entropy > self._entropy_threshold:
            detected = True
            confidence = max(confidence, min(entropy, 1.0))

        return detection.FingerprintEvaluation(
            technique=technique,
            count=count,
            threshold=threshold,
            detected=detected,
            confidence=confidence,
        )

    def check_alert(self, technique: str) -> bool:
        """Mark *technique* alerted if it is newly detected.

        Returns:
            ``True`` only on the first crossing of the threshold.
        """
        if technique in self._alerted:
            return False
        if not self.evaluate(technique).detected:
            return False
        self._alerted.append(technique)
        return True

    def report(self) -> detection.FingerprintReport:
        """Summarise every technique seen so far."""
        detected: list[detection.DetectedTechnique] = []
        total_confidence = 0.0
        for technique in self._counts:
            evaluation = self.evaluate(technique)
            total_confidence += evaluation.confidence
            if evaluation.detected:
                detected.append(
                    detection.DetectedTechnique(
                        technique=technique,
                        count=evaluation.count,
                        confidence=evaluation.confidence,
                        risk_level=risk_level(technique, evaluation.confidence),
                    )
                )

        seen = len(self._counts)
        return detection.FingerprintReport(
            total_techniques=seen,
            detected=detected,
            risk_score=len(detected) * 20,
            confidence=total_confidence / seen if seen else 0.0,
        )
