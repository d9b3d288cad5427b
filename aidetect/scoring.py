"""
Score normalization and verdict mapping.

Provider output and the fallback heuristic both pass through `normalize`
so every response carries an integer score in [0, 100], a three-way label
and a bounded reason string.
"""

import math
from typing import Any

from aidetect.schemas import DetectResponse

MAX_REASON_CHARS = 200
NEUTRAL_SCORE = 50

# Label thresholds
HUMAN_BELOW = 45
UNCERTAIN_UP_TO = 55


def clamp_score(raw: Any) -> int:
    """
    Clamp a raw score to [0, 100] and round half up.

    Anything that is not a finite number is treated as the neutral score.
    """
    try:
        value = float(raw)
    except (TypeError, ValueError):
        value = float(NEUTRAL_SCORE)
    if not math.isfinite(value):
        value = float(NEUTRAL_SCORE)
    value = max(0.0, min(100.0, value))
    return int(math.floor(value + 0.5))


def label_for(score: int) -> str:
    if score < HUMAN_BELOW:
        return "Human-Captured"
    if score <= UNCERTAIN_UP_TO:
        return "Uncertain"
    return "AI-Generated"


def truncate_reason(reason: Any) -> str:
    text = str(reason) if reason is not None else ""
    if not text:
        text = "No reason provided"
    return text[:MAX_REASON_CHARS]


def normalize(score: Any, reason: Any, provider: str) -> DetectResponse:
    """Build the client-facing response from a raw score/reason pair."""
    clamped = clamp_score(score)
    return DetectResponse(
        score=clamped,
        label=label_for(clamped),
        reason=truncate_reason(reason),
        provider=provider,
    )


# =============================================================================
# Presentation
# =============================================================================

def display_verdict(score: int) -> str:
    """Five-way verdict shown to the user, finer grained than the label."""
    s = clamp_score(score)
    if s < 35:
        return "Human-Captured"
    if s < 45:
        return "Most Likely Human-Captured"
    if s <= 55:
        return "Uncertain – borderline case"
    if s <= 65:
        return "Most Likely AI-Generated"
    return "AI-Generated"


def meter_tone(score: int) -> str:
    """Colour band of the score meter: 'neutral', 'amber' or 'green'."""
    if score <= 45:
        return "neutral"
    if score <= 55:
        return "amber"
    return "green"
