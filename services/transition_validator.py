# services/transition_validator.py
"""
Classify a requested phase change as forward, backward or no-op.

When both phases are in the country's catalog, catalog position decides.
Country specific phases that are missing from the catalog fall back to
what the phase metadata says about the target.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from services.repositories import PhaseStatus


class Direction:
    FORWARD = "Forward"
    BACKWARD = "Backward"
    NOOP = "NoOp"
    INVALID = "Invalid"


INVALID_ORDER = "INVALID_ORDER"
PHASE_NOT_STARTED = "PHASE_NOT_STARTED"

# substrings of country specific phase keys that may be targeted even
# without catalog entry or metadata
KNOWN_PHASE_PATTERNS = (
    "VISA_DECISION",
    "VISA_APPLICATION",
    "OFFER",
    "ECOE",
    "OSHC",
    "PRE_DEPARTURE",
    "TUITION",
    "DEPOSIT",
)


@dataclass(frozen=True)
class Classification:
    direction: str
    from_index: int
    to_index: int
    error: Optional[str] = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.direction != Direction.INVALID


def matches_known_pattern(phase_key: str) -> bool:
    upper = (phase_key or "").upper()
    return any(p in upper for p in KNOWN_PHASE_PATTERNS)


def _reject(fi, ti, error, reason) -> Classification:
    return Classification(Direction.INVALID, fi, ti, error=error, reason=reason)


def classify(catalog, from_phase: str, to_phase: str, target_metadata=None, intent: Optional[str] = None) -> Classification:
    """
    ``intent`` is what the caller is trying to do (Direction.FORWARD for a
    phase update, Direction.BACKWARD for a reopen); it only matters when
    catalog positions cannot decide.
    """
    fi, ti = catalog.index_of(from_phase), catalog.index_of(to_phase)

    if from_phase == to_phase:
        return Classification(Direction.NOOP, fi, ti)

    if fi >= 0 and ti >= 0:
        if ti > fi:
            return Classification(Direction.FORWARD, fi, ti)
        if ti < fi:
            return Classification(Direction.BACKWARD, fi, ti)
        return _reject(fi, ti, INVALID_ORDER, f"{to_phase} and {from_phase} share catalog position {fi}")

    # at least one side is not in the catalog: metadata is the source of truth
    if target_metadata is not None:
        status = target_metadata.status
        if status in (PhaseStatus.COMPLETED, PhaseStatus.CURRENT, PhaseStatus.LOCKED):
            return Classification(Direction.BACKWARD, fi, ti)
        if intent == Direction.FORWARD:
            return Classification(Direction.FORWARD, fi, ti)
        return _reject(fi, ti, PHASE_NOT_STARTED,
                       f"Phase {to_phase} has not been started yet. Cannot reopen a phase that hasn't been completed.")

    if ti < 0 and fi >= 0 and not matches_known_pattern(to_phase):
        if intent == Direction.FORWARD:
            return _reject(fi, ti, INVALID_ORDER, f"{to_phase} is not a phase of this country's application process")
        return _reject(fi, ti, PHASE_NOT_STARTED,
                       f"Phase {to_phase} has not been started yet. Cannot reopen a phase that hasn't been completed.")

    # both sides unlisted, or a recognised country specific phase: trust the caller
    return Classification(intent or Direction.BACKWARD, fi, ti)
