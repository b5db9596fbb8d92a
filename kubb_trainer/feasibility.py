"""
Around-the-Pitch target feasibility.

The target is a throw budget. After every throw the remaining budget
is compared with the pieces still standing:

    buffer = (target_score - total_batons) - pieces_remaining

and the result is classified, first match wins:

    total_batons >= target_score   exceeded
    buffer < 0                     impossible
    buffer == 0                    perfect required
    buffer == 1                    critical
    2 <= buffer <= 4               tight
    buffer >= 5                    no warning
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from kubb_trainer.utils.constants import (
    CRITICAL_BUFFER,
    TIGHT_BUFFER_MAX,
    TIGHT_BUFFER_MIN,
    TOTAL_BASELINE_KUBBS,
)


class WarningLevel(str, Enum):
    EXCEEDED = "exceeded"
    IMPOSSIBLE = "impossible"
    PERFECT_REQUIRED = "perfect_required"
    CRITICAL = "critical"
    TIGHT = "tight"


@dataclass(frozen=True)
class Feasibility:
    """Outcome of a feasibility check.

    Attributes:
        level: Warning to surface, or None when comfortably on track.
        throws_remaining: Budget left (negative once over target).
        pieces_remaining: Kubbs standing plus the king if still up.
        buffer: Misses that can still be afforded.
    """
    level: Optional[WarningLevel]
    throws_remaining: int
    pieces_remaining: int
    buffer: int
    total_batons: int
    target_score: int

    @property
    def message(self) -> str:
        if self.level == WarningLevel.EXCEEDED:
            return (
                f"You've exceeded your target! "
                f"({self.total_batons}/{self.target_score} throws)"
            )
        if self.level == WarningLevel.IMPOSSIBLE:
            return (
                f"Target impossible! Need "
                f"{self.pieces_remaining - self.throws_remaining} fewer kubbs"
            )
        if self.level == WarningLevel.PERFECT_REQUIRED:
            return (
                f"Perfect required! Need {self.pieces_remaining} hits "
                f"with {self.throws_remaining} throws left"
            )
        if self.level == WarningLevel.CRITICAL:
            return (
                f"Critical! Only 1 miss allowed (need {self.pieces_remaining} "
                f"hits from {self.throws_remaining} throws)"
            )
        if self.level == WarningLevel.TIGHT:
            return f"Getting tight! You can afford {self.buffer} misses"
        return ""


def classify(total_batons: int, target_score: int, buffer: int) -> Optional[WarningLevel]:
    """Map counts to a warning level."""
    if total_batons >= target_score:
        return WarningLevel.EXCEEDED
    if buffer < 0:
        return WarningLevel.IMPOSSIBLE
    if buffer == 0:
        return WarningLevel.PERFECT_REQUIRED
    if buffer == CRITICAL_BUFFER:
        return WarningLevel.CRITICAL
    if TIGHT_BUFFER_MIN <= buffer <= TIGHT_BUFFER_MAX:
        return WarningLevel.TIGHT
    return None


def assess(target_score: int, total_batons: int, kubbs_down: int,
           king_down: bool) -> Feasibility:
    """Evaluate how reachable `target_score` still is."""
    throws_remaining = target_score - total_batons
    pieces_remaining = (TOTAL_BASELINE_KUBBS - kubbs_down) + (0 if king_down else 1)
    buffer = throws_remaining - pieces_remaining
    return Feasibility(
        level=classify(total_batons, target_score, buffer),
        throws_remaining=throws_remaining,
        pieces_remaining=pieces_remaining,
        buffer=buffer,
        total_batons=total_batons,
        target_score=target_score,
    )
