"""
Round model for Kubb Trainer.

A round is one batch of batons within a session: six throws at an
8-meter baseline, the whole clearing run in Around-the-Pitch, or one
inkasted field in Inkast Blast. Contains multiple throw records.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from kubb_trainer.models.throw import ThrowRecord, ThrowType
from kubb_trainer.utils.constants import (
    BASELINE_CLEAR_THROWS,
    BATONS_PER_ROUND,
    par_batons,
)


@dataclass
class Round:
    """An ordered batch of throws.

    Attributes:
        round_number: 1-based, increasing within a session.
        throws: Throws in the order they were made.
        is_complete: Set by the session engine, never by the round itself.
        field_kubbs: Kubbs inkasted into play (Inkast Blast only).
        penalty_kubbs: Kubbs that landed out of bounds twice (Inkast Blast).
        neighbor_kubbs: Kubbs raised next to another (Inkast Blast).
        created_at: When the round was opened.
        id: Unique identifier.
    """
    round_number: int = 1
    throws: list[ThrowRecord] = field(default_factory=list)
    is_complete: bool = False
    field_kubbs: Optional[int] = None
    penalty_kubbs: int = 0
    neighbor_kubbs: int = 0
    created_at: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def add_throw(self, record: ThrowRecord) -> bool:
        """Append a throw. Does nothing once the round is complete."""
        if self.is_complete:
            return False
        self.throws.append(record)
        return True

    def evaluate_completion(self, rules) -> bool:
        """Whether `rules` consider this round finished. Does not mutate."""
        return rules.is_round_complete(self)

    def clear(self):
        """Drop all throws, keeping the round number."""
        self.throws = []
        self.is_complete = False

    @property
    def total_throws(self) -> int:
        return len(self.throws)

    @property
    def hits(self) -> int:
        return sum(1 for t in self.throws if t.is_hit)

    @property
    def misses(self) -> int:
        return self.total_throws - self.hits

    @property
    def accuracy(self) -> float:
        if not self.throws:
            return 0.0
        return self.hits / self.total_throws

    @property
    def kubbs_knocked_down(self) -> int:
        return sum(t.kubbs_knocked for t in self.throws)

    @property
    def kubbs_remaining(self) -> Optional[int]:
        """Inkasted kubbs still standing, or None outside Inkast Blast."""
        if self.field_kubbs is None:
            return None
        return max(0, self.field_kubbs - self.kubbs_knocked_down)

    @property
    def kubbs_in_bounds(self) -> Optional[int]:
        if self.field_kubbs is None:
            return None
        return self.field_kubbs - self.penalty_kubbs

    @property
    def king_throws(self) -> int:
        return sum(1 for t in self.throws if t.throw_type == ThrowType.KING)

    @property
    def king_hits(self) -> int:
        return sum(
            1 for t in self.throws
            if t.throw_type == ThrowType.KING and t.is_hit
        )

    @property
    def has_baseline_clear(self) -> bool:
        """True if the opening throws of the round were all hits."""
        opening = self.throws[:BASELINE_CLEAR_THROWS]
        return (
            len(opening) == BASELINE_CLEAR_THROWS
            and all(t.is_hit for t in opening)
        )

    @property
    def is_perfect(self) -> bool:
        return (
            self.total_throws == BATONS_PER_ROUND
            and self.hits == BATONS_PER_ROUND
        )

    @property
    def par(self) -> Optional[int]:
        """Par batons for clearing this round's field (Inkast Blast)."""
        if self.field_kubbs is None:
            return None
        return par_batons(self.field_kubbs)

    @property
    def is_at_or_under_par(self) -> bool:
        par = self.par
        if par is None or self.kubbs_remaining:
            return False
        return self.total_throws <= par

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "roundNumber": self.round_number,
            "throws": [t.to_dict() for t in self.throws],
            "isComplete": self.is_complete,
            "fieldKubbs": self.field_kubbs,
            "penaltyKubbs": self.penalty_kubbs,
            "neighborKubbs": self.neighbor_kubbs,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Round":
        return cls(
            round_number=data["roundNumber"],
            throws=[ThrowRecord.from_dict(t) for t in data.get("throws", [])],
            is_complete=bool(data.get("isComplete", False)),
            field_kubbs=data.get("fieldKubbs"),
            penalty_kubbs=data.get("penaltyKubbs", 0),
            neighbor_kubbs=data.get("neighborKubbs", 0),
            created_at=datetime.fromisoformat(data["createdAt"]),
            id=data.get("id") or str(uuid.uuid4()),
        )
