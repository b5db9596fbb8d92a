"""
Throw record model for Kubb Trainer.

ThrowType: What a baton was aimed at (a kubb, the king, or a
           multi-kubb inkast field).
ThrowRecord: One baton throw and its outcome.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class ThrowType(str, Enum):
    """Classification of a single baton throw."""
    KUBB = "kubb"
    KING = "king"
    MULTI_KUBB = "multiKubb"


@dataclass(frozen=True)
class ThrowRecord:
    """A single baton throw. Immutable once recorded.

    Attributes:
        is_hit: Whether the baton knocked anything down.
        throw_type: What the baton was aimed at.
        baseline_number: Baseline targeted (Around-the-Pitch kubb throws only).
        kubbs_hit: Kubbs felled by one baton (Inkast Blast only).
        timestamp: When the throw was made (watch time for remote throws).
        throw_number: 1-based position within its round.
        id: Unique identifier.
    """
    is_hit: bool
    throw_type: ThrowType = ThrowType.KUBB
    baseline_number: Optional[int] = None
    kubbs_hit: Optional[int] = None
    timestamp: datetime = field(default_factory=datetime.now)
    throw_number: int = 0
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def kubbs_knocked(self) -> int:
        """Number of pieces this throw took down."""
        if not self.is_hit:
            return 0
        if self.throw_type == ThrowType.MULTI_KUBB:
            return self.kubbs_hit or 0
        return 1

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "isHit": self.is_hit,
            "throwType": self.throw_type.value,
            "baselineNumber": self.baseline_number,
            "kubbsHit": self.kubbs_hit,
            "throwNumber": self.throw_number,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ThrowRecord":
        return cls(
            is_hit=bool(data["isHit"]),
            throw_type=ThrowType(data.get("throwType", ThrowType.KUBB.value)),
            baseline_number=data.get("baselineNumber"),
            kubbs_hit=data.get("kubbsHit"),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            throw_number=data.get("throwNumber", 0),
            id=data.get("id") or str(uuid.uuid4()),
        )
