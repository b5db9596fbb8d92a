"""
Session model for Kubb Trainer.

A session represents one practice period in a single training mode,
from the first baton to completion or abandonment. Contains multiple
rounds, each holding the throws made in it.
"""

import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from kubb_trainer.models.round import Round
from kubb_trainer.models.throw import ThrowRecord
from kubb_trainer.utils.constants import GAME_PHASE_NAMES, GAME_PHASE_RANGES


class SessionType(str, Enum):
    """Supported training modes."""
    STANDARD = "standard"
    AROUND_THE_PITCH = "aroundThePitch"
    INKAST_BLAST = "inkastBlast"


class GamePhase(str, Enum):
    """Inkast Blast phase, setting how many kubbs are inkasted per round."""
    EARLY = "early"
    MID = "mid"
    END = "end"
    ALL = "all"

    @property
    def min_kubbs(self) -> int:
        return GAME_PHASE_RANGES[self.value][0]

    @property
    def max_kubbs(self) -> int:
        return GAME_PHASE_RANGES[self.value][1]

    @property
    def display_name(self) -> str:
        return GAME_PHASE_NAMES[self.value]

    def draw_kubb_count(self, rng: Optional[random.Random] = None) -> int:
        """Pick a field size uniformly from this phase's range."""
        rng = rng or random
        return rng.randint(self.min_kubbs, self.max_kubbs)


@dataclass
class PracticeSession:
    """A practice session containing multiple rounds.

    Attributes:
        target: Baton goal (8-Meter) or round goal (Inkast Blast).
        session_type: Training mode, fixed for the session's lifetime.
        target_score: Throw budget (Around-the-Pitch only).
        game_phase: Field size range (Inkast Blast only).
        rounds: Rounds in order; the first is created with the session.
        total_batons: Running count of throws across all rounds.
        total_kubbs: Running count of pieces knocked down.
        is_complete: Permanent once set.
        is_paused: Suspended, resumable.
        date: Calendar day the session belongs to.
        start_time: When the session started.
        end_time: When the session was completed (None if still active).
        id: Unique identifier.
    """
    target: int
    session_type: SessionType = SessionType.STANDARD
    target_score: Optional[int] = None
    game_phase: Optional[GamePhase] = None
    rounds: list[Round] = field(default_factory=list)
    total_batons: int = 0
    total_kubbs: int = 0
    is_complete: bool = False
    is_paused: bool = False
    date: datetime = field(default_factory=datetime.now)
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    created_at: datetime = field(default_factory=datetime.now)
    modified_at: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def touch(self):
        self.modified_at = datetime.now()

    def complete(self):
        """Mark the session as finished."""
        self.is_complete = True
        self.is_paused = False
        self.end_time = datetime.now()
        self.touch()

    def pause(self):
        self.is_paused = True
        self.touch()

    def resume(self):
        self.is_paused = False
        self.touch()

    @property
    def current_round(self) -> Optional[Round]:
        """The round in progress, or None between rounds."""
        if self.rounds and not self.rounds[-1].is_complete:
            return self.rounds[-1]
        return None

    @property
    def completed_rounds(self) -> list[Round]:
        return [r for r in self.rounds if r.is_complete]

    @property
    def all_throws(self) -> list[ThrowRecord]:
        """Every throw of the session in the order it was made."""
        return [t for r in self.rounds for t in r.throws]

    @property
    def accuracy(self) -> float:
        """Kubbs per baton. Can exceed 1.0 with multi-kubb throws."""
        if self.total_batons == 0:
            return 0.0
        return self.total_kubbs / self.total_batons

    @property
    def hit_rate(self) -> float:
        """Fraction of batons that hit, always within [0, 1]."""
        throws = self.all_throws
        if not throws:
            return 0.0
        return sum(1 for t in throws if t.is_hit) / len(throws)

    @property
    def is_stale(self) -> bool:
        """True when the session belongs to an earlier calendar day."""
        return self.date.date() < datetime.now().date()

    @property
    def progress(self) -> float:
        """Fraction of the baton target thrown, clamped to [0, 1]."""
        if self.target <= 0:
            return 0.0
        return min(1.0, max(0.0, self.total_batons / self.target))

    @property
    def total_baseline_clears(self) -> int:
        return sum(1 for r in self.rounds if r.has_baseline_clear)

    @property
    def total_king_throws(self) -> int:
        return sum(r.king_throws for r in self.rounds)

    @property
    def total_king_hits(self) -> int:
        return sum(r.king_hits for r in self.rounds)

    @property
    def king_accuracy(self) -> float:
        if self.total_king_throws == 0:
            return 0.0
        return self.total_king_hits / self.total_king_throws

    @property
    def current_streak(self) -> int:
        """Consecutive hits ending at the latest throw, across rounds."""
        streak = 0
        for record in reversed(self.all_throws):
            if not record.is_hit:
                break
            streak += 1
        return streak

    @property
    def best_streak(self) -> int:
        best = run = 0
        for record in self.all_throws:
            run = run + 1 if record.is_hit else 0
            best = max(best, run)
        return best

    @property
    def accuracy_history(self) -> list[float]:
        """Cumulative accuracy after each throw."""
        history = []
        hits = 0
        for n, record in enumerate(self.all_throws, start=1):
            if record.is_hit:
                hits += 1
            history.append(hits / n)
        return history

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sessionType": self.session_type.value,
            "target": self.target,
            "targetScore": self.target_score,
            "gamePhase": self.game_phase.value if self.game_phase else None,
            "rounds": [r.to_dict() for r in self.rounds],
            "totalBatons": self.total_batons,
            "totalKubbs": self.total_kubbs,
            "isComplete": self.is_complete,
            "isPaused": self.is_paused,
            "date": self.date.isoformat(),
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat() if self.end_time else None,
            "createdAt": self.created_at.isoformat(),
            "modifiedAt": self.modified_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PracticeSession":
        phase = data.get("gamePhase")
        end_time = data.get("endTime")
        return cls(
            id=data["id"],
            session_type=SessionType(data.get("sessionType", "standard")),
            target=data["target"],
            target_score=data.get("targetScore"),
            game_phase=GamePhase(phase) if phase else None,
            rounds=[Round.from_dict(r) for r in data.get("rounds", [])],
            total_batons=data.get("totalBatons", 0),
            total_kubbs=data.get("totalKubbs", 0),
            is_complete=bool(data.get("isComplete", False)),
            is_paused=bool(data.get("isPaused", False)),
            date=datetime.fromisoformat(data["date"]),
            start_time=datetime.fromisoformat(data["startTime"]),
            end_time=datetime.fromisoformat(end_time) if end_time else None,
            created_at=datetime.fromisoformat(data["createdAt"]),
            modified_at=datetime.fromisoformat(data["modifiedAt"]),
        )
