"""
Around-the-Pitch board state for Kubb Trainer.

The board is never stored. It is rebuilt by replaying a session's
throws in order, so a resumed session always lands in the same state
as the live one did:

  - Kubb slots 0-4 belong to baseline 1, slots 5-9 to baseline 2.
  - A hit on a baseline fells its lowest-index standing kubb.
  - Every kubb throw advances the set counter. When the targeted
    baseline is emptied, or the counter reaches SET_SIZE, the thrower
    moves to the other baseline if it still has kubbs standing, and
    the counter resets.
  - Once all ten kubbs are down every throw is aimed at the king.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from kubb_trainer.models.throw import ThrowRecord, ThrowType
from kubb_trainer.utils.constants import (
    KUBBS_PER_BASELINE,
    SET_SIZE,
    TOTAL_BASELINE_KUBBS,
    TOTAL_PIECES,
)


@dataclass
class BoardState:
    """Derived kubb/king positions for an Around-the-Pitch run.

    Attributes:
        kubbs_down: One flag per baseline kubb slot.
        king_down: Whether the king has been felled.
        current_baseline: Baseline (1 or 2) the next kubb throw targets.
        set_throws: Kubb throws made in the current set.
    """
    kubbs_down: list[bool] = field(
        default_factory=lambda: [False] * TOTAL_BASELINE_KUBBS
    )
    king_down: bool = False
    current_baseline: int = 1
    set_throws: int = 0

    @classmethod
    def replay(cls, throws: Iterable[ThrowRecord]) -> "BoardState":
        """Rebuild the board from an ordered throw history."""
        board = cls()
        for record in throws:
            board.apply(record)
        return board

    @staticmethod
    def _slots(baseline: int) -> range:
        start = (baseline - 1) * KUBBS_PER_BASELINE
        return range(start, start + KUBBS_PER_BASELINE)

    def next_kubb_index(self, baseline: int) -> Optional[int]:
        """Lowest standing slot on `baseline`, or None if it is empty."""
        for i in self._slots(baseline):
            if not self.kubbs_down[i]:
                return i
        return None

    def is_baseline_empty(self, baseline: int) -> bool:
        return self.next_kubb_index(baseline) is None

    @property
    def kubbs_down_count(self) -> int:
        return sum(self.kubbs_down)

    @property
    def all_kubbs_down(self) -> bool:
        return all(self.kubbs_down)

    @property
    def is_cleared(self) -> bool:
        return self.all_kubbs_down and self.king_down

    @property
    def pieces_remaining(self) -> int:
        return TOTAL_PIECES - self.kubbs_down_count - int(self.king_down)

    @property
    def next_throw_type(self) -> ThrowType:
        return ThrowType.KING if self.all_kubbs_down else ThrowType.KUBB

    def apply(self, record: ThrowRecord):
        """Advance the board by one throw."""
        if self.king_down:
            return

        if self.all_kubbs_down:
            if record.is_hit:
                self.king_down = True
            return

        baseline = self.current_baseline
        if record.is_hit:
            index = self.next_kubb_index(baseline)
            if index is not None:
                self.kubbs_down[index] = True

        self.set_throws += 1
        if self.is_baseline_empty(baseline) or self.set_throws >= SET_SIZE:
            self._switch_baseline()
            self.set_throws = 0

    def _switch_baseline(self):
        other = 2 if self.current_baseline == 1 else 1
        if not self.is_baseline_empty(other):
            self.current_baseline = other
        # Otherwise stay put; the king is next once this baseline empties
