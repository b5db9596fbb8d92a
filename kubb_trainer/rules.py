"""
Mode rule engines for Kubb Trainer.

Each training mode interprets a raw hit/miss the same way no matter
whether it came from the screen or the watch:

  StandardRules:        8-Meter baseline practice, rounds of 6 batons.
  AroundThePitchRules:  clear both baselines then the king, within a
                        throw budget. Board state is replayed from the
                        throw history on every call.
  InkastBlastRules:     clear an inkasted field, one baton may fell
                        several kubbs.

A session picks its rules once via rules_for() and the session engine
calls them uniformly.
"""

import logging
import random
from datetime import datetime
from typing import Optional

from kubb_trainer.feasibility import Feasibility, assess
from kubb_trainer.models.board import BoardState
from kubb_trainer.models.round import Round
from kubb_trainer.models.session import GamePhase, PracticeSession, SessionType
from kubb_trainer.models.throw import ThrowRecord, ThrowType
from kubb_trainer.models.watch_state import WatchInputConfig, WatchThrowType
from kubb_trainer.utils.constants import BATONS_PER_ROUND, MAX_KUBB_OPTIONS

logger = logging.getLogger(__name__)


class ModeRules:
    """Policy interface shared by all training modes."""

    session_type: SessionType
    # The whole run is one round; no next round, reset restarts the run
    single_round = False

    def new_round(self, session: PracticeSession, round_number: int) -> Round:
        return Round(round_number=round_number)

    def classify(self, session: PracticeSession, current: Round, is_hit: bool,
                 kubbs_hit: Optional[int] = None,
                 timestamp: Optional[datetime] = None) -> ThrowRecord:
        raise NotImplementedError

    def is_round_complete(self, round_: Round) -> bool:
        raise NotImplementedError

    def is_target_reached(self, session: PracticeSession) -> bool:
        raise NotImplementedError

    def is_finished(self, session: PracticeSession) -> bool:
        """True once the mode accepts no further throws."""
        return False

    def input_config(self, session: PracticeSession) -> WatchInputConfig:
        return WatchInputConfig(throw_type=WatchThrowType.SIMPLE)


class StandardRules(ModeRules):
    """8-Meter training: batons at a five-kubb baseline, six per round."""

    session_type = SessionType.STANDARD

    def classify(self, session, current, is_hit, kubbs_hit=None, timestamp=None):
        return ThrowRecord(
            is_hit=is_hit,
            throw_type=ThrowType.KUBB,
            timestamp=timestamp or datetime.now(),
            throw_number=current.total_throws + 1,
        )

    def is_round_complete(self, round_):
        return round_.total_throws >= BATONS_PER_ROUND

    def is_target_reached(self, session):
        return session.total_batons >= session.target


class AroundThePitchRules(ModeRules):
    """Around-the-Pitch: 10 baseline kubbs then the king.

    The session's target_score is a throw budget rather than a goal to
    accumulate towards. The whole run is a single round; it completes
    when the king falls.
    """

    session_type = SessionType.AROUND_THE_PITCH
    single_round = True

    def board(self, session: PracticeSession) -> BoardState:
        return BoardState.replay(session.all_throws)

    def classify(self, session, current, is_hit, kubbs_hit=None, timestamp=None):
        board = self.board(session)
        throw_type = board.next_throw_type
        return ThrowRecord(
            is_hit=is_hit,
            throw_type=throw_type,
            baseline_number=(
                board.current_baseline if throw_type == ThrowType.KUBB else None
            ),
            timestamp=timestamp or datetime.now(),
            throw_number=current.total_throws + 1,
        )

    def is_round_complete(self, round_):
        return BoardState.replay(round_.throws).is_cleared

    def is_target_reached(self, session):
        return self.board(session).is_cleared

    def is_finished(self, session):
        return self.is_target_reached(session)

    def feasibility(self, session: PracticeSession) -> Feasibility:
        board = self.board(session)
        budget = session.target_score if session.target_score is not None else session.target
        return assess(
            target_score=budget,
            total_batons=session.total_batons,
            kubbs_down=board.kubbs_down_count,
            king_down=board.king_down,
        )

    def input_config(self, session):
        if self.board(session).all_kubbs_down:
            return WatchInputConfig(
                throw_type=WatchThrowType.KING,
                show_king_option=True,
            )
        return WatchInputConfig(throw_type=WatchThrowType.SIMPLE)


class InkastBlastRules(ModeRules):
    """Inkast Blast: clear an inkasted field as fast as possible.

    Each round draws its field size from the session's game phase. A
    single baton may report several kubbs felled at once.
    """

    session_type = SessionType.INKAST_BLAST

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def new_round(self, session, round_number):
        phase = session.game_phase or GamePhase.ALL
        field_kubbs = phase.draw_kubb_count(self._rng)
        logger.debug(
            f"Inkast round {round_number}: {field_kubbs} kubbs "
            f"({phase.display_name})"
        )
        return Round(round_number=round_number, field_kubbs=field_kubbs)

    def classify(self, session, current, is_hit, kubbs_hit=None, timestamp=None):
        felled = 0
        if is_hit:
            felled = kubbs_hit if kubbs_hit is not None else 1
            remaining = current.kubbs_remaining
            if remaining is not None:
                felled = min(felled, remaining)
            felled = max(felled, 0)
        return ThrowRecord(
            is_hit=is_hit and felled > 0,
            throw_type=ThrowType.MULTI_KUBB,
            kubbs_hit=felled,
            timestamp=timestamp or datetime.now(),
            throw_number=current.total_throws + 1,
        )

    def is_round_complete(self, round_):
        if round_.field_kubbs is None:
            return False
        return round_.kubbs_knocked_down >= round_.field_kubbs

    def is_target_reached(self, session):
        return len(session.completed_rounds) >= session.target

    def input_config(self, session):
        current = session.current_round
        remaining = current.kubbs_remaining if current else None
        if not remaining:
            options = (1,)
        else:
            options = tuple(range(1, min(remaining, MAX_KUBB_OPTIONS) + 1))
        return WatchInputConfig(
            throw_type=WatchThrowType.MULTI_KUBB,
            kubb_options=options,
        )


def rules_for(session_type: SessionType,
              rng: Optional[random.Random] = None) -> ModeRules:
    """Select the rule engine for a training mode."""
    if session_type == SessionType.STANDARD:
        return StandardRules()
    if session_type == SessionType.AROUND_THE_PITCH:
        return AroundThePitchRules()
    if session_type == SessionType.INKAST_BLAST:
        return InkastBlastRules(rng=rng)
    raise ValueError(f"Unknown session type: {session_type}")
