"""
Session engine for Kubb Trainer.

Owns the active PracticeSession and is the only code that mutates it.
Throws from the screen and from the watch both go through
record_throw(), so both paths share identical semantics.

Persistence is injected (any object with the Database session API).
After every mutation the session is saved as a whole snapshot and
registered listeners are notified; the watch sync layer is one such
listener. A failed save leaves the in-memory session authoritative and
re-raises PersistenceError to the caller.

Usage:
    engine = SessionEngine(Database())
    engine.start_session(target=60)
    outcome = engine.record_throw(True)
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from kubb_trainer.feasibility import Feasibility
from kubb_trainer.models.board import BoardState
from kubb_trainer.models.round import Round
from kubb_trainer.models.session import GamePhase, PracticeSession, SessionType
from kubb_trainer.models.throw import ThrowRecord
from kubb_trainer.models.watch_state import WatchInputConfig
from kubb_trainer.rules import AroundThePitchRules, ModeRules, rules_for

logger = logging.getLogger(__name__)


class ActiveSessionError(RuntimeError):
    """Raised when starting a session while another is still active."""


@dataclass(frozen=True)
class ThrowOutcome:
    """Result of one record_throw() call.

    Attributes:
        accepted: False when the throw was ignored (no session, session
                  complete, or the mode is finished).
        record: The throw as classified by the mode rules.
        round_completed: The throw completed its round.
        target_reached: The session target is reached after this throw.
    """
    accepted: bool
    record: Optional[ThrowRecord] = None
    round_completed: bool = False
    target_reached: bool = False


SessionListener = Callable[[PracticeSession], None]


class SessionEngine:
    """Single-writer state machine over one practice session.

    Attributes:
        store: Persistence collaborator.
        session: The session being played, or None.
    """

    def __init__(self, store, rng: Optional[random.Random] = None):
        """
        Args:
            store: Persistence collaborator (create_session, get_session,
                   get_active_session, update_session, delete_session).
            rng: Random source for Inkast Blast field sizes.
        """
        self.store = store
        self.session: Optional[PracticeSession] = None
        self._rng = rng
        self._rules: Optional[ModeRules] = None
        self._listeners: list[SessionListener] = []

    # =========================================================================
    # Listeners
    # =========================================================================

    def add_listener(self, callback: SessionListener):
        """Call `callback(session)` after every mutation."""
        self._listeners.append(callback)

    def remove_listener(self, callback: SessionListener):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self):
        if self.session is None:
            return
        for callback in list(self._listeners):
            callback(self.session)

    def _commit(self):
        """Save the session snapshot, then notify listeners."""
        self.session.touch()
        try:
            self.store.update_session(self.session)
        finally:
            self._notify()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def rules(self) -> Optional[ModeRules]:
        return self._rules

    def _attach(self, session: PracticeSession):
        self.session = session
        self._rules = rules_for(session.session_type, rng=self._rng)

    def has_active_session(self) -> bool:
        return self.session is not None and not self.session.is_complete

    def start_session(
        self,
        target: int,
        session_type: SessionType = SessionType.STANDARD,
        target_score: Optional[int] = None,
        game_phase: Optional[GamePhase] = None,
    ) -> PracticeSession:
        """Create a session with its first round and persist it.

        A stored session left over from an earlier day is completed
        first.

        Raises:
            ActiveSessionError: A session is still active in the engine
                or in the store.
        """
        if self.has_active_session():
            raise ActiveSessionError("A practice session is already active")
        stored = self.store.get_active_session()
        if stored is not None and not self._auto_complete_if_stale(stored):
            raise ActiveSessionError("A practice session is already active")

        if session_type == SessionType.INKAST_BLAST and game_phase is None:
            game_phase = GamePhase.ALL

        session = PracticeSession(
            target=target,
            session_type=session_type,
            target_score=target_score,
            game_phase=game_phase,
        )
        self._attach(session)
        session.rounds.append(self._rules.new_round(session, 1))

        self.store.create_session(session)
        logger.info(
            f"Session started: id={session.id}, type={session_type.value}, "
            f"target={target}, target_score={target_score}"
        )
        self._notify()
        return session

    def _auto_complete_if_stale(self, session: PracticeSession) -> bool:
        """Archive an unfinished session left over from an earlier day."""
        if session.is_complete or not session.is_stale:
            return False
        session.complete()
        logger.info(
            f"Session auto-completed: id={session.id}, "
            f"started {session.date:%Y-%m-%d}"
        )
        self.store.update_session(session)
        return True

    def resume_session(self, session_id: Optional[str] = None) -> Optional[PracticeSession]:
        """Load a saved session (the store's active one by default).

        A session from an earlier day is completed where it stands and
        not resumed.
        """
        if session_id:
            session = self.store.get_session(session_id)
        else:
            session = self.store.get_active_session()
        if session is None or session.is_complete:
            logger.info("No resumable session found")
            return None
        if self._auto_complete_if_stale(session):
            return None

        self._attach(session)
        session.resume()
        logger.info(
            f"Session resumed: id={session.id}, "
            f"{session.total_batons} batons over {len(session.rounds)} rounds"
        )
        self._commit()
        return session

    def pause_session(self):
        if not self.has_active_session():
            return
        self.session.pause()
        logger.info(f"Session paused: id={self.session.id}")
        self._commit()

    def complete_session(self) -> bool:
        """Finish the session. Only valid once the target is reached."""
        if not self.has_active_session():
            return False
        if not self._rules.is_target_reached(self.session):
            logger.debug("complete_session ignored: target not reached")
            return False

        current = self.session.current_round
        if current is not None:
            if current.throws:
                current.is_complete = True
            else:
                self.session.rounds.remove(current)
        self.session.complete()
        logger.info(
            f"Session complete: id={self.session.id}, "
            f"{self.session.total_kubbs}/{self.session.total_batons} "
            f"({self.session.hit_rate:.0%} hit rate)"
        )
        self._commit()
        return True

    def abandon_session(self):
        """Discard the session entirely."""
        if self.session is None:
            return
        session_id = self.session.id
        try:
            self.store.delete_session(session_id)
            logger.info(f"Session abandoned: id={session_id}")
            self.session = None
            self._rules = None
        finally:
            # None tells listeners the session is gone; a failed delete
            # keeps it
            for callback in list(self._listeners):
                callback(self.session)

    # =========================================================================
    # Throws and rounds
    # =========================================================================

    def record_throw(self, is_hit: bool, kubbs_hit: Optional[int] = None,
                     timestamp: Optional[datetime] = None) -> ThrowOutcome:
        """Record one baton. The single mutation entry point for throws."""
        session = self.session
        if session is None or session.is_complete:
            logger.debug("Throw ignored: no active session")
            return ThrowOutcome(accepted=False)
        if self._rules.is_finished(session):
            logger.debug("Throw ignored: mode finished, awaiting completion")
            return ThrowOutcome(accepted=False)

        current = session.current_round
        if current is None:
            current = self._open_round()

        record = self._rules.classify(
            session, current, is_hit, kubbs_hit=kubbs_hit, timestamp=timestamp
        )
        if not current.add_throw(record):
            return ThrowOutcome(accepted=False)

        session.total_batons += 1
        session.total_kubbs += record.kubbs_knocked
        if session.is_paused:
            session.is_paused = False

        round_completed = False
        if current.evaluate_completion(self._rules) or self._rules.is_finished(session):
            current.is_complete = True
            round_completed = True

        target_reached = self._rules.is_target_reached(session)
        logger.debug(
            f"Throw {session.total_batons}: {record.throw_type.value} "
            f"{'hit' if record.is_hit else 'miss'} "
            f"(round {current.round_number}, throw {record.throw_number})"
        )
        if round_completed:
            logger.info(
                f"Round {current.round_number} complete: "
                f"{current.hits}/{current.total_throws}"
            )
            if not target_reached and not self._rules.is_finished(session):
                self._open_round()

        self._commit()
        return ThrowOutcome(
            accepted=True,
            record=record,
            round_completed=round_completed,
            target_reached=target_reached,
        )

    def _open_round(self) -> Round:
        last = self.session.rounds[-1].round_number if self.session.rounds else 0
        new_round = self._rules.new_round(self.session, last + 1)
        self.session.rounds.append(new_round)
        return new_round

    def start_next_round(self) -> Optional[Round]:
        """Close the round in progress and open the next one.

        A round with no throws yet is already the next round and is
        returned as is.
        """
        if not self.has_active_session() or self._rules.is_finished(self.session):
            return None
        current = self.session.current_round
        if self._rules.single_round:
            logger.debug("start_next_round ignored: single-round mode")
            return current
        if current is not None and not current.throws:
            logger.debug("start_next_round ignored: round already fresh")
            return current

        if current is not None:
            current.is_complete = True
        new_round = self._open_round()
        logger.info(f"Round {new_round.round_number} started")
        self._commit()
        return new_round

    def reset_current_round(self):
        """Clear the current round's throws, keeping its number.

        Around-the-Pitch is a single round, so the whole run restarts
        from a fresh Round 1. Totals are recounted from the throws that
        remain.
        """
        if not self.has_active_session():
            return
        session = self.session
        if self._rules.single_round:
            if not session.rounds:
                return
            session.rounds = [self._rules.new_round(session, 1)]
            target = session.rounds[0]
        else:
            target = session.current_round
            if target is None:
                return
            target.clear()

        throws = session.all_throws
        session.total_batons = len(throws)
        session.total_kubbs = sum(t.kubbs_knocked for t in throws)
        logger.info(f"Round {target.round_number} reset")
        self._commit()

    def record_inkast_results(self, penalty_kubbs: int = 0, neighbor_kubbs: int = 0):
        """Store inkast outcomes for the current Inkast Blast round."""
        if not self.has_active_session():
            return
        if self.session.session_type != SessionType.INKAST_BLAST:
            return
        current = self.session.current_round or self._open_round()
        current.penalty_kubbs = max(0, penalty_kubbs)
        current.neighbor_kubbs = max(0, neighbor_kubbs)
        self._commit()

    # =========================================================================
    # Derived state
    # =========================================================================

    @property
    def is_target_reached(self) -> bool:
        if self.session is None:
            return False
        return self._rules.is_target_reached(self.session)

    @property
    def board(self) -> Optional[BoardState]:
        """Around-the-Pitch board, replayed from the throw history."""
        if self.session is None or not isinstance(self._rules, AroundThePitchRules):
            return None
        return self._rules.board(self.session)

    @property
    def feasibility(self) -> Optional[Feasibility]:
        if self.session is None or not isinstance(self._rules, AroundThePitchRules):
            return None
        return self._rules.feasibility(self.session)

    @property
    def input_config(self) -> Optional[WatchInputConfig]:
        if self.session is None:
            return None
        return self._rules.input_config(self.session)
