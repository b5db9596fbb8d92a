"""
Watch sync protocol for Kubb Trainer.

Bridges a SessionEngine and a watch transport (WatchLink or
MockWatchLink). Outbound, every engine mutation is re-serialized into
a full WatchSessionState and pushed; the watch never receives deltas.
Inbound, throw events recorded on the watch are checked against the
active session, de-duplicated and routed through
SessionEngine.record_throw(), the same entry point the screen uses.

Connectivity is advisory. A lost link never blocks scoring; on
reconnect the whole state is pushed again.

Usage:
    sync = WatchSync(engine, link)
    link.start()
"""

import logging
from collections import deque
from typing import Optional

from kubb_trainer.database.db import PersistenceError
from kubb_trainer.models.session import PracticeSession, SessionType
from kubb_trainer.models.watch_state import (
    WatchContextItem,
    WatchContextItemType,
    WatchInputConfig,
    WatchSessionState,
    WatchSessionType,
    WatchThrowEvent,
)
from kubb_trainer.rules import AroundThePitchRules, rules_for
from kubb_trainer.utils.constants import (
    BATONS_PER_ROUND,
    HAPTIC_FAILURE,
    HAPTIC_SUCCESS,
    SEEN_EVENT_LIMIT,
)

logger = logging.getLogger(__name__)


WATCH_SESSION_TYPES = {
    SessionType.STANDARD: WatchSessionType.EIGHT_METER,
    SessionType.AROUND_THE_PITCH: WatchSessionType.AROUND_THE_PITCH,
    SessionType.INKAST_BLAST: WatchSessionType.INKAST_BLAST,
}


def serialize(session: PracticeSession, is_active: Optional[bool] = None) -> WatchSessionState:
    """Project a session onto the compact state the watch displays.

    Always built from scratch; nothing is carried over from an earlier
    projection.
    """
    watch_type = WATCH_SESSION_TYPES[session.session_type]
    if session.session_type == SessionType.AROUND_THE_PITCH:
        items = _around_the_pitch_items(session)
    elif session.session_type == SessionType.INKAST_BLAST:
        items = _inkast_blast_items(session)
    else:
        items = _eight_meter_items(session)

    if is_active is None:
        is_active = not session.is_complete
    return WatchSessionState(
        session_id=session.id,
        session_type=watch_type,
        title=watch_type.display_name,
        context_items=tuple(items),
        is_active=is_active,
    )


def _eight_meter_items(session: PracticeSession) -> list[WatchContextItem]:
    current = session.current_round
    if current is not None:
        round_number, thrown = current.round_number, current.total_throws
    else:
        # Next round opens on the next throw
        last = session.rounds[-1].round_number if session.rounds else 0
        round_number, thrown = last + 1, 0

    items = []
    if not session.is_complete:
        items.append(WatchContextItem(
            "Round", str(round_number), WatchContextItemType.PRIMARY,
        ))
        items.append(WatchContextItem(
            "Throw", f"{min(thrown + 1, BATONS_PER_ROUND)}/{BATONS_PER_ROUND}",
            WatchContextItemType.SECONDARY,
        ))
    items.append(WatchContextItem(
        "Total", f"{session.total_batons}/{session.target}",
        WatchContextItemType.PROGRESS,
    ))
    return items


def _around_the_pitch_items(session: PracticeSession) -> list[WatchContextItem]:
    board = AroundThePitchRules().board(session)
    budget = session.target_score if session.target_score is not None else session.target
    if board.king_down:
        position = "Done"
    elif board.all_kubbs_down:
        position = "King"
    else:
        position = str(board.current_baseline)
    return [
        WatchContextItem(
            "Score", f"{session.total_kubbs}/{budget}", WatchContextItemType.PRIMARY,
        ),
        WatchContextItem("Baseline", position, WatchContextItemType.SECONDARY),
        WatchContextItem(
            "Throws", str(session.total_batons), WatchContextItemType.PROGRESS,
        ),
    ]


def _inkast_blast_items(session: PracticeSession) -> list[WatchContextItem]:
    items = []
    current = session.current_round
    if current is not None:
        items.append(WatchContextItem(
            "Round", str(current.round_number), WatchContextItemType.PRIMARY,
        ))
        items.append(WatchContextItem(
            "Kubbs Left", str(current.kubbs_remaining or 0),
            WatchContextItemType.SECONDARY,
        ))
        items.append(WatchContextItem(
            "In Bounds", str(current.kubbs_in_bounds),
            WatchContextItemType.SECONDARY,
        ))
    items.append(WatchContextItem(
        "Rounds", f"{len(session.completed_rounds)}/{session.target}",
        WatchContextItemType.PROGRESS,
    ))
    return items


class WatchSync:
    """Keeps a watch transport converged with a SessionEngine.

    Attributes:
        engine: The session engine, the only writer of session state.
        link: Transport exposing start_session/update_session/
              send_input_config/end_session/send_haptic_feedback and the
              throw_received/connection_changed signals.
        remote_session_id: Session currently shown on the watch, or None.
    """

    def __init__(self, engine, link, haptics: bool = True):
        self.engine = engine
        self.link = link
        self.haptics = haptics
        self.remote_session_id: Optional[str] = None
        self._seen_keys: set = set()
        self._seen_order: deque = deque()

        engine.add_listener(self._on_session_changed)
        link.throw_received.connect(self.handle_throw_event)
        link.connection_changed.connect(self.handle_connection_change)

    @property
    def is_remote_active(self) -> bool:
        return self.remote_session_id is not None

    # =========================================================================
    # Outbound
    # =========================================================================

    def input_config(self, session: PracticeSession) -> WatchInputConfig:
        if session is self.engine.session and self.engine.rules is not None:
            return self.engine.rules.input_config(session)
        return rules_for(session.session_type).input_config(session)

    def start_remote_session(self, state: Optional[WatchSessionState] = None) -> bool:
        """Show a session on the watch, ending any session shown before."""
        session = self.engine.session
        if state is None:
            if session is None:
                logger.debug("start_remote_session ignored: no session")
                return False
            state = serialize(session)

        if self.is_remote_active:
            self.end_remote_session()

        self.remote_session_id = state.session_id
        sent = self.link.start_session(state.to_json())
        if session is not None and session.id == state.session_id:
            self.link.send_input_config(self.input_config(session).to_json())
        logger.info(
            f"Watch session started: {state.title} ({state.session_id})"
            f"{'' if sent else ' [not delivered]'}"
        )
        return sent

    def update_remote_session(self, state: Optional[WatchSessionState] = None) -> bool:
        """Push the full current state to the watch."""
        session = self.engine.session
        if state is None:
            if session is None:
                return False
            state = serialize(session)
        if not self.is_remote_active:
            logger.debug("update_remote_session ignored: no watch session")
            return False

        sent = self.link.update_session(state.to_json())
        if state.is_active and session is not None and session.id == state.session_id:
            self.link.send_input_config(self.input_config(session).to_json())
        return sent

    def end_remote_session(self) -> bool:
        if not self.is_remote_active:
            return False
        logger.info(f"Watch session ended: {self.remote_session_id}")
        self.remote_session_id = None
        return self.link.end_session()

    def _on_session_changed(self, session: Optional[PracticeSession]):
        """Engine listener: re-serialize and push after every mutation."""
        if session is None:
            self.end_remote_session()
            return
        if session.is_complete:
            if self.remote_session_id == session.id:
                self.update_remote_session(serialize(session, is_active=False))
                self.end_remote_session()
            return
        if self.remote_session_id != session.id:
            self.start_remote_session()
        else:
            self.update_remote_session()

    # =========================================================================
    # Inbound
    # =========================================================================

    def _remember(self, key: tuple) -> bool:
        """Record an event key. False if it was already consumed."""
        if key in self._seen_keys:
            return False
        self._seen_keys.add(key)
        self._seen_order.append(key)
        if len(self._seen_order) > SEEN_EVENT_LIMIT:
            self._seen_keys.discard(self._seen_order.popleft())
        return True

    def handle_throw_event(self, payload) -> bool:
        """Apply a throw recorded on the watch.

        Args:
            payload: WatchThrowEvent or its JSON dict.

        Returns:
            True if the throw was recorded in the session.
        """
        if isinstance(payload, WatchThrowEvent):
            event = payload
        else:
            try:
                event = WatchThrowEvent.from_json(payload)
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Malformed watch throw event dropped: {e}")
                return False

        session = self.engine.session
        if session is None or session.id != event.session_id:
            logger.debug(f"Watch throw for unknown session {event.session_id} dropped")
            return False
        if not self._remember(event.key):
            logger.info(f"Duplicate watch throw dropped ({event.timestamp.isoformat()})")
            return False

        try:
            outcome = self.engine.record_throw(
                event.is_hit, kubbs_hit=event.kubbs_hit, timestamp=event.timestamp,
            )
        except PersistenceError as e:
            # The throw is kept in memory and already pushed back
            logger.error(f"Watch throw recorded but not saved: {e}")
            return True

        if not outcome.accepted:
            logger.debug("Watch throw rejected by the session, resyncing")
            self.update_remote_session()
            return False

        if self.haptics:
            self.link.send_haptic_feedback(
                HAPTIC_SUCCESS if outcome.record.is_hit else HAPTIC_FAILURE
            )
        return True

    def handle_connection_change(self, connected: bool):
        """Resync the full state on reconnect. A disconnect only logs."""
        if not connected:
            logger.info("Watch disconnected, scoring continues locally")
            return
        logger.info("Watch connected")
        session = self.engine.session
        if session is None or session.is_complete:
            return
        if self.is_remote_active:
            # Full resync, the watch may have lost its state
            self.remote_session_id = None
        self.start_remote_session()
