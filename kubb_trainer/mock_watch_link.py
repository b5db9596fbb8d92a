"""
Mock watch link for development and testing.

Plays the part of a player wearing the watch: throws are generated at
random intervals against whatever session the phone side last pushed,
using the input layout it last sent. Supports player presets to
simulate different skill levels.

Uses the same signal interface and outbound API as WatchLink, so the
whole sync path can be exercised without a watch or bridge.
"""

import logging
import random
import time
from datetime import datetime
from typing import Optional

from PyQt6.QtCore import QThread, pyqtSignal

from kubb_trainer.models.watch_state import WatchThrowEvent, WatchThrowType
from kubb_trainer.utils.constants import (
    METHOD_END_SESSION,
    METHOD_HAPTIC_FEEDBACK,
    METHOD_START_SESSION,
    METHOD_UPDATE_INPUT_CONFIG,
    METHOD_UPDATE_SESSION,
)

logger = logging.getLogger(__name__)


# Player presets: hit probabilities per throw kind
PRESETS = {
    "beginner": {
        "description": "New player still finding the 8 meter line",
        "kubb_hit_rate": 0.35,
        "king_hit_rate": 0.25,
        "extra_kubb_rate": 0.15,   # Chance each additional field kubb falls too
    },
    "club_player": {
        "description": "Regular league player",
        "kubb_hit_rate": 0.55,
        "king_hit_rate": 0.45,
        "extra_kubb_rate": 0.30,
    },
    "elite": {
        "description": "Tournament-level sniper",
        "kubb_hit_rate": 0.80,
        "king_hit_rate": 0.70,
        "extra_kubb_rate": 0.45,
    },
}


class MockWatchLink(QThread):
    """Simulates the companion watch for development without hardware.

    Signals:
        throw_received(dict): A simulated throw (WatchThrowEvent JSON).
        connection_changed(bool): True at startup, False at shutdown.
        error_occurred(str): Never emitted (for interface compatibility).

    Attributes:
        sent: Every outbound message as (method, arguments), oldest first.
    """

    throw_received = pyqtSignal(object)  # dict
    connection_changed = pyqtSignal(bool)
    error_occurred = pyqtSignal(str)

    def __init__(
        self,
        preset: str = "club_player",
        throw_interval: tuple[float, float] = (2.0, 5.0),
        seed: Optional[int] = None,
        parent=None,
    ):
        """
        Args:
            preset: Player preset name (see PRESETS).
            throw_interval: (min, max) seconds between simulated throws.
            seed: Seed for reproducible throw sequences.
        """
        super().__init__(parent)
        self._running = False
        self._preset_name = preset if preset in PRESETS else "club_player"
        self._preset = PRESETS[self._preset_name]
        self._throw_interval = throw_interval
        self._rng = random.Random(seed)
        self._throw_count = 0

        self.sent: list[tuple[str, object]] = []
        self.session_id: Optional[str] = None
        self.session_state: Optional[dict] = None
        self.input_config: dict = {"throwType": WatchThrowType.SIMPLE.value}

    def set_preset(self, preset: str):
        """Change the player preset."""
        if preset in PRESETS:
            self._preset_name = preset
            self._preset = PRESETS[preset]
            logger.info(f"Mock preset changed to: {preset}")

    def run(self):
        """Main thread loop: generate throws at random intervals."""
        self._running = True
        logger.info(f"Mock watch started (preset={self._preset_name})")
        self.connection_changed.emit(True)

        while self._running:
            delay = self._rng.uniform(*self._throw_interval)
            # Sleep in small increments so we can stop quickly
            elapsed = 0.0
            while elapsed < delay and self._running:
                time.sleep(0.1)
                elapsed += 0.1

            if not self._running:
                break
            if self.session_id is not None:
                self._generate_throw()

        self.connection_changed.emit(False)
        logger.info("Mock watch stopped")

    def _generate_throw(self) -> dict:
        """Generate a single simulated throw for the pushed input layout."""
        p = self._preset
        throw_type = WatchThrowType(self.input_config.get("throwType", "simple"))
        kubbs_hit = None

        if throw_type == WatchThrowType.KING:
            is_hit = self._rng.random() < p["king_hit_rate"]
        elif throw_type == WatchThrowType.MULTI_KUBB:
            is_hit = self._rng.random() < p["kubb_hit_rate"]
            options = self.input_config.get("kubbOptions") or [1]
            if is_hit:
                kubbs_hit = 1
                while kubbs_hit < max(options) and self._rng.random() < p["extra_kubb_rate"]:
                    kubbs_hit += 1
            else:
                kubbs_hit = 0
        else:
            is_hit = self._rng.random() < p["kubb_hit_rate"]

        self._throw_count += 1
        event = WatchThrowEvent(
            session_id=self.session_id or "",
            throw_type=throw_type,
            is_hit=is_hit,
            kubbs_hit=kubbs_hit,
            timestamp=datetime.now(),
        )
        logger.info(
            f"Mock throw #{self._throw_count}: {throw_type.value} "
            f"{'hit' if is_hit else 'miss'}"
            f"{f' ({kubbs_hit} kubbs)' if kubbs_hit else ''}"
        )
        payload = event.to_json()
        self.throw_received.emit(payload)
        return payload

    def trigger_throw(self) -> Optional[dict]:
        """Manually trigger a single throw (for UI button / testing)."""
        if self.session_id is None:
            logger.debug("trigger_throw ignored: no session on the watch")
            return None
        return self._generate_throw()

    # =========================================================================
    # Outbound API
    # =========================================================================

    def _record(self, method: str, arguments=None) -> bool:
        self.sent.append((method, arguments))
        return True

    def start_session(self, state: dict) -> bool:
        self.session_id = state.get("sessionId")
        self.session_state = state
        return self._record(METHOD_START_SESSION, state)

    def update_session(self, state: dict) -> bool:
        self.session_state = state
        return self._record(METHOD_UPDATE_SESSION, state)

    def send_input_config(self, config: dict) -> bool:
        self.input_config = config
        return self._record(METHOD_UPDATE_INPUT_CONFIG, config)

    def end_session(self) -> bool:
        self.session_id = None
        self.session_state = None
        return self._record(METHOD_END_SESSION)

    def send_haptic_feedback(self, kind: str) -> bool:
        return self._record(METHOD_HAPTIC_FEEDBACK, {"type": kind})

    def stop(self):
        """Signal the thread to stop."""
        self._running = False

    def is_connected(self) -> bool:
        """Mock is always 'connected'."""
        return self._running
